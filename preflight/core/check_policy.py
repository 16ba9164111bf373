# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Check policy: which checks run and the thresholds they apply.

Usage
-----
    from preflight.core.check_policy import CheckPolicy

    # Load built-in defaults
    policy = CheckPolicy.default()

    # Load an org policy (merges on top of defaults)
    policy = CheckPolicy.from_yaml("my_policy.yaml")

    # Dump the current (including default) policy for editing
    policy.to_yaml("generated_policy.yaml")

Checks receive the policy at construction time and never modify it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from ..data import DEFAULT_POLICY_PATH as _DEFAULT_POLICY_PATH
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_DEFAULT_REQUIRED_LABELS = ["name", "vendor", "version", "release", "summary", "description"]


# ---------------------------------------------------------------------------
# Data classes for each policy section
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChecksPolicy:
    """Controls which checks are built by default."""

    based_on_ubi: bool = True
    has_required_label: bool = True
    layer_count_acceptable: bool = True
    run_as_non_root: bool = True
    has_license: bool = True


@dataclass(frozen=True)
class BasedOnUbiPolicy:
    """Signals the base-image check looks for."""

    component_label: str = "com.redhat.component"
    # Substring the component label must contain
    component_marker: str = "ubi"
    # Relative to the image filesystem root
    os_release_path: str = "etc/os-release"
    os_release_id: str = 'ID="rhel"'
    os_release_name: str = 'NAME="Red Hat Enterprise Linux"'
    inspect_layers: bool = True


@dataclass(frozen=True)
class LabelsPolicy:
    required: tuple[str, ...] = tuple(_DEFAULT_REQUIRED_LABELS)


@dataclass(frozen=True)
class LayersPolicy:
    # Images must have strictly fewer layers than this
    max_layer_count: int = 40


@dataclass(frozen=True)
class LicensesPolicy:
    directory: str = "licenses"


# ---------------------------------------------------------------------------
# The top-level policy object
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckPolicy:
    """Organisational check policy."""

    policy_name: str = "default"
    policy_version: str = "1.0"

    checks: ChecksPolicy = field(default_factory=ChecksPolicy)
    based_on_ubi: BasedOnUbiPolicy = field(default_factory=BasedOnUbiPolicy)
    labels: LabelsPolicy = field(default_factory=LabelsPolicy)
    layers: LayersPolicy = field(default_factory=LayersPolicy)
    licenses: LicensesPolicy = field(default_factory=LicensesPolicy)

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> CheckPolicy:
        """Load the built-in default policy that ships with the package."""
        return cls.from_yaml(_DEFAULT_POLICY_PATH)

    @classmethod
    def from_yaml(cls, path: str | Path) -> CheckPolicy:
        """
        Load a policy from a YAML file.

        The YAML is merged on top of the built-in defaults so that users only
        need to specify the sections they want to override.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ConfigurationError: If the file is not valid policy YAML.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        try:
            with open(path) as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid policy YAML in {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Policy file {path} must contain a mapping at the top level")

        if path.resolve() == _DEFAULT_POLICY_PATH.resolve():
            return cls._from_dict(raw)

        merged = cls._deep_merge(cls._load_default_raw(), raw)
        logger.debug("Loaded check policy overrides from %s", path)
        return cls._from_dict(merged)

    def to_yaml(self, path: str | Path) -> None:
        """Dump the full policy to a YAML file for editing."""
        data = self._to_dict()
        with open(path, "w") as fh:
            fh.write("# Preflight - Check Policy\n")
            fh.write("# Only include sections you want to override; omitted sections\n")
            fh.write("# will use the built-in defaults.\n\n")
            yaml.dump(data, fh, default_flow_style=False, sort_keys=False, width=120)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @classmethod
    def _load_default_raw(cls) -> dict[str, Any]:
        if _DEFAULT_POLICY_PATH.exists():
            with open(_DEFAULT_POLICY_PATH) as fh:
                return yaml.safe_load(fh) or {}
        return {}

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*; lists in *override* replace."""
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = CheckPolicy._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> CheckPolicy:
        ck = d.get("checks", {})
        ubi = d.get("based_on_ubi", {})
        lb = d.get("labels", {})
        ly = d.get("layers", {})
        lc = d.get("licenses", {})

        try:
            return cls(
                policy_name=d.get("policy_name", "default"),
                policy_version=str(d.get("policy_version", "1.0")),
                checks=ChecksPolicy(
                    based_on_ubi=ck.get("based_on_ubi", True),
                    has_required_label=ck.get("has_required_label", True),
                    layer_count_acceptable=ck.get("layer_count_acceptable", True),
                    run_as_non_root=ck.get("run_as_non_root", True),
                    has_license=ck.get("has_license", True),
                ),
                based_on_ubi=BasedOnUbiPolicy(
                    component_label=ubi.get("component_label", "com.redhat.component"),
                    component_marker=ubi.get("component_marker", "ubi"),
                    os_release_path=_image_relative_path(
                        ubi.get("os_release_path", "etc/os-release"), "based_on_ubi.os_release_path"
                    ),
                    os_release_id=ubi.get("os_release_id", 'ID="rhel"'),
                    os_release_name=ubi.get("os_release_name", 'NAME="Red Hat Enterprise Linux"'),
                    inspect_layers=ubi.get("inspect_layers", True),
                ),
                labels=LabelsPolicy(
                    required=tuple(lb.get("required", _DEFAULT_REQUIRED_LABELS)),
                ),
                layers=LayersPolicy(
                    max_layer_count=int(ly.get("max_layer_count", 40)),
                ),
                licenses=LicensesPolicy(
                    directory=_image_relative_path(lc.get("directory", "licenses"), "licenses.directory"),
                ),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid check policy: {e}") from e

    def _to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "policy_version": self.policy_version,
            "checks": {
                "based_on_ubi": self.checks.based_on_ubi,
                "has_required_label": self.checks.has_required_label,
                "layer_count_acceptable": self.checks.layer_count_acceptable,
                "run_as_non_root": self.checks.run_as_non_root,
                "has_license": self.checks.has_license,
            },
            "based_on_ubi": {
                "component_label": self.based_on_ubi.component_label,
                "component_marker": self.based_on_ubi.component_marker,
                "os_release_path": self.based_on_ubi.os_release_path,
                "os_release_id": self.based_on_ubi.os_release_id,
                "os_release_name": self.based_on_ubi.os_release_name,
                "inspect_layers": self.based_on_ubi.inspect_layers,
            },
            "labels": {
                "required": list(self.labels.required),
            },
            "layers": {
                "max_layer_count": self.layers.max_layer_count,
            },
            "licenses": {
                "directory": self.licenses.directory,
            },
        }


def _image_relative_path(value: Any, key: str) -> str:
    """Normalise an in-image path to be relative to the image root."""
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid check policy: {key} must be a string")
    parts = [part for part in PurePosixPath(value).parts if part != "/"]
    if ".." in parts:
        raise ConfigurationError(f"Invalid check policy: {key} must stay inside the image ({value!r})")
    return "/".join(parts)
