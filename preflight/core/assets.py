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
Auxiliary images the check suite delegates work to.

Every image is referenced by digest rather than by tag so that results are
reproducible and so that disconnected environments can mirror the exact
images ahead of time (see :func:`assets`).

Usage
-----
    from preflight.core.assets import DEFAULT_ASSETS, scorecard_image

    DEFAULT_ASSETS.lookup("scorecard")
    DEFAULT_ASSETS.assets().to_dict()   # {"images": [...]}
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .exceptions import ConfigurationError

# name[:tag]@sha256:<64 hex>
DIGEST_PINNED_PATTERN = re.compile(r"^[a-z0-9]+(?:[._\-/:]+[a-z0-9]+)*(?::\w[\w.\-]{0,127})?@sha256:[a-f0-9]{64}$")

SCORECARD = "scorecard"

# Purpose -> image.  Add an accessor below for anything used outside this module.
_IMAGES: dict[str, str] = {
    # operator policy, operator-sdk scorecard
    # quay.io/operator-framework/scorecard-test:v1.12.0
    SCORECARD: "quay.io/operator-framework/scorecard-test@sha256:d655333b0246f75ac9e5f6e67a2c04c506ae77b0c8b0c5eb70e6ddc8c2123e55",
}


def is_digest_pinned(image_ref: str) -> bool:
    """Return True if *image_ref* is qualified by a sha256 digest."""
    return isinstance(image_ref, str) and DIGEST_PINNED_PATTERN.match(image_ref) is not None


@dataclass
class AssetData:
    """Publicly presented list of every image the checks may use."""

    images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"images": list(self.images)}


class AssetRegistry:
    """Read-only purpose -> digest pinned image table."""

    def __init__(self, images: Mapping[str, str]):
        """
        Validate and freeze the table.

        Args:
            images: Mapping of purpose key to image reference.

        Raises:
            ConfigurationError: If any reference is not pinned by digest.
        """
        unpinned = {purpose: ref for purpose, ref in images.items() if not is_digest_pinned(ref)}
        if unpinned:
            details = ", ".join(f"{purpose}={ref!r}" for purpose, ref in sorted(unpinned.items()))
            raise ConfigurationError(f"Asset images must be pinned by sha256 digest: {details}")

        self._images: Mapping[str, str] = MappingProxyType(dict(images))

    def lookup(self, purpose: str) -> str | None:
        """Return the image for *purpose*, or ``None`` if it is not registered."""
        return self._images.get(purpose)

    def all(self) -> list[str]:
        """Return every registered image, without duplicates."""
        return list(dict.fromkeys(self._images.values()))

    def assets(self) -> AssetData:
        return AssetData(images=self.all())

    def purposes(self) -> list[str]:
        return sorted(self._images)

    def __contains__(self, purpose: object) -> bool:
        return purpose in self._images

    def __len__(self) -> int:
        return len(self._images)


DEFAULT_ASSETS = AssetRegistry(_IMAGES)


def assets() -> AssetData:
    """Return every asset used by the built-in checks."""
    return DEFAULT_ASSETS.assets()


def scorecard_image() -> str:
    """Return the image used by operator-sdk scorecard based checks."""
    return DEFAULT_ASSETS.lookup(SCORECARD) or ""
