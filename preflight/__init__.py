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
Preflight - Certification policy checks for container images.
"""

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m preflight.cli.cli`` free of eager top-level imports.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "PreflightConstants": (".config.constants", "PreflightConstants"),
        "AssetRegistry": (".core.assets", "AssetRegistry"),
        "assets": (".core.assets", "assets"),
        "scorecard_image": (".core.assets", "scorecard_image"),
        "CheckPolicy": (".core.check_policy", "CheckPolicy"),
        "BaseCheck": (".core.checks.base", "BaseCheck"),
        "build_checks": (".core.check_factory", "build_checks"),
        "CheckEngine": (".core.engine", "CheckEngine"),
        "run_checks": (".core.engine", "run_checks"),
        "ImageReference": (".core.image", "ImageReference"),
        "ImageLoader": (".core.loader", "ImageLoader"),
        "CheckResult": (".core.models", "CheckResult"),
        "ImageResults": (".core.models", "ImageResults"),
        "Outcome": (".core.models", "Outcome"),
        "Report": (".core.models", "Report"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CheckEngine",
    "run_checks",
    "BaseCheck",
    "build_checks",
    "CheckPolicy",
    "CheckResult",
    "ImageResults",
    "Outcome",
    "Report",
    "ImageReference",
    "ImageLoader",
    "AssetRegistry",
    "assets",
    "scorecard_image",
    "Config",
    "PreflightConstants",
]
