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
Centralized check construction.

Every entry point (CLI, ``CheckEngine`` fallback, ``run_checks``) builds its
checks through :func:`build_checks` so that:

* All checks receive the active ``CheckPolicy``.
* The ``policy.checks.*`` toggles are respected everywhere.
* The registration order, and therefore the report order, is fixed here.
"""

from __future__ import annotations

import logging

from .check_policy import CheckPolicy
from .checks.base import BaseCheck
from .checks.container import (
    BasedOnUbiCheck,
    HasLicenseCheck,
    HasRequiredLabelCheck,
    LayerCountAcceptableCheck,
    RunAsNonRootCheck,
)

logger = logging.getLogger(__name__)

# (policy toggle, check class) in registration order
_CONTAINER_CHECKS: list[tuple[str, type[BaseCheck]]] = [
    ("based_on_ubi", BasedOnUbiCheck),
    ("has_required_label", HasRequiredLabelCheck),
    ("layer_count_acceptable", LayerCountAcceptableCheck),
    ("run_as_non_root", RunAsNonRootCheck),
    ("has_license", HasLicenseCheck),
]


def available_checks() -> list[type[BaseCheck]]:
    """Return every built-in check class in registration order."""
    return [check_cls for _, check_cls in _CONTAINER_CHECKS]


def build_checks(policy: CheckPolicy | None = None) -> list[BaseCheck]:
    """Build the container checks enabled by *policy*.

    Args:
        policy: The active check policy.  If None, loads built-in defaults.

    Returns:
        A list of check instances with *policy* attached, in registration order.
    """
    policy = policy or CheckPolicy.default()

    checks: list[BaseCheck] = []
    for toggle, check_cls in _CONTAINER_CHECKS:
        if getattr(policy.checks, toggle):
            checks.append(check_cls(policy=policy))
        else:
            logger.debug("Check %s disabled by policy %s", check_cls.__name__, policy.policy_name)

    return checks
