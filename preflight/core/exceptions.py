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


"""Preflight exceptions.

This module defines custom exceptions for preflight operations.
All exceptions inherit from PreflightError for easy catching.

Example:
    >>> from preflight.core.engine import CheckEngine
    >>> from preflight.core.exceptions import ConfigurationError
    >>>
    >>> try:
    ...     engine = CheckEngine(checks)
    ... except ConfigurationError as e:
    ...     print(f"Refusing to run: {e}")
"""


class PreflightError(Exception):
    """Base exception for all preflight errors."""

    pass


class ImageLoadError(PreflightError):
    """Raised when an image archive cannot be turned into an image reference.

    This can indicate:
    - Missing or unreadable archive
    - Missing or malformed manifest.json
    - Missing or malformed image configuration
    """

    pass


class CheckEvaluationError(PreflightError):
    """Raised by a check that could not reach a verdict.

    This is distinct from a check returning ``False``: the image was not
    shown to violate the policy, the check simply could not evaluate it
    (I/O failure, missing expected artifact, malformed metadata).
    """

    pass


class CheckTimeoutError(CheckEvaluationError):
    """Raised when a check does not finish within the configured timeout."""

    pass


class ConfigurationError(PreflightError):
    """Raised when checks, policy or assets are malformed at construction.

    This indicates:
    - Duplicate check names registered into one engine
    - Asset references that are not pinned by digest
    - Unreadable or invalid check policy

    It is never converted into a per-image result.
    """

    pass
