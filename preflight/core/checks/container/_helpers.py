# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Shared helper utilities for container checks."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from ...exceptions import CheckEvaluationError
from ...image import ImageReference
from ...models import HelpText

POLICY_GUIDE_URL = "https://connect.redhat.com/zones/containers/container-certification-policy-guide"


def error_help(check_name: str, suggestion: str) -> HelpText:
    """Build the standard help text for *check_name*."""
    return HelpText(
        message=f"Check {check_name} encountered an error. Please review the preflight.log file for more information.",
        suggestion=suggestion,
    )


def image_path(image: ImageReference, path: str) -> Path:
    """Resolve an in-image *path* (``/licenses`` or ``licenses``) under the image root.

    Raises:
        CheckEvaluationError: If *path* climbs out of the image with ``..``.
    """
    parts = [part for part in PurePosixPath(path).parts if part != "/"]
    if ".." in parts:
        raise CheckEvaluationError(f"Path {path!r} escapes the image filesystem")
    return image.image_fs_path.joinpath(*parts)
