# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""License directory check.

Check: HasLicense.
"""

from __future__ import annotations

import logging

from ...exceptions import CheckEvaluationError
from ...image import ImageReference
from ...models import HelpText, Level, Metadata
from ..base import BaseCheck
from ._helpers import POLICY_GUIDE_URL, error_help, image_path

logger = logging.getLogger(__name__)


class HasLicenseCheck(BaseCheck):
    """Checks that the image ships at least one file in its licenses directory."""

    def validate(self, image: ImageReference) -> bool:
        licenses_dir = image_path(image, self.policy.licenses.directory)

        if not licenses_dir.exists():
            logger.info("%s: %s not found", self.get_name(), licenses_dir)
            return False
        if not licenses_dir.is_dir():
            logger.info("%s: %s is not a directory", self.get_name(), licenses_dir)
            return False

        try:
            has_file = any(entry.is_file() for entry in licenses_dir.iterdir())
        except OSError as e:
            raise CheckEvaluationError(f"Could not list {licenses_dir}: {e}") from e

        if not has_file:
            logger.info("%s: %s is empty", self.get_name(), licenses_dir)
        return has_file

    def get_name(self) -> str:
        return "HasLicense"

    def get_metadata(self) -> Metadata:
        return Metadata(
            description="Checking if terms and conditions applicable to the software including open source licensing information are present. The license must be at /licenses",
            level=Level.BEST,
            knowledge_base_url=POLICY_GUIDE_URL,
            check_url=POLICY_GUIDE_URL,
        )

    def get_help(self) -> HelpText:
        return error_help(
            self.get_name(),
            "Create a directory named /licenses and include all relevant licensing and/or terms and conditions as text file(s) in that directory.",
        )
