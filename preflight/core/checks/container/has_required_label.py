# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Required label check.

Check: HasRequiredLabel.
"""

from __future__ import annotations

import logging

from ...image import ImageReference
from ...models import HelpText, Level, Metadata
from ..base import BaseCheck
from ._helpers import POLICY_GUIDE_URL, error_help

logger = logging.getLogger(__name__)


class HasRequiredLabelCheck(BaseCheck):
    """Checks that every label the policy requires is set to a non-empty value."""

    def validate(self, image: ImageReference) -> bool:
        labels = image.image_info.config_file().labels
        missing = [name for name in self.policy.labels.required if not labels.get(name)]
        if missing:
            logger.info("%s: missing labels: %s", self.get_name(), ", ".join(missing))
            return False
        return True

    def get_name(self) -> str:
        return "HasRequiredLabel"

    def _label_list(self) -> str:
        return ", ".join(self.policy.labels.required)

    def get_metadata(self) -> Metadata:
        return Metadata(
            description=f"Checking if the required labels ({self._label_list()}) are present in the container metadata.",
            level=Level.REQUIRED,
            knowledge_base_url=POLICY_GUIDE_URL,
            check_url=POLICY_GUIDE_URL,
        )

    def get_help(self) -> HelpText:
        return error_help(
            self.get_name(),
            f"Add the following labels to your Dockerfile or Containerfile: {self._label_list()}",
        )
