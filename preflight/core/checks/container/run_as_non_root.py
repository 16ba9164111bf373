# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Non-root user check.

Check: RunAsNonRoot.
"""

from __future__ import annotations

import logging

from ...image import ImageReference
from ...models import HelpText, Level, Metadata
from ..base import BaseCheck
from ._helpers import POLICY_GUIDE_URL, error_help

logger = logging.getLogger(__name__)

_ROOT_USERS = frozenset({"", "root", "0"})


class RunAsNonRootCheck(BaseCheck):
    """Checks that the image does not default to running as root.

    An unset ``User`` means the runtime default, which is root.
    """

    def validate(self, image: ImageReference) -> bool:
        user = image.image_info.config_file().user.strip()
        # "user:group" -> user
        name = user.split(":", 1)[0]
        if name in _ROOT_USERS:
            logger.info("%s: image runs as %r", self.get_name(), user or "root (unset)")
            return False
        return True

    def get_name(self) -> str:
        return "RunAsNonRoot"

    def get_metadata(self) -> Metadata:
        return Metadata(
            description="Checking if container runs as the root user because a container that does not specify a non-root user will fail the automatic certification, and will be subject to a manual review before the container can be approved for publication",
            level=Level.BEST,
            knowledge_base_url=POLICY_GUIDE_URL,
            check_url=POLICY_GUIDE_URL,
        )

    def get_help(self) -> HelpText:
        return error_help(
            self.get_name(),
            "Indicate a specific USER in the dockerfile or containerfile",
        )
