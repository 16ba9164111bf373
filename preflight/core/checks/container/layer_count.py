# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Layer count check.

Check: LayerCountAcceptable.
"""

from __future__ import annotations

import logging

from ...image import ImageReference
from ...models import HelpText, Level, Metadata
from ..base import BaseCheck
from ._helpers import POLICY_GUIDE_URL, error_help

logger = logging.getLogger(__name__)


class LayerCountAcceptableCheck(BaseCheck):
    """Checks that the image has fewer layers than the policy maximum."""

    def validate(self, image: ImageReference) -> bool:
        layer_count = len(image.image_info.layers())
        max_layers = self.policy.layers.max_layer_count
        logger.debug("%s: %d layers (max %d)", self.get_name(), layer_count, max_layers)
        return layer_count < max_layers

    def get_name(self) -> str:
        return "LayerCountAcceptable"

    def get_metadata(self) -> Metadata:
        return Metadata(
            description=f"Checking if container has less than {self.policy.layers.max_layer_count} layers.  Too many layers within the container images can degrade container performance.",
            level=Level.BEST,
            knowledge_base_url=POLICY_GUIDE_URL,
            check_url=POLICY_GUIDE_URL,
        )

    def get_help(self) -> HelpText:
        return error_help(
            self.get_name(),
            "Optimize your Dockerfile to consolidate and minimize the number of layers. Each RUN command will produce a new layer. Try combining RUN commands using && where possible.",
        )
