# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Base image family check.

Check: BasedOnUbi.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ...exceptions import CheckEvaluationError
from ...image import ImageReference
from ...models import HelpText, Level, Metadata
from ..base import BaseCheck
from ._helpers import POLICY_GUIDE_URL, error_help, image_path

logger = logging.getLogger(__name__)

# Enough to cover one tar header
_LAYER_PROBE_BYTES = 512


class BasedOnUbiCheck(BaseCheck):
    """Checks that the image is built on the Red Hat Universal Base Image.

    Three independent signals must all hold: ``/etc/os-release`` carries the
    RHEL ``ID`` line, it carries the RHEL ``NAME`` line, and the component
    label contains the UBI marker.
    """

    def validate(self, image: ImageReference) -> bool:
        settings = self.policy.based_on_ubi

        labels = image.image_info.config_file().labels

        if settings.inspect_layers:
            self._inspect_layers(image)
        logger.debug("%s=%r", settings.component_label, labels.get(settings.component_label))

        os_release = self._read_os_release(image)
        return self._evaluate(labels, os_release)

    def _inspect_layers(self, image: ImageReference) -> None:
        """Probe each layer stream and log its media type.

        The verdict never depends on this, but a stream that cannot be read
        aborts the check.
        """
        for layer in image.image_info.layers():
            with layer.uncompressed() as stream:
                stream.read(_LAYER_PROBE_BYTES)
            logger.debug("layer %s: %s", layer.digest, layer.media_type)

    def _read_os_release(self, image: ImageReference) -> list[str]:
        path = image_path(image, self.policy.based_on_ubi.os_release_path)
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug("could not open os-release file for reading: %s", e)
            raise CheckEvaluationError(f"Could not read {path}: {e}") from e
        return content.split("\n")

    def _evaluate(self, labels: Mapping[str, str], os_release: list[str]) -> bool:
        settings = self.policy.based_on_ubi

        has_rhel_id = False
        has_rhel_name = False
        for line in os_release:
            if line.startswith(settings.os_release_id):
                has_rhel_id = True
            elif line.startswith(settings.os_release_name):
                has_rhel_name = True

        component = labels.get(settings.component_label)
        has_ubi_component = component is not None and settings.component_marker in component

        if not (has_rhel_id and has_rhel_name and has_ubi_component):
            logger.info(
                "%s: rhel id=%s, rhel name=%s, ubi component=%s",
                self.get_name(),
                has_rhel_id,
                has_rhel_name,
                has_ubi_component,
            )
            return False
        return True

    def get_name(self) -> str:
        return "BasedOnUbi"

    def get_metadata(self) -> Metadata:
        return Metadata(
            description=(
                "Checking if the container's base image is based upon the Red Hat Universal Base Image (UBI)"
            ),
            level=Level.BEST,
            knowledge_base_url=POLICY_GUIDE_URL,
            check_url=POLICY_GUIDE_URL,
        )

    def get_help(self) -> HelpText:
        return error_help(
            self.get_name(),
            "Change the FROM directive in your Dockerfile or Containerfile to FROM registry.access.redhat.com/ubi8/ubi",
        )
