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
Image reference types consumed by checks.

An :class:`ImageReference` is produced by whatever resolved the image (the
bundled :class:`~preflight.core.loader.ImageLoader`, or an external puller)
and is handed to checks fully populated.  Checks only read from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping

DOCKER_LAYER_MEDIA_TYPE = "application/vnd.docker.image.rootfs.diff.tar"
DOCKER_LAYER_GZIP_MEDIA_TYPE = "application/vnd.docker.image.rootfs.diff.tar.gzip"
OCI_LAYER_MEDIA_TYPE = "application/vnd.oci.image.layer.v1.tar"
OCI_LAYER_GZIP_MEDIA_TYPE = "application/vnd.oci.image.layer.v1.tar+gzip"


@dataclass(frozen=True)
class ImageConfig:
    """The parts of an image configuration blob that checks look at."""

    labels: Mapping[str, str] = field(default_factory=dict)
    user: str = ""
    architecture: str = ""
    os: str = ""
    env: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        """Freeze the mappings so the config cannot be mutated by checks."""
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ImageConfig:
        """Build from a decoded OCI/Docker image configuration document."""
        config = data.get("config") or data.get("Config") or {}
        return cls(
            labels=config.get("Labels") or {},
            user=config.get("User") or "",
            architecture=data.get("architecture", ""),
            os=data.get("os", ""),
            env=tuple(config.get("Env") or ()),
            raw=data,
        )


class Layer(ABC):
    """A single filesystem layer of an image."""

    @property
    @abstractmethod
    def media_type(self) -> str:
        """Media type of the layer blob."""

    @property
    @abstractmethod
    def digest(self) -> str:
        """Digest of the layer blob (``sha256:<hex>``)."""

    @abstractmethod
    def uncompressed(self) -> BinaryIO:
        """Open a readable stream of the decompressed layer tarball.

        Every call returns a new stream; the caller closes it.
        """


class ImageInfo(ABC):
    """Access to an image's configuration and layers."""

    @abstractmethod
    def config_file(self) -> ImageConfig:
        """Return the decoded image configuration."""

    @abstractmethod
    def layers(self) -> list[Layer]:
        """Return the image layers, base layer first."""


@dataclass(frozen=True)
class ImageReference:
    """A fully-resolved image handed to checks.

    Attributes:
        image_uri: Name the image was resolved from (used for reporting).
        image_info: Configuration and layer access.
        image_fs_path: Root of the image's extracted filesystem.
    """

    image_uri: str
    image_info: ImageInfo
    image_fs_path: Path

    def __post_init__(self):
        if not isinstance(self.image_fs_path, Path):
            object.__setattr__(self, "image_fs_path", Path(self.image_fs_path))
