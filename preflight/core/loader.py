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
Image archive loader.

Turns a ``docker save`` (or ``podman save``) tarball, legacy or OCI layout,
into an :class:`~preflight.core.image.ImageReference`: the configuration is
decoded, every layer blob is copied out next to a root filesystem built by
applying the layers base-first (whiteouts included).

Nothing here talks to a registry; the archive must already be on disk.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any, BinaryIO

from .exceptions import ImageLoadError
from .image import (
    DOCKER_LAYER_GZIP_MEDIA_TYPE,
    DOCKER_LAYER_MEDIA_TYPE,
    ImageConfig,
    ImageInfo,
    ImageReference,
    Layer,
)

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
_WHITEOUT_PREFIX = ".wh."
_OPAQUE_WHITEOUT = ".wh..wh..opq"
_COPY_CHUNK_SIZE = 1024 * 1024


class ArchiveLayer(Layer):
    """A layer blob copied out of an image archive."""

    def __init__(self, blob_path: Path, digest: str, media_type: str):
        self.blob_path = blob_path
        self._digest = digest
        self._media_type = media_type

    @property
    def media_type(self) -> str:
        return self._media_type

    @property
    def digest(self) -> str:
        return self._digest

    def uncompressed(self) -> BinaryIO:
        if _is_gzipped(self.blob_path):
            return gzip.open(self.blob_path, "rb")  # type: ignore[return-value]
        return open(self.blob_path, "rb")

    def __repr__(self) -> str:
        return f"ArchiveLayer({self._digest!r}, {self._media_type!r})"


class ArchiveImage(ImageInfo):
    """Configuration and layers read from an image archive."""

    def __init__(self, config: ImageConfig, layers: list[ArchiveLayer]):
        self._config = config
        self._layers = list(layers)

    def config_file(self) -> ImageConfig:
        return self._config

    def layers(self) -> list[Layer]:
        return list(self._layers)


class ImageLoader:
    """Loads image archives into image references.

    Every loaded image gets its own temporary working directory, removed by
    :meth:`cleanup` (or on leaving the ``with`` block).
    """

    def __init__(self, work_dir: str | Path | None = None):
        """
        Initialize loader.

        Args:
            work_dir: Parent directory for extracted images (default: system temp)
        """
        self.work_dir = Path(work_dir) if work_dir is not None else None
        self._temp_dirs: list[Path] = []

    def __enter__(self) -> ImageLoader:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()

    def load(self, archive_path: str | Path, image_uri: str | None = None) -> ImageReference:
        """
        Load an image archive.

        Args:
            archive_path: Path to the ``docker save`` tarball
            image_uri: Name to report the image under (default: first
                RepoTag in the archive, else the archive path)

        Returns:
            ImageReference with an extracted root filesystem

        Raises:
            ImageLoadError: If the archive cannot be read
        """
        archive_path = Path(archive_path)
        if not archive_path.exists():
            raise ImageLoadError(f"Image archive does not exist: {archive_path}")
        if not archive_path.is_file() or not tarfile.is_tarfile(archive_path):
            raise ImageLoadError(f"Not a tar archive: {archive_path}")

        work_dir = Path(tempfile.mkdtemp(prefix="preflight_image_", dir=self.work_dir))
        self._temp_dirs.append(work_dir)
        blobs_dir = work_dir / "layers"
        rootfs = work_dir / "rootfs"
        blobs_dir.mkdir()
        rootfs.mkdir()

        try:
            with tarfile.open(archive_path, "r") as archive:
                manifest = self._read_manifest(archive)
                config_data = self._read_json(archive, manifest["Config"])
                if not isinstance(config_data, dict):
                    raise ImageLoadError(f"Image configuration {manifest['Config']} is not a JSON object")
                config = ImageConfig.from_dict(config_data)
                media_types = self._read_oci_media_types(archive)
                layers = [
                    self._copy_layer(archive, layer_path, blobs_dir, index, media_types)
                    for index, layer_path in enumerate(manifest["Layers"])
                ]
        except (tarfile.TarError, OSError) as e:
            raise ImageLoadError(f"Error reading image archive {archive_path}: {e}") from e

        for layer in layers:
            self._apply_layer(layer, rootfs)

        if image_uri is None:
            repo_tags = manifest.get("RepoTags") or []
            image_uri = repo_tags[0] if repo_tags else str(archive_path)

        logger.info("Loaded %s: %d layers, filesystem at %s", image_uri, len(layers), rootfs)
        return ImageReference(
            image_uri=image_uri,
            image_info=ArchiveImage(config, layers),
            image_fs_path=rootfs,
        )

    def release(self, image: ImageReference) -> None:
        """Remove the working directory of one image loaded by this loader."""
        work_dir = image.image_fs_path.parent
        if work_dir in self._temp_dirs:
            self._temp_dirs.remove(work_dir)
            shutil.rmtree(work_dir, ignore_errors=True)

    def cleanup(self) -> None:
        """Remove all extracted images."""
        for temp_dir in self._temp_dirs:
            shutil.rmtree(temp_dir, ignore_errors=True)
        self._temp_dirs.clear()

    # ------------------------------------------------------------------
    # Archive metadata
    # ------------------------------------------------------------------

    def _read_manifest(self, archive: tarfile.TarFile) -> dict[str, Any]:
        manifest_list = self._read_json(archive, "manifest.json")
        if not isinstance(manifest_list, list) or not manifest_list:
            raise ImageLoadError("manifest.json must be a non-empty list")

        if len(manifest_list) > 1:
            logger.warning("Archive holds %d images; loading the first", len(manifest_list))

        manifest = manifest_list[0]
        if not isinstance(manifest, dict) or "Config" not in manifest or not isinstance(manifest.get("Layers"), list):
            raise ImageLoadError("manifest.json entry is missing Config or Layers")
        return manifest

    def _read_oci_media_types(self, archive: tarfile.TarFile) -> dict[str, str]:
        """Map layer digest -> media type from an OCI layout, if the archive has one."""
        try:
            index = self._read_json(archive, "index.json")
        except ImageLoadError:
            return {}

        if not isinstance(index, dict):
            return {}

        media_types: dict[str, str] = {}
        for descriptor in index.get("manifests") or []:
            try:
                image_manifest = self._read_json(archive, self._blob_path(descriptor["digest"]))
            except (ImageLoadError, KeyError, TypeError, AttributeError) as e:
                logger.debug("Skipping OCI index entry %s: %s", descriptor, e)
                continue
            if not isinstance(image_manifest, dict):
                continue
            for layer in image_manifest.get("layers") or []:
                if isinstance(layer, dict) and "digest" in layer and "mediaType" in layer:
                    media_types[layer["digest"]] = layer["mediaType"]
        return media_types

    @staticmethod
    def _blob_path(digest: str) -> str:
        algorithm, _, hex_digest = digest.partition(":")
        return f"blobs/{algorithm}/{hex_digest}"

    @staticmethod
    def _read_json(archive: tarfile.TarFile, name: str) -> Any:
        try:
            member = archive.extractfile(name)
        except KeyError:
            raise ImageLoadError(f"{name} not found in archive")
        if member is None:
            raise ImageLoadError(f"{name} is not a regular file")

        with member:
            try:
                return json.loads(member.read().decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ImageLoadError(f"Invalid JSON in {name}: {e}") from e

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def _copy_layer(
        self,
        archive: tarfile.TarFile,
        layer_path: str,
        blobs_dir: Path,
        index: int,
        media_types: dict[str, str],
    ) -> ArchiveLayer:
        try:
            source = archive.extractfile(layer_path)
        except KeyError:
            raise ImageLoadError(f"Layer {layer_path} not found in archive")
        if source is None:
            raise ImageLoadError(f"Layer {layer_path} is not a regular file")

        blob_path = blobs_dir / f"{index:03d}"
        hasher = hashlib.sha256()
        with source, open(blob_path, "wb") as target:
            while chunk := source.read(_COPY_CHUNK_SIZE):
                hasher.update(chunk)
                target.write(chunk)

        digest = f"sha256:{hasher.hexdigest()}"
        media_type = media_types.get(digest)
        if media_type is None:
            media_type = DOCKER_LAYER_GZIP_MEDIA_TYPE if _is_gzipped(blob_path) else DOCKER_LAYER_MEDIA_TYPE
        return ArchiveLayer(blob_path, digest, media_type)

    def _apply_layer(self, layer: ArchiveLayer, rootfs: Path) -> None:
        """Apply one layer on top of *rootfs*.

        Whiteouts only hide lower layers, so they are processed before any
        file of the same layer is written.
        """
        try:
            with tarfile.open(layer.blob_path, "r:*") as tf:
                members = tf.getmembers()

                for member in members:
                    parts = self._member_parts(member)
                    if parts and parts[-1].startswith(_WHITEOUT_PREFIX):
                        self._apply_whiteout(rootfs, parts)

                for member in members:
                    parts = self._member_parts(member)
                    if not parts or parts[-1].startswith(_WHITEOUT_PREFIX):
                        continue
                    self._extract_member(tf, member, rootfs, parts)
        except (tarfile.TarError, OSError) as e:
            raise ImageLoadError(f"Error extracting layer {layer.digest}: {e}") from e

    @staticmethod
    def _member_parts(member: tarfile.TarInfo) -> tuple[str, ...]:
        parts = tuple(p for p in PurePosixPath(member.name).parts if p not in ("/", "."))
        if ".." in parts:
            logger.debug("Skipping layer entry outside the root: %s", member.name)
            return ()
        return parts

    def _apply_whiteout(self, rootfs: Path, parts: tuple[str, ...]) -> None:
        parent = rootfs.joinpath(*parts[:-1])
        if parts[-1] == _OPAQUE_WHITEOUT:
            if parent.is_dir() and not parent.is_symlink():
                for child in parent.iterdir():
                    self._remove(child)
            return

        self._remove(parent / parts[-1][len(_WHITEOUT_PREFIX) :])

    def _extract_member(self, tf: tarfile.TarFile, member: tarfile.TarInfo, rootfs: Path, parts: tuple[str, ...]):
        target = rootfs.joinpath(*parts)
        # A file replaces whatever a lower layer had at the same path,
        # a directory merges with an existing directory.
        if target.is_symlink() or (target.exists() and not (member.isdir() and target.is_dir())):
            self._remove(target)

        try:
            tf.extract(member, rootfs, filter=_layer_filter)
        except tarfile.FilterError as e:
            logger.debug("Skipping layer entry %s: %s", member.name, e)

    @staticmethod
    def _remove(path: Path) -> None:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()


def _is_gzipped(path: Path) -> bool:
    with open(path, "rb") as fh:
        return fh.read(2) == _GZIP_MAGIC


def _layer_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo:
    """tarfile ``data`` filter that keeps extracted entries writable by us.

    Lower layers may ship read-only directories that upper layers write into.
    """
    member = tarfile.data_filter(member, dest_path)
    if member.mode is not None:
        if member.isdir():
            member = member.replace(mode=member.mode | 0o700, deep=False)
        elif member.isfile():
            member = member.replace(mode=member.mode | 0o600, deep=False)
    return member
