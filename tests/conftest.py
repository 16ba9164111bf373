# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import json
import tarfile
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest
from dotenv import load_dotenv

from preflight.core.image import DOCKER_LAYER_MEDIA_TYPE, ImageConfig, ImageInfo, ImageReference, Layer

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

project_root = Path(__file__).parent.parent
env_file = project_root / ".env"

if env_file.exists():
    load_dotenv(env_file)


# ---------------------------------------------------------------------------
# Canonical image content
# ---------------------------------------------------------------------------

UBI_OS_RELEASE = (
    'NAME="Red Hat Enterprise Linux"\n'
    'VERSION="8.9 (Ootpa)"\n'
    'ID="rhel"\n'
    'ID_LIKE="fedora"\n'
    'VERSION_ID="8.9"\n'
    'PRETTY_NAME="Red Hat Enterprise Linux 8.9 (Ootpa)"\n'
)

UBI_LABELS = {
    "com.redhat.component": "ubi8-container",
    "name": "ubi8",
    "vendor": "Red Hat, Inc.",
    "version": "8.9",
    "release": "1107",
    "summary": "Provides the latest release of Red Hat Universal Base Image 8.",
    "description": "The Universal Base Image is designed for containerized applications.",
}


# ---------------------------------------------------------------------------
# In-memory image doubles
# ---------------------------------------------------------------------------


class FakeLayer(Layer):
    """Layer backed by in-memory bytes; ``error`` makes every open fail."""

    def __init__(self, data: bytes = b"", digest: str | None = None, error: Exception | None = None):
        self.data = data
        self.error = error
        self._digest = digest or f"sha256:{hashlib.sha256(data).hexdigest()}"
        self.open_count = 0

    @property
    def media_type(self) -> str:
        return DOCKER_LAYER_MEDIA_TYPE

    @property
    def digest(self) -> str:
        return self._digest

    def uncompressed(self):
        self.open_count += 1
        if self.error is not None:
            raise self.error
        return io.BytesIO(self.data)


class FakeImageInfo(ImageInfo):
    def __init__(self, config: ImageConfig, layers: list[Layer]):
        self._config = config
        self._layers = layers

    def config_file(self) -> ImageConfig:
        return self._config

    def layers(self) -> list[Layer]:
        return list(self._layers)


@pytest.fixture
def make_image(tmp_path) -> Callable[..., ImageReference]:
    """Factory building an ImageReference over a rootfs under ``tmp_path``.

    ``files`` maps rootfs-relative paths to text content; ``os_release`` is a
    shortcut for ``etc/os-release`` (``None`` leaves it out).
    """
    counter = {"n": 0}

    def _make(
        labels: Mapping[str, str] | None = None,
        os_release: str | None = UBI_OS_RELEASE,
        user: str = "1001",
        layers: list[Layer] | None = None,
        files: Mapping[str, str] | None = None,
        image_uri: str = "registry.example.com/app:1.0",
    ) -> ImageReference:
        counter["n"] += 1
        rootfs = tmp_path / f"rootfs{counter['n']}"
        rootfs.mkdir()

        all_files = dict(files or {})
        if os_release is not None:
            all_files.setdefault("etc/os-release", os_release)
        for rel_path, content in all_files.items():
            path = rootfs / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

        config = ImageConfig(labels=dict(UBI_LABELS if labels is None else labels), user=user)
        if layers is None:
            layers = [FakeLayer(b"base"), FakeLayer(b"app")]
        return ImageReference(image_uri=image_uri, image_info=FakeImageInfo(config, layers), image_fs_path=rootfs)

    return _make


@pytest.fixture
def ubi_labels() -> dict[str, str]:
    return dict(UBI_LABELS)


@pytest.fixture
def ubi_os_release() -> str:
    return UBI_OS_RELEASE


@pytest.fixture
def make_layer() -> type[FakeLayer]:
    """Layer factory: ``make_layer(data)`` or ``make_layer(error=OSError(...))``."""
    return FakeLayer


@pytest.fixture
def ubi_image(make_image) -> ImageReference:
    """An image that satisfies every built-in check."""
    return make_image(files={"licenses/LICENSE": "Apache-2.0\n"})


# ---------------------------------------------------------------------------
# Archive builders
# ---------------------------------------------------------------------------


def _tar_bytes(entries: Mapping[str, bytes | None], symlinks: Mapping[str, str] | None = None) -> bytes:
    """Build an uncompressed tar; a ``None`` value (or trailing ``/``) is a directory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tf:
        for name, content in entries.items():
            info = tarfile.TarInfo(name.rstrip("/"))
            if content is None or name.endswith("/"):
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tf.addfile(info, io.BytesIO(content))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tf.addfile(info)
    return buf.getvalue()


@pytest.fixture
def build_archive(tmp_path) -> Callable[..., Path]:
    """Factory writing a ``docker save`` style archive.

    Each layer is a mapping of path -> bytes (``None`` for a directory).
    """

    def _build(
        layers: list[Mapping[str, bytes | None]],
        labels: Mapping[str, str] | None = None,
        user: str = "1001",
        repo_tags: list[str] | None = None,
        gzip_layers: bool = False,
        symlinks: list[Mapping[str, str]] | None = None,
        oci_media_type: str | None = None,
        name: str = "image.tar",
    ) -> Path:
        config = {
            "architecture": "amd64",
            "os": "linux",
            "config": {"Labels": dict(labels or {}), "User": user, "Env": ["PATH=/usr/bin"]},
            "rootfs": {"type": "layers", "diff_ids": []},
        }
        config_bytes = json.dumps(config).encode()
        config_name = f"blobs/sha256/{hashlib.sha256(config_bytes).hexdigest()}"

        blobs: dict[str, bytes] = {config_name: config_bytes}
        layer_names = []
        oci_layers = []
        for index, entries in enumerate(layers):
            blob = _tar_bytes(entries, (symlinks or [])[index] if symlinks and index < len(symlinks) else None)
            if gzip_layers:
                blob = gzip.compress(blob)
            digest = hashlib.sha256(blob).hexdigest()
            layer_name = f"blobs/sha256/{digest}"
            blobs[layer_name] = blob
            layer_names.append(layer_name)
            if oci_media_type:
                oci_layers.append({"mediaType": oci_media_type, "digest": f"sha256:{digest}", "size": len(blob)})

        manifest = [{"Config": config_name, "RepoTags": repo_tags or [], "Layers": layer_names}]
        blobs["manifest.json"] = json.dumps(manifest).encode()

        if oci_media_type:
            image_manifest = json.dumps(
                {
                    "schemaVersion": 2,
                    "mediaType": "application/vnd.oci.image.manifest.v1+json",
                    "config": {
                        "mediaType": "application/vnd.oci.image.config.v1+json",
                        "digest": "sha256:" + config_name.rsplit("/", 1)[1],
                    },
                    "layers": oci_layers,
                }
            ).encode()
            manifest_digest = hashlib.sha256(image_manifest).hexdigest()
            blobs[f"blobs/sha256/{manifest_digest}"] = image_manifest
            blobs["index.json"] = json.dumps(
                {"schemaVersion": 2, "manifests": [{"digest": f"sha256:{manifest_digest}"}]}
            ).encode()

        archive_path = tmp_path / name
        with tarfile.open(archive_path, "w") as tf:
            for blob_name, content in blobs.items():
                info = tarfile.TarInfo(blob_name)
                info.size = len(content)
                tf.addfile(info, io.BytesIO(content))
        return archive_path

    return _build


@pytest.fixture
def ubi_archive(build_archive) -> Path:
    """A two-layer archive that satisfies every built-in check."""
    return build_archive(
        [
            {"etc/": None, "etc/os-release": UBI_OS_RELEASE.encode(), "usr/": None},
            {"licenses/": None, "licenses/LICENSE": b"Apache-2.0\n"},
        ],
        labels=UBI_LABELS,
        repo_tags=["registry.example.com/ubi-app:1.0"],
    )
