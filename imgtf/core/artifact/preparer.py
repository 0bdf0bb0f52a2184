# *******************************************************************************
# Copyright (c) 2026 Contributors to the Eclipse Foundation
#
# See the NOTICE file(s) distributed with this work for additional
# information regarding copyright ownership.
#
# This program and the accompanying materials are made available under the
# terms of the Apache License Version 2.0 which is available at
# https://www.apache.org/licenses/LICENSE-2.0
#
# SPDX-License-Identifier: Apache-2.0
# *******************************************************************************
"""Materializes application payloads into build contexts and test images.

For every scenario run :meth:`ArtifactPreparer.prepare` creates a fresh
temporary build context holding the payload and a generated ``Dockerfile``
that layers it onto the image under test.  :meth:`ArtifactPreparer.teardown`
removes the test image and the directory again, whatever happened in between.
"""

import json
import logging
import os
import re
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from typing import Optional

import docker
import requests

import imgtf.config as imgtf_config
from imgtf.core.artifact.s2i import S2iBuilder
from imgtf.core.docker import build_image, remove_image
from imgtf.exception import ArtifactMissing, BuildFailed, CleanupWarning

logger = logging.getLogger(__name__)

DESCRIPTOR_NAME = "Dockerfile"


@dataclass
class BuildContext:
    """Per-run build directory of one scenario.

    Attributes:
        scenario: The scenario the context was prepared for.
        directory: Temporary directory, deleted by ``teardown``.
        image_tag: Tag of the test image built from this context.
        payload: Path of the payload copied into ``directory``.
        descriptor: Path of the generated ``Dockerfile``, ``None`` for s2i builds.
    """

    scenario: object
    directory: str
    image_tag: str
    payload: Optional[str] = None
    descriptor: Optional[str] = None


def _slug(name):
    """Lower-case *name* to something usable in image tags and file names."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "app"


def _is_remote(source):
    return "://" in source or source.startswith("git@")


def render_descriptor(base_image, payload_name, entrypoint, app_root=imgtf_config.APP_ROOT):
    """Return a ``Dockerfile`` layering *payload_name* onto *base_image*.

    ``ADD`` extracts tarballs, so packaged applications land unpacked in
    *app_root*.
    """
    lines = [
        f"FROM {base_image}",
        f"ADD {payload_name} {app_root.rstrip('/')}/",
        f"WORKDIR {app_root}",
    ]
    if entrypoint:
        lines.append(f"CMD {json.dumps(list(entrypoint))}")
    return "\n".join(lines) + "\n"


class ArtifactPreparer:
    """Creates build contexts and test images for scenarios.

    Parameters:
        client: ``docker.DockerClient`` used for builds and image removal.
        base_image: The image under test.
        s2i: :class:`S2iBuilder` for scenarios built from sources.
        test_image_name: Fixed test image tag. When unset, every context gets
            its own ``<prefix>-<scenario>-<random>`` tag.
        tmp_root: Parent directory of the build contexts.
    """

    def __init__(self, client, base_image, s2i=None, test_image_name=None, tmp_root=None):
        self._client = client
        self._base_image = base_image
        self._s2i = s2i or S2iBuilder()
        self._test_image_name = test_image_name
        self._tmp_root = tmp_root

    def image_tag(self, scenario):
        if self._test_image_name:
            return self._test_image_name
        return f"{imgtf_config.TEST_IMAGE_PREFIX}-{_slug(scenario.name)}-{uuid.uuid4().hex[:8]}"

    def prepare(self, scenario) -> BuildContext:
        """Create the build context of *scenario*.

        Raises:
            ArtifactMissing: the payload archive (or local source directory)
                is absent or empty.  No directory is left behind.
        """
        directory = tempfile.mkdtemp(prefix=f"imgtf-{_slug(scenario.name)}-", dir=self._tmp_root)
        os.chmod(directory, 0o700)
        context = BuildContext(scenario=scenario, directory=directory, image_tag=self.image_tag(scenario))
        try:
            if scenario.uses_s2i:
                self._materialize_source(context)
            else:
                self._materialize_archive(context)
        except Exception:
            shutil.rmtree(directory, ignore_errors=True)
            raise

        # Open up once populated so the image builder can read the context
        os.chmod(directory, 0o755)
        logger.info(f"Prepared build context {directory} for {scenario.name}")
        return context

    def build_image(self, context) -> str:
        """Build the test image of *context* and return its tag.

        Raises:
            BuildFailed: the image build did not succeed.
        """
        scenario = context.scenario
        if scenario.uses_s2i:
            return self._s2i.build(
                context.payload,
                self._base_image,
                context.image_tag,
                context_dir=scenario.context_dir,
                env=scenario.env,
            )

        try:
            build_image(self._client, context.directory, context.image_tag, dockerfile=DESCRIPTOR_NAME)
        except docker.errors.BuildError as exc:
            for chunk in exc.build_log:
                if "stream" in chunk:
                    logger.error(chunk["stream"].rstrip("\n"))
            raise BuildFailed(f"Building test image {context.image_tag} failed: {exc.msg}") from exc
        except docker.errors.APIError as exc:
            raise BuildFailed(f"Building test image {context.image_tag} failed: {exc}") from exc
        return context.image_tag

    def teardown(self, context):
        """Remove the test image and the build directory.

        Runs unconditionally, also when the build never happened or failed.

        Returns:
            A list of :class:`CleanupWarning` for whatever could not be removed.
        """
        warnings = []
        try:
            remove_image(self._client, context.image_tag)
        except (docker.errors.APIError, requests.exceptions.RequestException) as exc:
            warnings.append(CleanupWarning(f"Could not remove test image {context.image_tag}: {exc}"))

        try:
            shutil.rmtree(context.directory)
            logger.debug(f"Removed build context {context.directory}")
        except FileNotFoundError:
            logger.debug(f"Build context {context.directory} already removed")
        except OSError as exc:
            warnings.append(CleanupWarning(f"Could not remove build context {context.directory}: {exc}"))
        return warnings

    def _materialize_archive(self, context):
        archive = context.scenario.archive
        if not os.path.isfile(archive):
            raise ArtifactMissing(f"Application archive not found: {archive}")
        if os.path.getsize(archive) == 0:
            raise ArtifactMissing(f"Application archive is empty: {archive}")

        payload_name = os.path.basename(archive)
        context.payload = shutil.copy2(archive, os.path.join(context.directory, payload_name))
        context.descriptor = os.path.join(context.directory, DESCRIPTOR_NAME)
        with open(context.descriptor, "w") as f:
            f.write(render_descriptor(self._base_image, payload_name, context.scenario.entrypoint))

    def _materialize_source(self, context):
        source = context.scenario.source
        if _is_remote(source):
            context.payload = source
            return
        if not os.path.isdir(source) or not os.listdir(source):
            raise ArtifactMissing(f"Application source directory missing or empty: {source}")
        context.payload = os.path.join(context.directory, "src")
        shutil.copytree(source, context.payload, symlinks=True)
