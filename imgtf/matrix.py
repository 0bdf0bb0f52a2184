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
"""Builds the images of every version and runs their scenario files.

Supported environment variables:

    VERSIONS        The versions to build/test, i.e. "1.0 1.1". Defaults to all.
    TEST_OPENSHIFT  If 'true', also test the released registry images in
                    OpenShift-only mode.
    DEBUG           If 'true', log at debug level.
    CONTAINER_ARGS  Runtime argument overrides forwarded to every container.

Layout expected below the working directory::

    1.0/Dockerfile.rhel7              1.x: a single image per version
    1.0/test/scenarios.json
    2.0/runtime/Dockerfile.rhel7      2.x: a runtime and a build image
    2.0/runtime/test/scenarios.json
    2.0/build/Dockerfile.rhel7
    2.0/build/test/scenarios.json
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

import docker

from imgtf import bootstrap
from imgtf.config import ContainerArgs, RunOptions
from imgtf.core.docker import build_image, get_docker_client, image_exists
from imgtf.exception import BuildFailed, ImgtfError

logger = logging.getLogger(__name__)

DEFAULT_VERSIONS = "1.0 1.1 2.0"
SINGLE_IMAGE_VERSIONS = ("1.0", "1.1")
DOCKERFILE = "Dockerfile.rhel7"
NAMESPACE = "dotnet"
REGISTRY = "registry.access.redhat.com"


def base_image_name(version):
    no_dot = version.replace(".", "")
    if version.startswith("1"):
        return f"dotnetcore-{no_dot}"
    return f"dotnet-{no_dot}"


def registry_name(name):
    return f"{REGISTRY}/{name}:latest"


@dataclass
class ImageTarget:
    """An image built from *path* and tested with ``<path>/test/scenarios.json``."""

    path: str
    name: str
    runtime_name: Optional[str] = None

    @property
    def scenarios_file(self):
        return os.path.join(self.path, "test", "scenarios.json")


def image_targets(version, namespace=NAMESPACE):
    """Images of *version*, in build order."""
    build_name = f"{namespace}/{base_image_name(version)}-rhel7"
    if version in SINGLE_IMAGE_VERSIONS:
        return [ImageTarget(path=version, name=build_name)]

    runtime_name = f"{namespace}/{base_image_name(version)}-runtime-rhel7"
    return [
        ImageTarget(path=os.path.join(version, "runtime"), name=runtime_name),
        ImageTarget(path=os.path.join(version, "build"), name=build_name, runtime_name=runtime_name),
    ]


class ImageMatrix:
    """Builds and tests the images of a list of versions, fail-fast."""

    def __init__(self, client, root=".", test_openshift=False, container_args=None, debug=False):
        self._client = client
        self._root = root
        self._test_openshift = test_openshift
        self._container_args = container_args or ContainerArgs()
        self._debug = debug

    def build(self, target):
        """Build *target* unless the image exists. Returns ``False`` when skipped."""
        if image_exists(self._client, target.name):
            logger.info(f"Image {target.name} exists, not rebuilding")
            return True

        path = os.path.join(self._root, target.path)
        if not os.path.isdir(path):
            logger.warning(f"No directory found at given location '{path}'. Skipping this image.")
            return False

        logger.info(f"Building Docker image {target.name} ...")
        try:
            build_image(self._client, path, target.name, dockerfile=DOCKERFILE)
        except (docker.errors.BuildError, docker.errors.APIError) as exc:
            raise BuildFailed(f"Building Docker image {target.name} FAILED!") from exc
        return True

    def test(self, target, image_name, runtime_name=None, openshift_only=False):
        options = RunOptions(
            image_name=image_name,
            runtime_image_name=runtime_name,
            openshift_only=openshift_only,
            debug=self._debug,
            container_args=self._container_args,
            scenarios_file=os.path.join(self._root, target.scenarios_file),
        )
        return bootstrap.run(options, self._client)

    def run(self, versions):
        """Build and test every version. Returns the first failing exit code, or 0."""
        for version in versions:
            targets = image_targets(version)
            for target in targets:
                if not self.build(target):
                    continue
                logger.info("Running tests...")
                code = self.test(target, target.name, target.runtime_name)
                if code:
                    logger.error("Tests FAILED!")
                    return code

            if self._test_openshift:
                for target in targets:
                    image_name = registry_name(target.name)
                    runtime_name = registry_name(target.runtime_name) if target.runtime_name else None
                    logger.info(f"Running OpenShift tests on image {image_name} ...")
                    code = self.test(target, image_name, runtime_name, openshift_only=True)
                    if code:
                        logger.error(f"Tests for image {image_name} FAILED!")
                        return code

        logger.info("ALL builds and tests were successful!")
        return 0


def main(environ=None):
    environ = os.environ if environ is None else environ
    debug = environ.get("DEBUG", "").lower() == "true"
    bootstrap.configure_logging(debug)

    versions = (environ.get("VERSIONS") or DEFAULT_VERSIONS).split()
    try:
        matrix = ImageMatrix(
            get_docker_client(),
            test_openshift=environ.get("TEST_OPENSHIFT", "").lower() == "true",
            container_args=ContainerArgs.parse(environ.get("CONTAINER_ARGS", "")),
            debug=debug,
        )
        return matrix.run(versions)
    except ImgtfError as exc:
        logger.error(str(exc))
        return exc.exit_code
    except docker.errors.DockerException as exc:
        logger.error(f"Cannot reach the container runtime: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
