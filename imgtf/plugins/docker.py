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
"""Pytest plugin exposing the image test building blocks as fixtures.

Load it with ``-p imgtf.plugins.docker``::

    def test_hello(scenario_runner, helloworld_scenario):
        result = scenario_runner.run(helloworld_scenario)
        assert result.passed, result.error
"""

import logging
import os

import pytest

from imgtf.config import ContainerArgs
from imgtf.core.artifact import ArtifactPreparer, S2iBuilder
from imgtf.core.assertion import AssertionEngine
from imgtf.core.container import ContainerLifecycle
from imgtf.core.docker import get_docker_client
from imgtf.scenario.runner import ScenarioRunner

logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    parser.addoption(
        "--image-name",
        action="store",
        required=False,
        default=os.environ.get("IMAGE_NAME"),
        help="Image under test. Defaults to the IMAGE_NAME environment variable.",
    )
    parser.addoption(
        "--runtime-image-name",
        action="store",
        required=False,
        default=os.environ.get("RUNTIME_IMAGE_NAME"),
        help="Runtime image paired with the image under test for s2i builds.",
    )
    parser.addoption(
        "--container-args",
        action="store",
        required=False,
        default=os.environ.get("CONTAINER_ARGS", ""),
        help="Runtime argument overrides for every container, e.g. '-e FOO=bar -u 1001'.",
    )


@pytest.fixture(scope="session")
def image_under_test(request):
    image = request.config.getoption("image_name")
    if not image:
        raise ValueError("--image-name (or IMAGE_NAME) is required when using the imgtf plugin.")
    return image


@pytest.fixture(scope="session")
def container_args(request):
    return ContainerArgs.parse(request.config.getoption("container_args"))


@pytest.fixture(scope="session")
def docker_client():
    client = get_docker_client()
    yield client
    client.close()


@pytest.fixture
def container_lifecycle(docker_client, container_args):
    """Lifecycle whose containers are all stopped when the test ends."""
    lifecycle = ContainerLifecycle(docker_client, container_args=container_args)
    yield lifecycle
    lifecycle.stop_all()


@pytest.fixture
def assertion_engine():
    return AssertionEngine()


@pytest.fixture
def artifact_preparer(request, docker_client, image_under_test):
    return ArtifactPreparer(
        docker_client,
        base_image=image_under_test,
        s2i=S2iBuilder(runtime_image=request.config.getoption("runtime_image_name")),
    )


@pytest.fixture
def scenario_runner(artifact_preparer, container_lifecycle, assertion_engine):
    return ScenarioRunner(artifact_preparer, container_lifecycle, assertion_engine)
