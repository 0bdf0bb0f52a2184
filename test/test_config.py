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
import pytest

from imgtf.config import DEFAULT_SCENARIOS_FILE, ContainerArgs, RunOptions
from imgtf.exception import ConfigurationError


def test_image_name_is_required():
    with pytest.raises(ConfigurationError, match="IMAGE_NAME"):
        RunOptions.from_env({})


def test_defaults():
    options = RunOptions.from_env({"IMAGE_NAME": "dotnet/dotnet-20-rhel7"})
    assert options.image_name == "dotnet/dotnet-20-rhel7"
    assert options.runtime_image_name is None
    assert options.openshift_only is False
    assert options.debug is False
    assert options.scenarios_file == DEFAULT_SCENARIOS_FILE
    assert options.test_image_name is None
    assert options.host_port is None
    assert options.container_args == ContainerArgs()


def test_all_options():
    options = RunOptions.from_env(
        {
            "IMAGE_NAME": "registry.access.redhat.com/dotnet/dotnet-20-rhel7:latest",
            "RUNTIME_IMAGE_NAME": "dotnet/dotnet-20-runtime-rhel7",
            "OPENSHIFT_ONLY": "true",
            "DEBUG": "TRUE",
            "CONTAINER_ARGS": "-u 1001 -e DOTNET_CLI_TELEMETRY_OPTOUT=1",
            "SCENARIOS": "2.0/build/test/scenarios.json",
            "TEST_IMAGE_NAME": "dotnet-test-app",
            "HOST_PORT": "8080",
        }
    )
    assert options.runtime_image_name == "dotnet/dotnet-20-runtime-rhel7"
    assert options.openshift_only
    assert options.debug
    assert options.container_args == ContainerArgs(env={"DOTNET_CLI_TELEMETRY_OPTOUT": "1"}, user="1001")
    assert options.scenarios_file == "2.0/build/test/scenarios.json"
    assert options.test_image_name == "dotnet-test-app"
    assert options.host_port == 8080


def test_invalid_host_port():
    with pytest.raises(ConfigurationError, match="HOST_PORT"):
        RunOptions.from_env({"IMAGE_NAME": "img", "HOST_PORT": "http"})


def test_container_args_long_forms():
    args = ContainerArgs.parse("--env=A=1 --env B=2 --user=12345 --memory 512m")
    assert args == ContainerArgs(env={"A": "1", "B": "2"}, user="12345", mem_limit="512m")


def test_container_args_env_passthrough(monkeypatch):
    monkeypatch.setenv("HTTP_PROXY", "http://proxy:3128")
    assert ContainerArgs.parse("-e HTTP_PROXY").env == {"HTTP_PROXY": "http://proxy:3128"}


def test_container_args_rejects_unknown_flags():
    with pytest.raises(ConfigurationError, match="--privileged"):
        ContainerArgs.parse("--privileged")


def test_container_args_missing_value():
    with pytest.raises(ConfigurationError, match="expects a value"):
        ContainerArgs.parse("-u")
