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
import os
import shlex
from dataclasses import dataclass, field
from typing import Optional

from imgtf.exception import ConfigurationError


# Default retry settings: try COUNT times, waiting DELAY_S between each attempt
READINESS_RETRY_COUNT = 10
HTTP_RETRY_COUNT = 30
RETRY_DELAY_S = 1.0

# Timeout in seconds for a single HTTP probe
HTTP_TIMEOUT_S = 5

# Seconds a CLI application may run before it is considered hung
CLI_TIMEOUT_S = 120

# Seconds docker waits after SIGTERM before killing a container
STOP_TIMEOUT_S = 2

# Port the sample web applications listen on inside the container
DEFAULT_CONTAINER_PORT = 8080

# User id of the "random-uid" runtime variant
ALTERNATE_USER = "12345"

# Prefix of the scenario-scoped test image tags
TEST_IMAGE_PREFIX = "imgtf-testapp"

# Where the payload lands inside the test image
APP_ROOT = "/opt/app-root/app"

# Scenario file used when SCENARIOS is not set
DEFAULT_SCENARIOS_FILE = os.path.join("test", "scenarios.json")

# The source-to-image binary
S2I_BINARY = os.getenv("S2I_BINARY", default="s2i")


def _env_flag(environ, name):
    return environ.get(name, "").lower() == "true"


@dataclass
class ContainerArgs:
    """Runtime argument overrides applied to every container."""

    env: dict = field(default_factory=dict)
    user: Optional[str] = None
    mem_limit: Optional[str] = None

    @classmethod
    def parse(cls, value):
        """Parse a ``docker run`` style argument string.

        Only ``-e/--env``, ``-u/--user`` and ``-m/--memory`` are understood.
        """
        args = cls()
        tokens = shlex.split(value or "")
        while tokens:
            token = tokens.pop(0)
            name, _, inline = token.partition("=") if token.startswith("--") else (token, "", "")
            if name not in ("-e", "--env", "-u", "--user", "-m", "--memory"):
                raise ConfigurationError(f"Unsupported container argument: {token}")
            if inline:
                arg = inline
            elif tokens:
                arg = tokens.pop(0)
            else:
                raise ConfigurationError(f"Container argument {name} expects a value")

            if name in ("-e", "--env"):
                key, sep, val = arg.partition("=")
                args.env[key] = val if sep else os.environ.get(key, "")
            elif name in ("-u", "--user"):
                args.user = arg
            else:
                args.mem_limit = arg
        return args


@dataclass
class RunOptions:
    """Process level options, supplied through the environment."""

    image_name: str
    runtime_image_name: Optional[str] = None
    openshift_only: bool = False
    debug: bool = False
    container_args: ContainerArgs = field(default_factory=ContainerArgs)
    scenarios_file: str = DEFAULT_SCENARIOS_FILE
    test_image_name: Optional[str] = None
    host_port: Optional[int] = None

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ

        image_name = environ.get("IMAGE_NAME", "")
        if not image_name:
            raise ConfigurationError("IMAGE_NAME must name the image under test")

        host_port = environ.get("HOST_PORT") or None
        if host_port is not None:
            try:
                host_port = int(host_port)
            except ValueError as exc:
                raise ConfigurationError(f"HOST_PORT is not a port number: {host_port}") from exc

        return cls(
            image_name=image_name,
            runtime_image_name=environ.get("RUNTIME_IMAGE_NAME") or None,
            openshift_only=_env_flag(environ, "OPENSHIFT_ONLY"),
            debug=_env_flag(environ, "DEBUG"),
            container_args=ContainerArgs.parse(environ.get("CONTAINER_ARGS", "")),
            scenarios_file=environ.get("SCENARIOS") or DEFAULT_SCENARIOS_FILE,
            test_image_name=environ.get("TEST_IMAGE_NAME") or None,
            host_port=host_port,
        )
