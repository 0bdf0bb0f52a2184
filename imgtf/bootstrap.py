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
"""Process entry point: runs the scenario file against ``IMAGE_NAME``.

All options come from the environment (see :class:`imgtf.config.RunOptions`)::

    IMAGE_NAME=dotnet/dotnet-20-rhel7 SCENARIOS=2.0/build/test/scenarios.json imgtf
"""

import logging
import sys

import docker

from imgtf.config import RunOptions
from imgtf.core.artifact import ArtifactPreparer, S2iBuilder
from imgtf.core.assertion import AssertionEngine
from imgtf.core.container import ContainerLifecycle
from imgtf.core.docker import get_docker_client
from imgtf.exception import ImgtfError
from imgtf.scenario.model import load_scenarios, select_scenarios
from imgtf.scenario.runner import ScenarioRunner, exit_code

logger = logging.getLogger(__name__)


def configure_logging(debug=False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def create_runner(options, client=None):
    """Wire a :class:`ScenarioRunner` for *options*."""
    client = client or get_docker_client()
    preparer = ArtifactPreparer(
        client,
        base_image=options.image_name,
        s2i=S2iBuilder(runtime_image=options.runtime_image_name),
        test_image_name=options.test_image_name,
    )
    lifecycle = ContainerLifecycle(client, container_args=options.container_args)
    return ScenarioRunner(preparer, lifecycle, AssertionEngine(), host_port=options.host_port)


def run(options, client=None):
    """Run the configured scenarios and return the process exit code."""
    scenarios = select_scenarios(load_scenarios(options.scenarios_file), options.openshift_only)
    if not scenarios:
        logger.warning(f"No scenarios selected from {options.scenarios_file}")
        return 0

    mode = " (OpenShift only)" if options.openshift_only else ""
    logger.info(f"Testing image {options.image_name} with {len(scenarios)} scenarios{mode}")
    results = create_runner(options, client).run_all(scenarios)

    code = exit_code(results)
    if code == 0:
        logger.info(f"All {len(results)} scenarios passed for {options.image_name}")
    return code


def main(environ=None):
    try:
        options = RunOptions.from_env(environ)
    except ImgtfError as exc:
        configure_logging()
        logger.error(str(exc))
        return exc.exit_code

    configure_logging(options.debug)
    try:
        return run(options)
    except ImgtfError as exc:
        logger.error(str(exc))
        return exc.exit_code
    except docker.errors.DockerException as exc:
        logger.error(f"Cannot reach the container runtime: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
