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
"""Runs scenarios end to end.

One scenario run walks the states of :class:`ScenarioState`::

    PREPARING -> BUILDING -> (STARTING -> AWAITING_READY -> ASSERTING)* -> CLEANING_UP -> DONE

The inner states repeat once per runtime variant.  Any failure jumps
straight to ``CLEANING_UP``, which is entered exactly once per run and
removes containers, the test image and the build context in that order.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import docker
import requests

import imgtf.config as imgtf_config
from imgtf.core.utils import expected_actual_block, padder
from imgtf.exception import AssertionMismatch, CleanupWarning, ImgtfError, ReadinessTimeout
from imgtf.scenario.model import ScenarioKind

logger = logging.getLogger(__name__)


class ScenarioState(Enum):
    PREPARING = "preparing"
    BUILDING = "building"
    STARTING = "starting"
    AWAITING_READY = "awaiting_ready"
    ASSERTING = "asserting"
    CLEANING_UP = "cleaning_up"
    DONE = "done"


@dataclass
class ScenarioResult:
    name: str
    states: list = field(default_factory=list)
    error: Optional[ImgtfError] = None
    cleanup_warnings: list = field(default_factory=list)

    @property
    def passed(self):
        return self.error is None

    @property
    def exit_code(self):
        return 0 if self.error is None else self.error.exit_code


def exit_code(results):
    """Exit status of a run: the first failure's code, or 0."""
    for result in results:
        if not result.passed:
            return result.exit_code
    return 0


class ScenarioRunner:
    """Drives scenarios through preparation, containers and assertions.

    Parameters:
        preparer: :class:`~imgtf.core.artifact.ArtifactPreparer`.
        lifecycle: :class:`~imgtf.core.container.ContainerLifecycle`.
        engine: :class:`~imgtf.core.assertion.AssertionEngine`.
        host_port: Fixed host port for web containers, ``None`` to let the
            runtime pick one.
        readiness_attempts: Probes while waiting for a container to appear.
        cli_timeout: Seconds a CLI application may run.
    """

    def __init__(
        self,
        preparer,
        lifecycle,
        engine,
        host_port: Optional[int] = None,
        readiness_attempts: int = imgtf_config.READINESS_RETRY_COUNT,
        cli_timeout: float = imgtf_config.CLI_TIMEOUT_S,
    ):
        self._preparer = preparer
        self._lifecycle = lifecycle
        self._engine = engine
        self._host_port = host_port
        self._readiness_attempts = readiness_attempts
        self._cli_timeout = cli_timeout

    def run_all(self, scenarios):
        """Run *scenarios* in order, stopping at the first failure.

        Returns:
            The results of the scenarios that ran.
        """
        results = []
        for scenario in scenarios:
            result = self.run(scenario)
            results.append(result)
            if not result.passed:
                logger.error(f"Scenario {scenario.name} FAILED, skipping the remaining scenarios")
                break
        return results

    def run(self, scenario) -> ScenarioResult:
        logger.info(padder(f"Scenario {scenario.name}"))
        result = ScenarioResult(name=scenario.name)
        context = None
        handles = []
        try:
            self._enter(result, ScenarioState.PREPARING)
            context = self._preparer.prepare(scenario)

            self._enter(result, ScenarioState.BUILDING)
            image = self._preparer.build_image(context)

            for variant in scenario.variants:
                self._run_variant(scenario, image, variant, result, handles)
        except ImgtfError as exc:
            result.error = exc
        except docker.errors.DockerException as exc:
            result.error = ImgtfError(f"Container runtime error: {exc}")
        except requests.exceptions.RequestException as exc:
            result.error = ImgtfError(f"Lost connection to the container runtime: {exc}")
        except OSError as exc:
            result.error = ImgtfError(f"Host error: {exc}")
        finally:
            if result.error is not None:
                self._report(scenario, result.error)
            self._enter(result, ScenarioState.CLEANING_UP)
            self._cleanup(context, handles, result)
            self._enter(result, ScenarioState.DONE)

        if result.passed:
            logger.info(f"Scenario {scenario.name} PASSED")
        return result

    def _run_variant(self, scenario, image, variant, result, handles):
        logger.info(f"Testing {scenario.name} with variant [{variant.name}]")
        self._enter(result, ScenarioState.STARTING)
        web = scenario.kind is ScenarioKind.WEB
        handle = self._lifecycle.start(
            image,
            variant,
            port=scenario.port if web else None,
            host_port=self._host_port if web else None,
        )
        handles.append(handle)

        self._enter(result, ScenarioState.AWAITING_READY)
        if not self._lifecycle.wait_for_identity(handle, self._readiness_attempts):
            raise ReadinessTimeout(f"Container {handle.short_id} was not reported by the runtime")

        if web:
            if scenario.pid1:
                command_line = self._lifecycle.pid1_command(handle)
                self._engine.assert_pid1(command_line, scenario.pid1).check()

            self._enter(result, ScenarioState.ASSERTING)
            address = f"http://{self._lifecycle.inspect_address(handle)}:{scenario.port}"
            self._engine.assert_http(address, scenario.path, scenario.matcher.value, scenario.output_filter).check()
        else:
            self._enter(result, ScenarioState.ASSERTING)
            probe = self._lifecycle.wait_for_exit(handle, self._cli_timeout)
            if not probe.success:
                raise AssertionMismatch(
                    f"{scenario.name} exited with code {probe.status}",
                    expected="exit code 0",
                    actual=f"exit code {probe.status}\n{probe.output}",
                )
            self._engine.assert_cli(probe.output, scenario).check()

        logger.info(f"Variant [{variant.name}] of {scenario.name} passed")
        handles.remove(handle)
        self._stop(handle, result)

    def _cleanup(self, context, handles, result):
        for handle in list(handles):
            self._stop(handle, result)
        handles.clear()
        if context is not None:
            result.cleanup_warnings.extend(self._preparer.teardown(context))
        for warning in result.cleanup_warnings:
            logger.warning(f"Cleanup of {result.name}: {warning}")

    def _stop(self, handle, result):
        try:
            self._lifecycle.stop(handle)
        except (docker.errors.DockerException, requests.exceptions.RequestException) as exc:
            result.cleanup_warnings.append(CleanupWarning(f"Could not remove container {handle.short_id}: {exc}"))

    @staticmethod
    def _enter(result, state):
        logger.debug(f"{result.name}: entering {state.value}")
        result.states.append(state)

    @staticmethod
    def _report(scenario, error):
        logger.error(f"Scenario {scenario.name} failed: {error}")
        if isinstance(error, AssertionMismatch):
            logger.error("\n" + expected_actual_block(error.expected, error.actual, title=f"{scenario.name} FAILED"))
