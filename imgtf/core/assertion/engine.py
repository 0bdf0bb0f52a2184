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
"""Assertions against running test containers.

:class:`AssertionEngine` probes a web application over HTTP or inspects the
captured output of a CLI application and returns an :class:`AssertionResult`.
Results never raise on their own; call :meth:`AssertionResult.check` to turn
a failure into :class:`~imgtf.exception.AssertionMismatch` or
:class:`~imgtf.exception.ReadinessTimeout`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests

import imgtf.config as imgtf_config
from imgtf.core.assertion.matchers import SubstringMatch, get_filter
from imgtf.core.container import ProbeResult
from imgtf.core.utils import wait_until
from imgtf.exception import AssertionMismatch, ReadinessTimeout

logger = logging.getLogger(__name__)

MISMATCH = "mismatch"
TIMEOUT = "timeout"


@dataclass
class AssertionResult:
    passed: bool
    expected: str
    actual: Optional[str]
    reason: str = ""
    description: str = ""

    def check(self):
        """Raise if the assertion failed, otherwise return ``self``."""
        if self.passed:
            return self
        if self.reason == TIMEOUT:
            raise ReadinessTimeout(f"{self.description}: no successful response within the attempt budget")
        raise AssertionMismatch(
            f"{self.description}: expected {self.expected!r}, got {self.actual!r}",
            expected=self.expected,
            actual=self.actual,
        )


def _resolve_filter(output_filter):
    if callable(output_filter):
        return output_filter
    return get_filter(output_filter)


class AssertionEngine:
    """Runs HTTP, CLI and process identity checks.

    Parameters:
        session: ``requests`` session used for HTTP probes.
        attempts: Maximum HTTP probes before giving up.
        interval: Seconds between two HTTP probes.
        timeout: Timeout of a single HTTP request.
        sleep: Sleep function used between probes.
    """

    def __init__(
        self,
        session=None,
        attempts: int = imgtf_config.HTTP_RETRY_COUNT,
        interval: float = imgtf_config.RETRY_DELAY_S,
        timeout: float = imgtf_config.HTTP_TIMEOUT_S,
        sleep=time.sleep,
    ):
        self._session = session or requests.Session()
        self._attempts = attempts
        self._interval = interval
        self._timeout = timeout
        self._sleep = sleep

    def probe_http(self, url) -> ProbeResult:
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            logger.debug("GET %s failed: %s", url, exc)
            return ProbeResult(success=False, output="", status=None)
        return ProbeResult(success=response.status_code == 200, output=response.text, status=response.status_code)

    def assert_http(self, base_address, path, expected, output_filter=None) -> AssertionResult:
        """GET *path* until it answers 200 and compare the body with *expected*.

        The comparison is plain equality, so an intentionally empty expected
        body only matches an empty response.
        """
        url = f"{base_address.rstrip('/')}/{path.lstrip('/')}"
        description = f"GET {url}"
        probes = []

        def _probe():
            probes.append(self.probe_http(url))
            return probes[-1].success

        logger.info(f"Waiting for {url} to answer with status 200")
        if not wait_until(_probe, self._attempts, self._interval, sleep=self._sleep):
            last = probes[-1] if probes else None
            logger.error(f"{url} did not answer with status 200 after {self._attempts} attempts (last: {last})")
            return AssertionResult(
                passed=False,
                expected=expected,
                actual=last.output if last else None,
                reason=TIMEOUT,
                description=description,
            )

        actual = _resolve_filter(output_filter)(probes[-1].output)
        passed = actual == expected
        return AssertionResult(
            passed=passed,
            expected=expected,
            actual=actual,
            reason="" if passed else MISMATCH,
            description=description,
        )

    def assert_cli(self, output, scenario) -> AssertionResult:
        """Filter *output* with the scenario's filter and apply its matcher."""
        actual = _resolve_filter(scenario.output_filter)(output)
        passed = scenario.matcher.matches(actual)
        return AssertionResult(
            passed=passed,
            expected=scenario.matcher.describe(),
            actual=actual,
            reason="" if passed else MISMATCH,
            description=f"{scenario.name} output",
        )

    def assert_pid1(self, command_line, expected) -> AssertionResult:
        """Check that the PID 1 command line contains *expected*."""
        passed = SubstringMatch(expected).matches(command_line)
        return AssertionResult(
            passed=passed,
            expected=expected,
            actual=command_line,
            reason="" if passed else MISMATCH,
            description="PID 1 command",
        )
