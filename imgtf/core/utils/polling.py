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
"""Bounded fixed-interval polling.

Every wait in the framework is a probe called repeatedly with a hard
attempt cap.  Running out of attempts is a normal ``False`` outcome, not an exception.
"""

import logging
import time

import tenacity

logger = logging.getLogger(__name__)


def _not_true(result):
    return result is not True


def wait_until(probe, max_attempts, interval, sleep=time.sleep):
    """Call *probe* until it returns ``True`` or *max_attempts* calls were made.

    A probe raising an exception counts as an unsuccessful attempt.

    :param callable probe: Zero-argument callable returning a bool.
    :param int max_attempts: Upper bound on the number of probe calls.
    :param float interval: Seconds slept between two calls.
    :param callable sleep: Sleep function, replaceable in tests.
    :return: Whether the probe succeeded within the attempt budget.
    :rtype: bool
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    def _log_attempt(retry_state):
        if retry_state.outcome.failed:
            logger.debug(
                "Probe attempt %d/%d raised: %s",
                retry_state.attempt_number,
                max_attempts,
                retry_state.outcome.exception(),
            )
        else:
            logger.debug("Probe attempt %d/%d not ready", retry_state.attempt_number, max_attempts)

    retrying = tenacity.Retrying(
        wait=tenacity.wait_fixed(interval),
        stop=tenacity.stop_after_attempt(max_attempts),
        retry=tenacity.retry_if_exception_type() | tenacity.retry_if_result(_not_true),
        before_sleep=_log_attempt,
        retry_error_callback=lambda retry_state: False,
        sleep=sleep,
    )
    return bool(retrying(lambda: bool(probe())))
