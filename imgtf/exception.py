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
"""Errors raised while running image test scenarios.

Every error carries the ``exit_code`` the process terminates with when the
error decides the outcome of a run.
"""


class ImgtfError(Exception):
    exit_code = 1

    def __init__(self, message, exit_code=None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(ImgtfError):
    """Invalid scenario file or environment configuration."""

    exit_code = 2


class ArtifactMissing(ImgtfError):
    """The application payload is absent or empty."""

    exit_code = 3


class BuildFailed(ImgtfError):
    """The test image could not be built."""

    exit_code = 4


class ContainerStartFailed(ImgtfError):
    exit_code = 5


class ReadinessTimeout(ImgtfError):
    """A bounded wait ran out of attempts."""

    exit_code = 6


class AssertionMismatch(ImgtfError):
    """Observed output differs from the expected value."""

    exit_code = 1

    def __init__(self, message, expected=None, actual=None, exit_code=None):
        super().__init__(message, exit_code=exit_code)
        self.expected = expected
        self.actual = actual


class CleanupWarning(ImgtfError):
    """Teardown did not complete. Logged only, never changes an outcome."""
