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
"""imgtf: container image test framework.

Builds test images that layer sample applications onto an image under test,
runs them under several runtime variants and asserts on HTTP responses,
process identity and CLI output.

Public API::

    from imgtf.scenario.model import Scenario, load_scenarios
    from imgtf.scenario.runner import ScenarioRunner
    from imgtf.exception import ImgtfError
"""

from imgtf.exception import (
    ArtifactMissing,
    AssertionMismatch,
    BuildFailed,
    CleanupWarning,
    ConfigurationError,
    ContainerStartFailed,
    ImgtfError,
    ReadinessTimeout,
)
