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
"""Example: run the scenarios of this directory against an image.

    pytest -p imgtf.plugins.docker --image-name dotnet/dotnet-20-rhel7 examples/imgtf

The application payloads referenced by ``scenarios.json`` are not shipped.
Publish each sample application and pack it as ``apps/<name>.tar.gz`` next
to this file before running; missing payloads fail with ``ArtifactMissing``.
"""

import os

import pytest

from imgtf.scenario.model import load_scenarios

SCENARIOS = load_scenarios(os.path.join(os.path.dirname(__file__), "scenarios.json"))


@pytest.mark.parametrize("scenario", SCENARIOS, ids=[s.name for s in SCENARIOS])
def test_scenario(scenario_runner, scenario):
    result = scenario_runner.run(scenario)
    assert result.passed, result.error