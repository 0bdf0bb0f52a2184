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
import json
import os

import pytest

from imgtf.core.assertion import ExactMatch, PrefixTokenMatch, SubstringMatch
from imgtf.exception import ConfigurationError
from imgtf.scenario.model import (
    DEFAULT_VARIANT,
    RANDOM_UID_VARIANT,
    RuntimeVariant,
    ScenarioKind,
    load_scenarios,
    parse_scenario,
    select_scenarios,
)


def write_scenarios(directory, scenarios):
    path = directory / "scenarios.json"
    path.write_text(json.dumps({"scenarios": scenarios}))
    return str(path)


def test_cli_scenario_defaults(tmp_path):
    path = write_scenarios(tmp_path, [{"name": "helloworld", "archive": "apps/helloworld.tar.gz", "expected": "Hello World!"}])
    (scenario,) = load_scenarios(path)
    assert scenario.kind is ScenarioKind.CLI
    assert scenario.matcher == SubstringMatch("Hello World!")
    assert scenario.variants == (DEFAULT_VARIANT, RANDOM_UID_VARIANT)
    assert scenario.archive == os.path.join(str(tmp_path), "apps", "helloworld.tar.gz")
    assert not scenario.uses_s2i


def test_web_scenario(tmp_path):
    path = write_scenarios(
        tmp_path,
        [
            {
                "name": "aspnet",
                "kind": "web",
                "archive": "/srv/apps/aspnet.tar.gz",
                "entrypoint": ["dotnet", "aspnet.dll"],
                "pid1": "dotnet aspnet.dll",
                "path": "/health",
                "port": "5000",
                "expected": "",
                "variants": ["default", {"name": "uid-1001", "user": 1001, "env": {"ASPNETCORE_URLS": "http://*:5000"}}],
            }
        ],
    )
    (scenario,) = load_scenarios(path)
    assert scenario.kind is ScenarioKind.WEB
    assert scenario.matcher == ExactMatch("")
    assert scenario.archive == "/srv/apps/aspnet.tar.gz"
    assert scenario.entrypoint == ("dotnet", "aspnet.dll")
    assert scenario.port == 5000
    assert scenario.path == "/health"
    assert scenario.variants == (
        DEFAULT_VARIANT,
        RuntimeVariant(name="uid-1001", user="1001", env={"ASPNETCORE_URLS": "http://*:5000"}),
    )


def test_s2i_scenario_keeps_remote_source(tmp_path):
    path = write_scenarios(
        tmp_path,
        [
            {
                "name": "s2i-web",
                "source": "https://github.com/redhat-developer/s2i-dotnetcore-ex.git",
                "context_dir": "app",
                "match": "prefix",
                "token": "--> Running",
                "expected": "Hello",
                "filter": "strip",
                "openshift": True,
            }
        ],
    )
    (scenario,) = load_scenarios(path)
    assert scenario.uses_s2i
    assert scenario.source == "https://github.com/redhat-developer/s2i-dotnetcore-ex.git"
    assert scenario.context_dir == "app"
    assert scenario.matcher == PrefixTokenMatch("--> Running", "Hello")
    assert scenario.output_filter == "strip"
    assert scenario.openshift


@pytest.mark.parametrize(
    "raw, message",
    [
        ({"archive": "a.tar.gz"}, "without a name"),
        ({"name": "x"}, "exactly one of"),
        ({"name": "x", "archive": "a", "source": "b"}, "exactly one of"),
        ({"name": "x", "archive": "a", "kind": "batch"}, "kind"),
        ({"name": "x", "archive": "a", "filter": "first_line"}, "unknown filter"),
        ({"name": "x", "archive": "a", "kind": "web", "match": "substring"}, "exactly"),
        ({"name": "x", "archive": "a", "match": "regex"}, "regex"),
        ({"name": "x", "archive": "a", "variants": ["root"]}, "unknown variant"),
        ({"name": "x", "archive": "a", "variants": []}, "at least one variant"),
    ],
)
def test_invalid_scenarios(raw, message):
    with pytest.raises(ConfigurationError, match=message):
        parse_scenario(raw)


def test_duplicate_names(tmp_path):
    path = write_scenarios(tmp_path, [{"name": "x", "archive": "a"}, {"name": "x", "archive": "b"}])
    with pytest.raises(ConfigurationError, match="Duplicate"):
        load_scenarios(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_scenarios(str(tmp_path / "missing.json"))


def test_invalid_json(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text("{scenarios: ")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_scenarios(str(path))


def test_document_must_be_an_object(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text("[]")
    with pytest.raises(ConfigurationError, match="JSON object"):
        load_scenarios(str(path))


def test_openshift_only_selection():
    scenarios = [
        parse_scenario({"name": "local", "archive": "a"}),
        parse_scenario({"name": "remote", "source": "https://example.com/app.git", "openshift": True}),
    ]
    assert [s.name for s in select_scenarios(scenarios)] == ["local", "remote"]
    assert [s.name for s in select_scenarios(scenarios, openshift_only=True)] == ["remote"]
