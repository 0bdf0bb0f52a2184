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
"""Scenario definitions and the JSON scenario file loader.

A scenario file looks like::

    {
      "scenarios": [
        {
          "name": "helloworld",
          "kind": "cli",
          "archive": "apps/helloworld.tar.gz",
          "entrypoint": ["dotnet", "helloworld.dll"],
          "filter": "last_line",
          "match": "substring",
          "expected": "Hello World!"
        },
        {
          "name": "aspnet",
          "kind": "web",
          "archive": "apps/aspnet.tar.gz",
          "entrypoint": ["dotnet", "aspnet.dll"],
          "pid1": "dotnet aspnet.dll",
          "path": "/",
          "expected": "Hello world",
          "variants": ["default", {"name": "uid-1001", "user": "1001"}]
        }
      ]
    }

Relative ``archive`` and ``source`` paths are resolved against the
directory of the scenario file.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

import imgtf.config as imgtf_config
from imgtf.core.assertion.matchers import FILTERS, make_matcher
from imgtf.exception import ConfigurationError

logger = logging.getLogger(__name__)


class ScenarioKind(Enum):
    CLI = "cli"
    WEB = "web"


@dataclass(frozen=True)
class RuntimeVariant:
    """A set of runtime arguments a scenario is exercised under."""

    name: str
    user: Optional[str] = None
    env: Mapping[str, str] = field(default_factory=dict)


DEFAULT_VARIANT = RuntimeVariant(name="default")
RANDOM_UID_VARIANT = RuntimeVariant(name="random-uid", user=imgtf_config.ALTERNATE_USER)

BUILTIN_VARIANTS = {
    DEFAULT_VARIANT.name: DEFAULT_VARIANT,
    RANDOM_UID_VARIANT.name: RANDOM_UID_VARIANT,
}


@dataclass(frozen=True)
class Scenario:
    """One application layered onto the image under test, with its expectations.

    Exactly one of ``archive`` (a packaged payload) and ``source`` (a
    source-to-image input, URL or directory) is set.
    """

    name: str
    kind: ScenarioKind
    matcher: object
    output_filter: Optional[str] = None
    variants: tuple = (DEFAULT_VARIANT, RANDOM_UID_VARIANT)
    archive: Optional[str] = None
    source: Optional[str] = None
    context_dir: Optional[str] = None
    entrypoint: tuple = ()
    pid1: Optional[str] = None
    path: str = "/"
    port: int = imgtf_config.DEFAULT_CONTAINER_PORT
    env: Mapping[str, str] = field(default_factory=dict)
    openshift: bool = False

    @property
    def uses_s2i(self):
        return self.source is not None


def _parse_variant(raw, scenario_name):
    if isinstance(raw, str):
        try:
            return BUILTIN_VARIANTS[raw]
        except KeyError:
            raise ConfigurationError(
                f"Scenario '{scenario_name}': unknown variant '{raw}', expected one of {sorted(BUILTIN_VARIANTS)}"
            ) from None
    if isinstance(raw, dict) and raw.get("name"):
        user = raw.get("user")
        return RuntimeVariant(
            name=raw["name"],
            user=str(user) if user is not None else None,
            env=dict(raw.get("env", {})),
        )
    raise ConfigurationError(f"Scenario '{scenario_name}': invalid variant {raw!r}")


def _resolve(path, base_dir):
    if path is None or "://" in path or path.startswith("git@") or os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(base_dir, path))


def parse_scenario(raw, base_dir="."):
    """Build a :class:`Scenario` from its decoded JSON object."""
    name = raw.get("name")
    if not name:
        raise ConfigurationError(f"Scenario without a name: {raw!r}")

    try:
        kind = ScenarioKind(raw.get("kind", "cli"))
    except ValueError:
        raise ConfigurationError(f"Scenario '{name}': kind must be 'cli' or 'web'") from None

    if bool(raw.get("archive")) == bool(raw.get("source")):
        raise ConfigurationError(f"Scenario '{name}': exactly one of 'archive' and 'source' is required")

    output_filter = raw.get("filter")
    if output_filter is not None and output_filter not in FILTERS:
        raise ConfigurationError(f"Scenario '{name}': unknown filter '{output_filter}'")

    match_kind = raw.get("match", "exact" if kind is ScenarioKind.WEB else "substring")
    if kind is ScenarioKind.WEB and match_kind != "exact":
        raise ConfigurationError(f"Scenario '{name}': web scenarios compare the body exactly")
    try:
        matcher = make_matcher(match_kind, raw.get("expected", ""), raw.get("token"))
    except ValueError as exc:
        raise ConfigurationError(f"Scenario '{name}': {exc}") from exc

    variants = tuple(_parse_variant(v, name) for v in raw.get("variants", list(BUILTIN_VARIANTS)))
    if not variants:
        raise ConfigurationError(f"Scenario '{name}': at least one variant is required")

    entrypoint = raw.get("entrypoint", [])
    if isinstance(entrypoint, str):
        entrypoint = [entrypoint]

    return Scenario(
        name=name,
        kind=kind,
        matcher=matcher,
        output_filter=output_filter,
        variants=variants,
        archive=_resolve(raw.get("archive"), base_dir),
        source=_resolve(raw.get("source"), base_dir),
        context_dir=raw.get("context_dir"),
        entrypoint=tuple(entrypoint),
        pid1=raw.get("pid1"),
        path=raw.get("path", "/"),
        port=int(raw.get("port", imgtf_config.DEFAULT_CONTAINER_PORT)),
        env=dict(raw.get("env", {})),
        openshift=bool(raw.get("openshift", False)),
    )


def load_scenarios(path):
    """Load the scenarios of a JSON scenario file, in file order."""
    try:
        with open(path) as f:
            document = json.load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read scenario file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Scenario file {path} is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ConfigurationError(f"Scenario file {path} must contain a JSON object")

    base_dir = os.path.dirname(os.path.abspath(path))
    scenarios = [parse_scenario(raw, base_dir) for raw in document.get("scenarios", [])]

    names = [s.name for s in scenarios]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate scenario names in {path}: {duplicates}")

    logger.debug("Loaded %d scenarios from %s", len(scenarios), path)
    return scenarios


def select_scenarios(scenarios, openshift_only=False):
    """In OpenShift-only mode keep just the scenarios flagged ``openshift``."""
    if openshift_only:
        return [s for s in scenarios if s.openshift]
    return list(scenarios)
