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
"""Output filters and matchers.

Filtering isolates the payload of an application's output (CLI tooling often
prints startup diagnostics first); matching compares the filtered text with
the expected value.  The two are independent: any filter can be combined
with any matcher.
"""

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def no_filter(text):
    return text


def last_line(text):
    """Keep only the last line, dropping banners printed before it."""
    lines = text.rstrip("\r\n").splitlines()
    return lines[-1] if lines else ""


def strip(text):
    return text.strip()


FILTERS = {
    "none": no_filter,
    "last_line": last_line,
    "strip": strip,
}


def get_filter(name):
    """Return the filter registered as *name*; ``None`` means no filtering."""
    if name is None:
        return no_filter
    try:
        return FILTERS[name]
    except KeyError:
        raise ValueError(f"Unknown output filter '{name}', expected one of {sorted(FILTERS)}") from None


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExactMatch:
    value: str

    def matches(self, actual):
        return actual == self.value

    def describe(self):
        return self.value


@dataclass(frozen=True)
class SubstringMatch:
    value: str

    def matches(self, actual):
        return self.value in actual

    def describe(self):
        return f"*{self.value}*"


@dataclass(frozen=True)
class PrefixTokenMatch:
    """Output must start with *token* and contain *value* after it."""

    token: str
    value: str = ""

    def matches(self, actual):
        return actual.startswith(self.token) and self.value in actual[len(self.token):]

    def describe(self):
        return f"{self.token}*{self.value}*" if self.value else f"{self.token}*"


MATCHERS = {
    "exact": ExactMatch,
    "substring": SubstringMatch,
    "prefix": PrefixTokenMatch,
}


def make_matcher(kind, expected="", token=None):
    """Build a matcher from its configuration name."""
    if kind == "prefix":
        if not token:
            raise ValueError("A 'prefix' matcher needs a token")
        return PrefixTokenMatch(token=token, value=expected)
    try:
        return MATCHERS[kind](expected)
    except KeyError:
        raise ValueError(f"Unknown matcher '{kind}', expected one of {sorted(MATCHERS)}") from None
