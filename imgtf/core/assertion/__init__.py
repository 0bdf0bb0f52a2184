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
from imgtf.core.assertion.engine import AssertionEngine, AssertionResult
from imgtf.core.assertion.matchers import (
    FILTERS,
    ExactMatch,
    PrefixTokenMatch,
    SubstringMatch,
    get_filter,
    last_line,
    make_matcher,
)
