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
import logging
import os
import sys

from imgtf.core.process import ProcessRunner


def test_run_captures_output_and_exit_code():
    result = ProcessRunner().run(sys.executable, ["-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"])
    assert result.returncode == 3
    assert not result.success
    assert result.stdout == "out\n"
    assert result.stderr == "err\n"


def test_run_passes_environment():
    runner = ProcessRunner(env={"IMGTF_BASE": "base"})
    result = runner.run(sys.executable, ["-c", "import os; print(os.environ['IMGTF_BASE'], os.environ['IMGTF_EXTRA'])"], env={"IMGTF_EXTRA": "extra"})
    assert result.success
    assert result.stdout.strip() == "base extra"


def test_missing_binary_is_not_raised():
    result = ProcessRunner().run("/nonexistent/imgtf-binary")
    assert result.returncode == 127


def test_missing_binary_in_stream_mode():
    assert ProcessRunner().run("/nonexistent/imgtf-binary", stream=True).returncode == 127


def test_stream_mode_logs_every_line(caplog):
    with caplog.at_level(logging.INFO):
        result = ProcessRunner().run(sys.executable, ["-c", "print('line one'); print('line two')"], stream=True)
    assert result.success
    assert result.stdout == "line one\nline two\n"
    streamed = [r.getMessage() for r in caplog.records if r.name == os.path.basename(sys.executable)]
    assert "line one" in streamed
    assert "line two" in streamed


def test_background_process_can_be_stopped():
    handle = ProcessRunner().start(sys.executable, ["-c", "import time; time.sleep(60)"])
    assert handle.is_running()
    result = handle.stop(timeout=5)
    assert not handle.is_running()
    assert result.returncode != 0


def test_background_process_runs_to_completion():
    handle = ProcessRunner().start(sys.executable, ["-c", "print('done')"])
    result = handle.wait(timeout=30)
    assert result.success
    assert result.stdout == "done\n"
    assert handle.stop().returncode == 0
