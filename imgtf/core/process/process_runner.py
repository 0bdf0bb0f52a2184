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
"""Runs host commands such as ``s2i`` or image bootstrap scripts.

Two modes are supported:

* :meth:`ProcessRunner.run` runs a command to completion and captures its
  output.  A non-zero exit code is reported, never raised.
* :meth:`ProcessRunner.start` fires a command in the background and returns a
  :class:`BackgroundProcess` that can be polled and stopped.
"""

import logging
import os
import signal
import subprocess
import threading
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

# Exit code reported when the binary cannot be found, as a shell would
COMMAND_NOT_FOUND = 127


@dataclass
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str
    command: list

    @property
    def success(self):
        return self.returncode == 0


def _async_log(fd, logger_name, sink):
    """Read lines from *fd*, keep them in *sink* and emit them through a named logger."""
    log = logging.getLogger(logger_name)
    try:
        for line in fd:
            sink.append(line)
            log.info(line.rstrip("\n"))
    except ValueError:
        pass  # fd closed


def _start_logging_thread(stream, logger_name, sink):
    t = threading.Thread(target=_async_log, args=(stream, logger_name, sink), daemon=True)
    t.start()
    return t


def _text(output):
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output or ""


def _merged_env(env):
    if env is None:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


class BackgroundProcess:
    """Handle for a command started with :meth:`ProcessRunner.start`."""

    def __init__(self, command, process, stdout_thread, stderr_thread, stdout, stderr):
        self.command = command
        self._process = process
        self._stdout_thread = stdout_thread
        self._stderr_thread = stderr_thread
        self._stdout = stdout
        self._stderr = stderr

    @property
    def pid(self):
        return self._process.pid

    def is_running(self):
        # poll() will return the exit code, if set, otherwise None
        return self._process.poll() is None

    def wait(self, timeout=None):
        """Wait for the process to end and return its :class:`ProcessResult`.

        Raises ``psutil.TimeoutExpired`` if it is still running after *timeout*.
        """
        returncode = self._process.wait(timeout)
        return self._result(returncode)

    def stop(self, timeout=5):
        """Send SIGTERM, escalating to SIGKILL, and return the final result."""
        returncode = self._process.poll()
        if returncode is not None:
            logger.debug(f"Process [{self.command[0]}] with PID: [{self.pid}] already exited with [{returncode}]")
            return self._result(returncode)

        try:
            logger.info(f"Stopping process [{self.command[0]}] with PID: [{self.pid}]")
            self._process.send_signal(signal.SIGTERM)
            returncode = self._process.wait(timeout)
        except psutil.TimeoutExpired:
            logger.warning(f"Process [{self.command[0]}] with PID: [{self.pid}] ignored SIGTERM, sending SIGKILL")
            self._process.kill()
            returncode = self._process.wait()
        except psutil.NoSuchProcess:
            logger.warning(f"Process [{self.command[0]}] with PID: [{self.pid}] could no longer be found")
            returncode = self._process.poll()
        return self._result(returncode)

    def _result(self, returncode):
        self._stdout_thread.join(timeout=5)
        self._stderr_thread.join(timeout=5)
        return ProcessResult(
            returncode=returncode,
            stdout="".join(self._stdout),
            stderr="".join(self._stderr),
            command=self.command,
        )


class ProcessRunner:
    """Executes external commands on the host."""

    def __init__(self, env=None, cwd=None):
        self._env = env
        self._cwd = cwd

    def run(self, command, args=None, env=None, cwd=None, stream=False, timeout=None):
        """Run *command* with *args* to completion.

        Args:
            command: Binary to execute.
            args: Command-line arguments.
            env: Variables added on top of the inherited environment.
            cwd: Working directory, defaults to the runner's.
            stream: Also emit every output line through a logger named after
                the binary while it runs.
            timeout: Seconds before the command is stopped.

        Returns:
            A :class:`ProcessResult`; inspect ``returncode`` for failures.
        """
        cmd = [command] + list(args or [])
        if stream:
            try:
                handle = self.start(command, args, env=env, cwd=cwd)
            except RuntimeError:
                logger.error(f"Command not found: {command}")
                return ProcessResult(COMMAND_NOT_FOUND, "", f"{command}: command not found", cmd)
            try:
                return handle.wait(timeout)
            except psutil.TimeoutExpired:
                logger.error(f"Process [{command}] didn't finish within {timeout} seconds")
                return handle.stop()

        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd,
                env=_merged_env(self._merge(env)),
                cwd=cwd or self._cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            logger.error(f"Command not found: {command}")
            return ProcessResult(COMMAND_NOT_FOUND, "", f"{command}: command not found", cmd)
        except subprocess.TimeoutExpired as exc:
            logger.error(f"Process [{command}] didn't finish within {timeout} seconds")
            return ProcessResult(-signal.SIGKILL, _text(exc.stdout), _text(exc.stderr), cmd)

        return ProcessResult(completed.returncode, completed.stdout, completed.stderr, cmd)

    def start(self, command, args=None, env=None, cwd=None):
        """Start *command* in the background and return immediately."""
        cmd = [command] + list(args or [])
        logger.info(f"Starting process: {' '.join(cmd)}")
        try:
            proc = psutil.Popen(
                cmd,
                env=_merged_env(self._merge(env)),
                cwd=cwd or self._cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                close_fds=True,
            )
        except FileNotFoundError as exc:
            raise RuntimeError(f"Could not run {cmd}") from exc

        logger_name = os.path.basename(command)
        stdout, stderr = [], []
        stdout_thread = _start_logging_thread(proc.stdout, logger_name, stdout)
        stderr_thread = _start_logging_thread(proc.stderr, logger_name, stderr)
        logger.info(f"Process [{command}] started with PID: [{proc.pid}]")
        return BackgroundProcess(cmd, proc, stdout_thread, stderr_thread, stdout, stderr)

    def _merge(self, env):
        if self._env is None and env is None:
            return None
        merged = dict(self._env or {})
        merged.update(env or {})
        return merged
