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
"""Container lifecycle for image tests.

:class:`ContainerLifecycle` starts containers from a test image under a
given :class:`~imgtf.scenario.model.RuntimeVariant`, hands out immutable
:class:`ContainerHandle` records and stops them again.  Stopping is
idempotent: a handle whose container is already gone is a no-op.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import docker
import requests

import imgtf.config as imgtf_config
from imgtf.config import ContainerArgs
from imgtf.core.docker import KNOWN_STATUSES, DockerContainer
from imgtf.core.utils import wait_until
from imgtf.exception import ContainerStartFailed, ReadinessTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerHandle:
    """Identity of a started container.

    Attributes:
        container_id: Full container ID reported by the runtime.
        host_port: Host port published for the application port, ``None``
            when nothing is published.
        variant: The runtime variant the container was started with.
    """

    container_id: str
    host_port: Optional[int]
    variant: Any

    @property
    def short_id(self):
        return self.container_id[:12]


@dataclass
class ProbeResult:
    """Outcome of a single probe against a running container."""

    success: bool
    output: str
    status: Optional[int] = None


class ContainerLifecycle:
    def __init__(
        self,
        client,
        container_args: Optional[ContainerArgs] = None,
        stop_timeout: float = imgtf_config.STOP_TIMEOUT_S,
        retry_delay: float = imgtf_config.RETRY_DELAY_S,
        sleep=None,
    ):
        self._client = client
        self._container_args = container_args or ContainerArgs()
        self._stop_timeout = stop_timeout
        self._retry_delay = retry_delay
        self._sleep = sleep or time.sleep
        self._containers: dict[str, DockerContainer] = {}

    def start(self, image, variant, port=None, host_port=None, command=None) -> ContainerHandle:
        """Launch a detached container from *image*.

        Raises:
            ContainerStartFailed: the runtime refused the launch. No retry.
        """
        environment = dict(self._container_args.env)
        environment.update(variant.env or {})
        user = variant.user or self._container_args.user
        ports = {f"{port}/tcp": host_port} if port else None

        logger.info(f"Starting {image} as variant [{variant.name}] (user: {user or 'image default'})")
        try:
            container = DockerContainer.run(
                self._client,
                image,
                command=command,
                environment=environment,
                user=user,
                ports=ports,
                mem_limit=self._container_args.mem_limit,
            )
        except docker.errors.DockerException as exc:
            raise ContainerStartFailed(f"Could not start container from {image}: {exc}") from exc

        self._containers[container.id] = container
        assigned_port = None
        if port:
            try:
                assigned_port = container.get_host_port(f"{port}/tcp")
            except docker.errors.NotFound:
                logger.debug("Container %s vanished before its ports could be read", container.short_id)
        return ContainerHandle(container_id=container.id, host_port=assigned_port, variant=variant)

    def wait_for_identity(self, handle, attempts=imgtf_config.READINESS_RETRY_COUNT):
        """Wait until the runtime reports the container. Returns ``False`` on timeout."""

        def _known():
            container = self._lookup(handle)
            return container is not None and container.status() in KNOWN_STATUSES

        return self._wait(_known, attempts)

    def inspect_address(self, handle) -> str:
        """Return the container's address on the bridge network."""
        return self._require(handle).get_ip()

    def exec_inside(self, handle, command) -> ProbeResult:
        """Run a diagnostic *command* inside the running container."""
        if isinstance(command, str):
            command = ["/bin/sh", "-c", command]
        exit_code, output = self._require(handle).exec(command)
        return ProbeResult(success=exit_code == 0, output=output, status=exit_code)

    def pid1_command(self, handle) -> str:
        """Return the command line of the container's PID 1 from the process table."""
        result = self.exec_inside(handle, ["cat", "/proc/1/cmdline"])
        if not result.success:
            logger.warning(f"Could not read /proc/1/cmdline in {handle.short_id}: {result.output}")
            return ""
        return result.output.replace("\0", " ").strip()

    def wait_for_exit(self, handle, timeout=imgtf_config.CLI_TIMEOUT_S) -> ProbeResult:
        """Wait for a run-to-completion container and collect its output.

        Raises:
            ReadinessTimeout: the container is still running after *timeout*.
        """
        container = self._require(handle)
        try:
            exit_code = container.wait(timeout)
        except requests.exceptions.RequestException as exc:
            raise ReadinessTimeout(f"Container {handle.short_id} did not exit within {timeout}s") from exc
        output = container.logs()
        return ProbeResult(success=exit_code == 0, output=output, status=exit_code)

    def stop(self, handle):
        """Stop and remove the container behind *handle*. Safe to call repeatedly."""
        container = self._containers.pop(handle.container_id, None) or self._lookup(handle)
        if container is None:
            logger.debug(f"Container {handle.short_id} no longer exists, nothing to stop")
            return
        logger.info(f"Stopping container {handle.short_id}")
        container.stop(timeout=self._stop_timeout)

    def stop_all(self):
        """Stop every container started through this lifecycle and not stopped yet."""
        for container_id in list(self._containers):
            logger.info(f"Stopping leftover container {container_id[:12]}")
            self._containers.pop(container_id).stop(timeout=self._stop_timeout)

    def _lookup(self, handle):
        container = self._containers.get(handle.container_id)
        if container is not None:
            return container
        try:
            return DockerContainer(self._client, self._client.containers.get(handle.container_id))
        except docker.errors.NotFound:
            return None

    def _require(self, handle):
        container = self._lookup(handle)
        if container is None:
            raise RuntimeError(f"Container {handle.short_id} is not available")
        return container

    def _wait(self, probe, attempts):
        return wait_until(probe, attempts, self._retry_delay, sleep=self._sleep)
