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
"""Docker access for the image test framework.

Provides :func:`get_docker_client` and :class:`DockerContainer`, a thin
wrapper over the Docker Python SDK covering what image tests need: detached
start, status and network inspection, ``exec``, log capture and an
idempotent stop.  Image helpers (:func:`build_image`, :func:`remove_image`,
:func:`image_exists`) live next to it.

Example::

    from imgtf.core.docker import DockerContainer, get_docker_client

    client = get_docker_client()
    container = DockerContainer.run(client, "registry/runtime:latest", user="12345")
    exit_code, output = container.exec(["cat", "/proc/1/cmdline"])
    container.stop()
"""

import logging

import docker
import requests.adapters

logger = logging.getLogger(__name__)

# Silence urllib3 noise coming from the Docker SDK
logging.getLogger("urllib3").setLevel(logging.WARNING)

# Statuses in which the runtime has materialized the container
KNOWN_STATUSES = ("created", "running", "exited")


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------

def get_docker_client():
    """Create a Docker client, applying a compatibility patch if required.

    The ``docker`` SDK uses ``http+docker://`` as the URL scheme for
    Unix-socket communication.  Newer versions of ``requests`` (>=2.32)
    reject that scheme in ``HTTPAdapter.get_connection_with_tls_context``.
    This helper detects the situation and patches the adapter.
    """
    try:
        return docker.from_env()
    except docker.errors.DockerException as exc:
        if "http+docker" not in str(exc):
            raise

    logger.debug("Applying http+docker compatibility patch for docker SDK / requests")
    from docker.transport import UnixHTTPAdapter  # pylint: disable=import-outside-toplevel

    _orig = requests.adapters.HTTPAdapter.get_connection_with_tls_context

    def _patched(self, request, verify, proxies=None, cert=None):
        if isinstance(self, UnixHTTPAdapter):
            return self.get_connection(request.url, proxies)
        return _orig(self, request, verify, proxies, cert)

    requests.adapters.HTTPAdapter.get_connection_with_tls_context = _patched
    return docker.from_env()


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def image_exists(client, name):
    try:
        client.images.get(name)
    except docker.errors.ImageNotFound:
        return False
    return True


def build_image(client, path, tag, dockerfile="Dockerfile"):
    """Build *path* into *tag* and return the build log as text.

    Raises ``docker.errors.BuildError`` or ``docker.errors.APIError`` on failure.
    """
    logger.info("Building image %s from %s", tag, path)
    _, log_stream = client.images.build(path=path, dockerfile=dockerfile, tag=tag, rm=True)
    lines = []
    for chunk in log_stream:
        line = chunk.get("stream", "").rstrip("\n")
        if line:
            lines.append(line)
            logger.debug(line)
    return "\n".join(lines)


def remove_image(client, tag):
    """Remove *tag*; an image that is already gone is not an error."""
    try:
        client.images.remove(tag, force=True)
        logger.info("Removed image %s", tag)
    except docker.errors.ImageNotFound:
        logger.debug("Image %s already removed", tag)


# ---------------------------------------------------------------------------
# DockerContainer
# ---------------------------------------------------------------------------

class DockerContainer:
    """Wrapper around a container started for an image test.

    Framework-agnostic: it knows nothing about scenarios or pytest.  Those
    are layered on top by :class:`~imgtf.core.container.ContainerLifecycle`
    and the pytest plugin.
    """

    def __init__(self, client, container):
        self._client = client
        self._container = container

    @classmethod
    def run(
        cls,
        client,
        image,
        *,
        command=None,
        environment=None,
        user=None,
        ports=None,
        mem_limit=None,
        network_mode="bridge",
    ):
        """Create and start a detached container.

        Args:
            client: A ``docker.DockerClient`` (from :func:`get_docker_client`).
            image: Image name/tag.
            command: Command overriding the image's ``CMD``.
            environment: ``dict`` of environment variables.
            user: User (name or numeric id) the container runs as.
            ports: Docker-SDK style ports dict, e.g. ``{"8080/tcp": None}``.
            mem_limit: Memory limit string (e.g. ``"512m"``).
            network_mode: ``"bridge"``, ``"host"``, etc.

        Returns:
            A :class:`DockerContainer` wrapping the started container.

        Raises:
            ``docker.errors.DockerException`` if the runtime refuses the launch.
            A container that was created but could not be started is removed
            before the error propagates.
        """
        kwargs = dict(network_mode=network_mode)
        if command:
            kwargs["command"] = command
        if environment:
            kwargs["environment"] = environment
        if user:
            kwargs["user"] = user
        if ports:
            kwargs["ports"] = ports
        if mem_limit:
            kwargs["mem_limit"] = mem_limit

        logger.info("Starting container from image %s", image)
        container = client.containers.create(image, **kwargs)
        try:
            container.start()
        except docker.errors.APIError:
            logger.warning("Container %s failed to start, removing it", container.short_id)
            try:
                container.remove(force=True)
            except docker.errors.NotFound:
                logger.debug("Container %s already removed", container.short_id)
            raise
        logger.info("Container started: %s", container.short_id)
        return cls(client, container)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reload(self):
        """Refresh container metadata from the daemon."""
        if self._container:
            self._container.reload()

    def status(self):
        """Return the runtime status, or ``None`` when the container is gone."""
        if not self._container:
            return None
        try:
            self._container.reload()
        except docker.errors.NotFound:
            return None
        return self._container.status

    def wait(self, timeout):
        """Block until the container exits and return its exit code."""
        result = self._container.wait(timeout=timeout)
        return result.get("StatusCode")

    def stop(self, timeout=2):
        """Stop and remove the container.

        A container that no longer exists is not an error, so calling this
        twice is safe.
        """
        if not self._container:
            return
        try:
            self._container.stop(timeout=timeout)
            self._container.remove(force=True)
            logger.info("Container %s removed", self._container.short_id)
        except docker.errors.NotFound:
            logger.debug("Container %s already removed", self._container.short_id)
        self._container = None

    # ------------------------------------------------------------------
    # Execution and output
    # ------------------------------------------------------------------

    def exec(self, cmd, *, user=None, environment=None):
        """Run *cmd* inside the container and return ``(exit_code, output)``."""
        if not self._container:
            raise RuntimeError("Container is not running.")
        kwargs = {}
        if user:
            kwargs["user"] = user
        if environment:
            kwargs["environment"] = environment
        exit_code, output = self._container.exec_run(cmd, **kwargs)
        return exit_code, output.decode("utf-8", errors="replace")

    def logs(self):
        """Return everything the container wrote to stdout and stderr."""
        if not self._container:
            raise RuntimeError("Container is not running.")
        return self._container.logs(stdout=True, stderr=True).decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # Network inspection
    # ------------------------------------------------------------------

    def get_ip(self, network="bridge"):
        """Return the container's IP address on *network*."""
        self.reload()
        return self._container.attrs["NetworkSettings"]["Networks"][network]["IPAddress"]

    def get_host_port(self, port):
        """Return the host port published for container *port* (``"8080/tcp"``), if any."""
        self.reload()
        bindings = self._container.attrs["NetworkSettings"].get("Ports") or {}
        for binding in bindings.get(port) or []:
            if binding.get("HostPort"):
                return int(binding["HostPort"])
        return None

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    @property
    def raw(self):
        """The underlying ``docker.models.containers.Container`` object."""
        return self._container

    @property
    def id(self):
        """The full container ID."""
        return self._container.id if self._container else None

    @property
    def short_id(self):
        """The short container ID."""
        return self._container.short_id if self._container else None
