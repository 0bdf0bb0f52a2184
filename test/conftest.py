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
"""In-memory stand-ins for the Docker SDK and ``requests`` used by the tests."""

import itertools

import docker
import pytest
import requests

_ids = itertools.count(1)


class FakeContainer:
    def __init__(self, client, image, **kwargs):
        self._client = client
        self.id = f"{next(_ids):064x}"
        self.short_id = self.id[:12]
        self.image = image
        self.kwargs = kwargs
        self.status = "created"
        self.stopped = False
        self.exit_code = client.exit_code
        self.output = client.output
        self.cmdline = client.cmdline
        self.attrs = {
            "NetworkSettings": {
                "Networks": {"bridge": {"IPAddress": client.ip_address, "Gateway": "172.17.0.1"}},
                "Ports": {
                    port: [{"HostIp": "0.0.0.0", "HostPort": str(host_port or 32768)}]
                    for port, host_port in (kwargs.get("ports") or {}).items()
                },
            }
        }

    def start(self):
        self.reload()
        if self._client.containers.start_error:
            raise self._client.containers.start_error
        self.status = "running"

    def reload(self):
        if self.id not in self._client.containers.items:
            raise docker.errors.NotFound(f"No such container: {self.id}")

    def stop(self, timeout=10):
        self.reload()
        self.stopped = True
        self.status = "exited"

    def remove(self, force=False):
        self.reload()
        del self._client.containers.items[self.id]

    def exec_run(self, cmd, **kwargs):
        self.reload()
        self._client.exec_calls.append(cmd)
        if cmd == ["cat", "/proc/1/cmdline"]:
            return 0, self.cmdline.encode()
        return 0, b""

    def wait(self, timeout=None):
        self.status = "exited"
        return {"StatusCode": self.exit_code, "Error": None}

    def logs(self, stdout=True, stderr=True):
        return self.output.encode()


class FakeContainers:
    def __init__(self, client):
        self._client = client
        self.items = {}
        self.create_calls = []
        self.create_error = None
        self.start_error = None

    def create(self, image, **kwargs):
        self.create_calls.append((image, kwargs))
        if self.create_error:
            raise self.create_error
        if image not in self._client.images.items:
            raise docker.errors.ImageNotFound(f"No such image: {image}")
        container = FakeContainer(self._client, image, **kwargs)
        self.items[container.id] = container
        return container

    def get(self, container_id):
        try:
            return self.items[container_id]
        except KeyError:
            raise docker.errors.NotFound(f"No such container: {container_id}") from None


class FakeImages:
    def __init__(self):
        self.items = {}
        self.build_calls = []
        self.build_error = None

    def build(self, path, dockerfile, tag, rm=True):
        self.build_calls.append({"path": path, "dockerfile": dockerfile, "tag": tag})
        if self.build_error:
            raise self.build_error
        self.items[tag] = object()
        return self.items[tag], iter([{"stream": "Step 1/3 : FROM base\n"}, {"stream": "Successfully built\n"}])

    def get(self, name):
        try:
            return self.items[name]
        except KeyError:
            raise docker.errors.ImageNotFound(f"No such image: {name}") from None

    def remove(self, tag, force=False):
        if tag not in self.items:
            raise docker.errors.ImageNotFound(f"No such image: {tag}")
        del self.items[tag]


class FakeDockerClient:
    """Just enough of ``docker.DockerClient`` for the framework."""

    def __init__(self):
        self.images = FakeImages()
        self.containers = FakeContainers(self)
        self.exec_calls = []
        self.ip_address = "172.17.0.2"
        self.exit_code = 0
        self.output = "--> Running application ...\nHello World!\n"
        self.cmdline = "dotnet\0app.dll\0"
        self.closed = False

    def close(self):
        self.closed = True


class FakeResponse:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Replays canned responses; the last one repeats forever.

    An exception instance in the list is raised instead of answering.
    """

    def __init__(self, *responses):
        self._responses = list(responses)
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return FakeResponse(*response)


@pytest.fixture
def docker_client():
    return FakeDockerClient()


@pytest.fixture
def no_sleep():
    return lambda seconds: None


@pytest.fixture
def connection_refused():
    return requests.exceptions.ConnectionError("Connection refused")


@pytest.fixture
def make_session():
    return FakeSession
