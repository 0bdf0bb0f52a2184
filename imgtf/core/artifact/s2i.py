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
"""Thin wrapper over the ``s2i`` (source-to-image) command line tool."""

import logging

import imgtf.config as imgtf_config
from imgtf.core.process import ProcessRunner
from imgtf.exception import BuildFailed

logger = logging.getLogger(__name__)


class S2iBuilder:
    def __init__(self, runner=None, binary=imgtf_config.S2I_BINARY, runtime_image=None, pull_policy="if-not-present"):
        self._runner = runner or ProcessRunner()
        self._binary = binary
        self._runtime_image = runtime_image
        self._pull_policy = pull_policy

    def build(self, source, builder_image, tag, context_dir=None, env=None):
        """Run ``s2i build`` and return *tag*.

        :param str source: Git URL or local directory with the application sources.
        :param str builder_image: The image under test, used as s2i builder.
        :param str tag: Name of the resulting application image.
        :param str context_dir: Sub-directory of *source* holding the application.
        :param dict env: Build environment passed with ``-e``.
        :raises BuildFailed: carrying the exit code of ``s2i``.
        """
        args = ["build", source, builder_image, tag, f"--pull-policy={self._pull_policy}"]
        if context_dir:
            args.append(f"--context-dir={context_dir}")
        for key, value in (env or {}).items():
            args.extend(["-e", f"{key}={value}"])
        if self._runtime_image:
            args.append(f"--runtime-image={self._runtime_image}")

        logger.info(f"Building {tag} from {source} with {builder_image} using s2i")
        result = self._runner.run(self._binary, args, stream=True)
        if not result.success:
            raise BuildFailed(
                f"s2i build of {source} on {builder_image} failed with exit code {result.returncode}",
                exit_code=result.returncode,
            )
        return tag
