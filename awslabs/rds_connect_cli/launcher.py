# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Ephemeral Docker container launcher for database client sessions."""

import os
import secrets
import shutil
import signal
import subprocess
import sys
import time
from .common.utils import mask_secrets
from .constants import CONTAINER_NAME_PREFIX, DOCKER_EXECUTABLE, ERROR_MISSING_DEPENDENCY
from .engines import build_client_command
from .exceptions import ClientSessionError, DependencyMissingError
from .models import ConnectionTarget
from contextlib import contextmanager
from loguru import logger
from typing import Callable, Dict, Iterator, List, Optional


REQUIRED_EXECUTABLES = (DOCKER_EXECUTABLE,)


def check_dependencies(executables=REQUIRED_EXECUTABLES) -> None:
    """Verify every required executable is on PATH.

    Raises:
        DependencyMissingError: For the first missing executable
    """
    for executable in executables:
        if shutil.which(executable) is None:
            raise DependencyMissingError(
                executable, ERROR_MISSING_DEPENDENCY.format(executable.capitalize())
            )


def container_name() -> str:
    """Unique container name, e.g. `dbclient-1700000000-4242-8f3a`."""
    return f'{CONTAINER_NAME_PREFIX}-{int(time.time())}-{os.getpid()}-{secrets.token_hex(2)}'


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt(f'received signal {signum}')


@contextmanager
def terminate_as_interrupt() -> Iterator[None]:
    """Turn SIGTERM into KeyboardInterrupt so cleanup handlers run."""
    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@contextmanager
def ephemeral_container(runner: Callable = subprocess.run) -> Iterator[str]:
    """Reserve a container name and remove the container on every exit path.

    Args:
        runner: Callable with the `subprocess.run` signature

    Yields:
        The container name
    """
    name = container_name()
    try:
        with terminate_as_interrupt():
            yield name
    finally:
        logger.debug(f'Removing container {name}')
        runner(
            [DOCKER_EXECUTABLE, 'rm', '-f', name],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )


def build_docker_command(
    target: ConnectionTarget, name: str, interactive_tty: Optional[bool] = None
) -> List[str]:
    """Build the `docker run` argv for a client session.

    The password variable is passed by name only; its value comes from the
    environment of the docker process.
    """
    if interactive_tty is None:
        interactive_tty = sys.stdin.isatty()

    command = [DOCKER_EXECUTABLE, 'run', '--rm', '-i']
    if interactive_tty:
        command.append('-t')
    command.extend(['--name', name])
    if target.profile.password_env:
        command.extend(['-e', target.profile.password_env])
    command.append(target.profile.docker_image)
    command.extend(build_client_command(target))
    return command


def build_environment(target: ConnectionTarget) -> Dict[str, str]:
    """Environment for the docker process, including the password variable if any."""
    env = dict(os.environ)
    if target.profile.password_env:
        env[target.profile.password_env] = target.auth.password.get_secret_value()
    return env


def launch(target: ConnectionTarget, runner: Callable = subprocess.run) -> int:
    """Run an interactive client session in a throwaway container.

    Args:
        target: The resolved connection target
        runner: Callable with the `subprocess.run` signature

    Returns:
        The client's exit status (always 0; failures raise)

    Raises:
        ClientSessionError: If the client exits with a non-zero status
    """
    logger.info(f'Connecting to database as {target.auth.user}...')
    with ephemeral_container(runner=runner) as name:
        command = build_docker_command(target, name)
        password = target.auth.password.get_secret_value()
        logger.debug(f'Running: {" ".join(mask_secrets(command, [password]))}')
        result = runner(command, env=build_environment(target), check=False)

    if result.returncode != 0:
        raise ClientSessionError(result.returncode)
    return result.returncode
