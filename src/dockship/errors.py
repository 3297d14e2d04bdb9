# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Error types raised by dockship components.

Each error carries the process exit status the CLI should terminate with.
Components raise; only the command dispatcher catches.
"""
from typing import Optional, Sequence


class ShipError(RuntimeError):
    """Raised when a workflow step hits a known fatal condition."""

    exit_code = 1


class CommandError(ShipError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, output: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.output = output or ""
        super().__init__(f"Command failed ({returncode}): {' '.join(self.command)}")


class MissingBuildFileError(ShipError):
    """The cloned repository has no build descriptor at its root."""


class PrivilegeError(ShipError):
    """The invoking account is root, or cannot use sudo."""

    exit_code = 2


class ReloginRequired(ShipError):
    """
    Group membership was just changed and needs a fresh login session.

    This is a clean exit, not a failure: the operator reruns after logging in again.
    """

    exit_code = 0
