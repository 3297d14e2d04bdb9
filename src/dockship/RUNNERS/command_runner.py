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
Execution of external commands with their output mirrored to the run log.
"""
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import CommandError


@dataclass
class CommandResult:
    """Outcome of one external command."""

    command: List[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> "CommandResult":
        """
        Raises CommandError if the command failed, otherwise returns self.
        """
        if not self.ok:
            raise CommandError(self.command, self.returncode, self.output)
        return self


class CommandRunner:
    """
    Runs external commands one at a time, blocking until each one exits.
    """
    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the command runner.

        Args:
            logger (Optional[logging.Logger]): Receives each line of command output.
        """
        self.logger = logger or logging.getLogger("dockship")

    def run(self,
            command: Sequence[str],
            input_text: Optional[str] = None,
            cwd: Optional[str] = None,
            check: bool = True,
            quiet: bool = False) -> CommandResult:
        """
        Runs a command, streaming its combined stdout/stderr into the log.

        Args:
            command (Sequence[str]): Command and arguments to execute.
            input_text (Optional[str]): Data written to the command's stdin, then closed.
                Never logged.
            cwd (Optional[str]): Directory to run the command in.
            check (bool): Raise CommandError on a non-zero exit status.
            quiet (bool): Capture the output without logging it.

        Returns:
            CommandResult: Exit status and captured output.
        """
        command = [str(part) for part in command]
        lines = []
        try:
            # Avoid shell=True for security reasons (CWE-78)
            process = subprocess.Popen(
                command,
                cwd=cwd,
                stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                shell=False,
            )
        except FileNotFoundError:
            result = CommandResult(command, 127, f"{command[0]}: command not found")
            if check:
                result.check()
            return result

        try:
            if input_text is not None:
                process.stdin.write(input_text)
                process.stdin.close()

            for line in process.stdout:
                line = line.rstrip("\n")
                lines.append(line)
                if not quiet:
                    self.logger.info(line, extra={"raw": True})
        finally:
            process.stdout.close()
            returncode = process.wait()

        result = CommandResult(command, returncode, "\n".join(lines))
        if check:
            result.check()
        return result

    def output(self, command: Sequence[str], cwd: Optional[str] = None) -> str:
        """
        Runs a command quietly and returns its stripped output, raising on failure.
        """
        return self.run(command, cwd=cwd, quiet=True).output.strip()

    def succeeds(self, command: Sequence[str]) -> bool:
        """
        Runs a command quietly and reports whether it exited with status 0.
        """
        return self.run(command, check=False, quiet=True).ok
