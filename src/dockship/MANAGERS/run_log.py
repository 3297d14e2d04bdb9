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
Console and log-file output for a dockship run.

Every message goes to the terminal with a colored level tag and is appended
to the run log. Secrets registered with the masking filter never reach
either destination.
"""
import logging
import os
from typing import Iterable, List, Optional

import click

LOGGER_NAME = "dockship"
OK = 25
MASK = "********"

logging.addLevelName(OK, "OK")

LEVEL_TAGS = {
    logging.DEBUG: ("[DEBUG]", "white"),
    logging.INFO: ("[INFO]", "cyan"),
    OK: ("[OK]", "green"),
    logging.WARNING: ("[WARN]", "yellow"),
    logging.ERROR: ("[ERROR]", "red"),
    logging.CRITICAL: ("[ERROR]", "red"),
}


class SecretMaskingFilter(logging.Filter):
    """
    Replaces registered secret values in log records with a fixed mask.
    """
    def __init__(self):
        super().__init__()
        self._secrets: List[str] = []

    def add_secret(self, secret: str):
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            record.msg = self.mask(record.getMessage())
            record.args = None
        return True


class ConsoleFormatter(logging.Formatter):
    """
    Formats records as colored "[LEVEL] message" lines.

    Raw command output (records with ``raw=True``) is printed unchanged.
    """
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if getattr(record, "raw", False):
            return message
        tag, color = LEVEL_TAGS.get(record.levelno, ("[INFO]", "cyan"))
        return click.style(f"{tag} {message}", fg=color)


class FileFormatter(logging.Formatter):
    """
    Plain, timestamped lines for the run log.
    """
    def __init__(self):
        super().__init__("%(asctime)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if not getattr(record, "raw", False):
            tag, _ = LEVEL_TAGS.get(record.levelno, ("[INFO]", "cyan"))
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"{tag} {record.getMessage()}"
            record.args = None
        return super().format(record)


class ClickEchoHandler(logging.Handler):
    """
    Writes records through click.echo so colors are stripped when not on a tty.
    """
    def emit(self, record: logging.LogRecord):
        try:
            click.echo(self.format(record), err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def setup_run_log(log_path: str,
                  secrets: Optional[Iterable[str]] = None,
                  logger_name: str = LOGGER_NAME) -> logging.Logger:
    """
    Configures the run logger with a console handler and an append-mode log file.

    Calling it again replaces the handlers installed by an earlier call.

    :param log_path: File the run log is appended to.
    :param secrets: Values that must never be written out.
    :param logger_name: Name of the logger to configure.
    :return: The configured logger.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    masking = SecretMaskingFilter()
    for secret in secrets or ():
        masking.add_secret(secret)

    console = ClickEchoHandler()
    console.setFormatter(ConsoleFormatter())
    console.addFilter(masking)
    logger.addHandler(console)

    log_dir = os.path.dirname(os.path.abspath(log_path))
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(FileFormatter())
    file_handler.addFilter(masking)
    logger.addHandler(file_handler)

    logger.masking = masking
    return logger


def register_secret(logger: logging.Logger, secret: str):
    """
    Adds a value to the masking filter of a logger configured by setup_run_log.
    """
    masking = getattr(logger, "masking", None)
    if masking is not None:
        masking.add_secret(secret)


def log_ok(logger: logging.Logger, message: str, *args):
    logger.log(OK, message, *args)
