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
Fetching the image source repository into a fresh local checkout.
"""
import logging
import shutil
from pathlib import Path
from typing import Optional

import click

from ..errors import CommandError, MissingBuildFileError
from ..MODELS.ship_config import DEFAULT_REPO_URL, DEFAULT_TAG, ShipConfig
from ..RUNNERS.command_runner import CommandRunner
from .run_log import log_ok

# Checked in order at the checkout root
BUILD_FILES = ("Dockerfile", "Containerfile")


def repo_basename(url: Optional[str], fallback: str = "app") -> str:
    """
    Derives a repository name from a clone URL.

    "https://github.com/org/project.git/" -> "project"
    """
    if not url:
        return fallback
    name = url.rstrip("/").rsplit("/", 1)[-1]
    name = name.rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[:-4]
    return name or fallback


def find_build_file(checkout: Path) -> Optional[Path]:
    for name in BUILD_FILES:
        candidate = checkout / name
        if candidate.is_file():
            return candidate
    return None


class RepositoryFetcher:
    """
    Clones the image source repository, replacing any previous checkout.
    """
    def __init__(self,
                 config: ShipConfig,
                 runner: CommandRunner,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.runner = runner
        self.logger = logger or logging.getLogger("dockship")

    def resolve_url(self) -> str:
        """
        Returns the configured repository URL, prompting for one if none is set.
        """
        url = self.config.repo_url
        if not url:
            if self.config.no_input:
                url = DEFAULT_REPO_URL
            else:
                url = click.prompt("Git repo URL of Docker image source", default=DEFAULT_REPO_URL)
        log_ok(self.logger, "Using source repo: %s", url)
        return url

    def clone(self, url: str) -> Path:
        """
        Clones `url` into the configured checkout directory.

        :return: Path of the build file found at the checkout root.
        :raises MissingBuildFileError: No Dockerfile or Containerfile was found.
        """
        checkout = Path(self.config.app_dir)
        if checkout.exists():
            shutil.rmtree(checkout)

        self.logger.info("Cloning %s into %s...", url, checkout)
        self.runner.run(["git", "clone", url, str(checkout)])
        log_ok(self.logger, "Repo cloned.")

        build_file = find_build_file(checkout)
        if build_file is None:
            raise MissingBuildFileError(
                f"No Dockerfile found in repo root ({checkout}). Add one or set the correct repo.")
        return build_file

    def describe_tag(self, checkout: Path, configured_tag: str) -> str:
        """
        Picks the tag for a fresh build.

        A tag left at the default is replaced by `git describe` output when the
        checkout has git metadata; any other tag is kept as configured.
        """
        if configured_tag != DEFAULT_TAG or not (Path(checkout) / ".git").is_dir():
            return configured_tag
        try:
            described = self.runner.output(
                ["git", "-C", str(checkout), "describe", "--tags", "--always", "--dirty"])
        except CommandError:
            return DEFAULT_TAG
        return described or DEFAULT_TAG
