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
Installation and readiness checks for the Docker engine on apt-based hosts.
"""
import getpass
import logging
import os
from typing import Optional

from jinja2 import Template

from ..errors import ReloginRequired, ShipError
from ..MODELS.ship_config import ShipConfig
from ..RUNNERS.command_runner import CommandRunner
from ..UTILS.version_compare import parse_engine_version, version_ge
from .run_log import log_ok

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
KEYRING_DIR = "/etc/apt/keyrings"
KEYRING_PATH = f"{KEYRING_DIR}/docker.gpg"
SOURCES_LIST_PATH = "/etc/apt/sources.list.d/docker.list"
DOCKER_GROUP = "docker"

LEGACY_PACKAGES = ["docker", "docker-engine", "docker.io", "containerd", "runc"]
PREREQUISITE_PACKAGES = ["ca-certificates", "curl", "gnupg", "lsb-release", "git"]
ENGINE_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]

APT_SOURCE_TEMPLATE = (
    "deb [arch={{ arch }} signed-by={{ keyring }}] "
    "https://download.docker.com/linux/ubuntu {{ codename }} stable\n"
)


class EngineInstaller:
    """
    Makes sure the Docker engine is installed, running and usable without sudo.
    """
    def __init__(self,
                 config: ShipConfig,
                 runner: CommandRunner,
                 logger: Optional[logging.Logger] = None,
                 user: Optional[str] = None):
        """
        Initializes the installer.

        :param config: Run configuration; supplies the minimum engine version.
        :param runner: Executes the package manager and engine commands.
        :param logger: Run logger.
        :param user: Account to grant engine access to; defaults to the invoking user.
        """
        self.config = config
        self.runner = runner
        self.logger = logger or logging.getLogger("dockship")
        self.user = user or os.environ.get("USER") or getpass.getuser()
        self.source_template = Template(APT_SOURCE_TEMPLATE, keep_trailing_newline=True)

    def installed_version(self) -> Optional[str]:
        """
        Returns the installed engine version, or None when docker is not on the PATH.
        """
        result = self.runner.run(["docker", "--version"], check=False, quiet=True)
        if not result.ok:
            return None
        return parse_engine_version(result.output)

    def needs_install(self) -> bool:
        version = self.installed_version()
        if version is None:
            return True
        return not version_ge(version, self.config.docker_required_version)

    def ensure_installed(self) -> str:
        """
        Installs the engine if needed and verifies the current user can reach the daemon.

        :return: The `docker --version` line of the ready engine.
        :raises ReloginRequired: The user was just added to the docker group.
        :raises ShipError: The daemon is unreachable despite correct group membership.
        """
        self.logger.info("Checking Docker installation...")
        if self.needs_install():
            self.install()

        if not self.runner.succeeds(["docker", "info"]):
            if not self.in_docker_group():
                self.logger.warning(
                    "Adding %s to %s group (you may need to log out/in afterwards).",
                    self.user, DOCKER_GROUP)
                self.runner.run(["sudo", "usermod", "-aG", DOCKER_GROUP, self.user])
                raise ReloginRequired(
                    "Please log out and log back in to refresh group membership, "
                    "then rerun this command.")
            raise ShipError("Docker daemon not available. Try: sudo systemctl restart docker")

        version_line = self.runner.output(["docker", "--version"])
        log_ok(self.logger, "Docker is ready: %s", version_line)
        return version_line

    def install(self):
        """
        Installs Docker CE and its plugins from the vendor apt repository.
        """
        self.logger.info("Installing Docker (CE) and plugins...")
        run = self.runner.run
        run(["sudo", "apt-get", "update", "-y"])
        # Legacy packages are usually absent
        run(["sudo", "apt-get", "remove", "-y"] + LEGACY_PACKAGES, check=False)
        run(["sudo", "apt-get", "install", "-y"] + PREREQUISITE_PACKAGES)
        run(["sudo", "install", "-m", "0755", "-d", KEYRING_DIR])

        key = self.runner.run(["curl", "-fsSL", DOCKER_GPG_URL], quiet=True).output
        run(["sudo", "gpg", "--batch", "--yes", "--dearmor", "-o", KEYRING_PATH],
            input_text=key + "\n")

        run(["sudo", "tee", SOURCES_LIST_PATH], input_text=self.render_apt_source(), quiet=True)

        run(["sudo", "apt-get", "update", "-y"])
        run(["sudo", "apt-get", "install", "-y"] + ENGINE_PACKAGES)
        run(["sudo", "systemctl", "enable", "docker"])
        run(["sudo", "systemctl", "start", "docker"])

    def render_apt_source(self) -> str:
        """
        Renders the apt source entry for this machine's architecture and release.
        """
        return self.source_template.render(
            arch=self.runner.output(["dpkg", "--print-architecture"]),
            keyring=KEYRING_PATH,
            codename=self.runner.output(["lsb_release", "-cs"]),
        )

    def in_docker_group(self) -> bool:
        groups = self.runner.output(["id", "-nG", self.user]).split()
        return DOCKER_GROUP in groups
