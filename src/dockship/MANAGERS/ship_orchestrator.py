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
Orchestration of the install, build and push steps.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..BUILDERS.image_builder import ImageBuilder
from ..MODELS.ship_config import ShipConfig
from ..REGISTRY.image_reference import ImageReference
from ..REGISTRY.registry_publisher import RegistryPublisher
from ..RUNNERS.command_runner import CommandRunner
from .engine_installer import EngineInstaller
from .repository_fetcher import RepositoryFetcher


@dataclass
class BuildResult:
    """What a build step produced."""

    image: ImageReference
    checkout: Path


class ShipOrchestrator:
    """
    Runs the workflow steps in a fixed order; the first failure aborts the run.
    """
    def __init__(self,
                 config: ShipConfig,
                 runner: Optional[CommandRunner] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the orchestrator.

        :param config: Configuration shared by all steps.
        :param runner: Executes external commands.
        :param logger: Run logger.
        """
        self.config = config
        self.logger = logger or logging.getLogger("dockship")
        self.runner = runner or CommandRunner(self.logger)
        self.installer = EngineInstaller(config, self.runner, self.logger)
        self.fetcher = RepositoryFetcher(config, self.runner, self.logger)
        self.builder = ImageBuilder(self.runner, self.logger)
        self.publisher = RegistryPublisher(config, self.runner, self.logger)

    def install(self):
        self.installer.ensure_installed()

    def build(self) -> BuildResult:
        """
        Installs the engine, clones the source and builds the local image.
        """
        self.install()
        url = self.fetcher.resolve_url()
        build_file = self.fetcher.clone(url)
        checkout = Path(self.config.app_dir)
        tag = self.fetcher.describe_tag(checkout, self.config.image_tag)
        image = ImageReference(repository=self.config.image_local_name, tag=tag)
        self.builder.build(checkout, image, build_file)
        return BuildResult(image=image, checkout=checkout)

    def push(self, image: Optional[str] = None) -> List[str]:
        """
        Publishes an already built local image.

        :param image: Explicit local image; when given, no fallback name is tried.
        :return: The pushed remote references.
        """
        self.install()
        target = self.publisher.collect_credentials()
        self.publisher.login(target)
        source = self.publisher.resolve_local_image(
            image or self.config.image_local_name, target, strict=image is not None)
        return self.publisher.tag_and_push(source, target)

    def all(self) -> List[str]:
        """
        Full flow: install, clone and build, then log in and push the built image.
        """
        result = self.build()
        target = self.publisher.collect_credentials(default_tag=result.image.tag)
        self.publisher.login(target)
        return self.publisher.tag_and_push(result.image, target)
