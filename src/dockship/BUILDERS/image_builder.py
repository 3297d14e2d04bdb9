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
Builders that turn a source checkout into a locally tagged image.
"""
import logging
from pathlib import Path
from typing import List, Optional

from ..MANAGERS.run_log import log_ok
from ..REGISTRY.image_reference import ImageReference
from ..RUNNERS.command_runner import CommandRunner


class ImageBuilder:
    """
    Builds images with `docker buildx` when available, plain `docker build` otherwise.
    """
    def __init__(self, runner: CommandRunner, logger: Optional[logging.Logger] = None):
        """
        Initializes the ImageBuilder.

        :param runner: Executes the docker commands.
        :param logger: Run logger.
        """
        self.runner = runner
        self.logger = logger or logging.getLogger("dockship")

    def has_buildx(self) -> bool:
        return self.runner.succeeds(["docker", "buildx", "version"])

    def build_command(self, context_dir: Path, image: ImageReference,
                      build_file: Optional[Path] = None, buildx: bool = False) -> List[str]:
        """
        Assembles the build command line.

        :param context_dir: Build context (the checkout root).
        :param image: Local name and tag to give the image.
        :param build_file: Descriptor to build from; omitted when it is the default Dockerfile.
        :param buildx: Use the extended builder and load the result into the local store.
        :return: The command as an argument list.
        """
        if buildx:
            command = ["docker", "buildx", "build", "--load", "-t", image.local_name]
        else:
            command = ["docker", "build", "-t", image.local_name]
        if build_file is not None and Path(build_file).name != "Dockerfile":
            command.extend(["-f", str(build_file)])
        command.append(str(context_dir))
        return command

    def build(self, context_dir: Path, image: ImageReference,
              build_file: Optional[Path] = None) -> ImageReference:
        """
        Builds the image; a failing build raises CommandError and is not retried.

        :return: The reference of the built image.
        """
        self.logger.info("Building local image: %s", image.local_name)
        command = self.build_command(context_dir, image, build_file, buildx=self.has_buildx())
        self.runner.run(command)
        log_ok(self.logger, "Build complete.")
        return image
