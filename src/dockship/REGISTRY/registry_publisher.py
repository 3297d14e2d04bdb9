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
Publishing locally built images to Docker Hub through the docker CLI.

Publishing runs in three stages: credential collection, login, then
tag-and-push. The access token is only ever handed to `docker login` on
stdin; it never appears on a command line or in the run log.
"""

import logging
from typing import List, Optional

import click
from pydantic import SecretStr

from ..errors import CommandError, ShipError
from ..MANAGERS.repository_fetcher import repo_basename
from ..MANAGERS.run_log import log_ok, register_secret
from ..MODELS.ship_config import DEFAULT_REPO_URL, PublishTarget, ShipConfig
from ..RUNNERS.command_runner import CommandRunner
from .image_reference import ImageReference


class RegistryPublisher:
    """
    Logs in to Docker Hub and pushes a local image under a namespace/repository.
    """

    def __init__(self, config: ShipConfig, runner: CommandRunner,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the publisher.

        Args:
            config: Run configuration with any preset credentials.
            runner: Executes the docker commands.
            logger: Run logger; the token is registered with its masking filter.
        """
        self.config = config
        self.runner = runner
        self.logger = logger or logging.getLogger("dockship")

    def _ask(self, text: str, default: Optional[str] = None, hide_input: bool = False) -> str:
        if self.config.no_input:
            if default is None:
                raise ShipError(f"{text} is required but prompting is disabled.")
            return default
        return click.prompt(text, default=default, hide_input=hide_input)

    def default_repository(self) -> str:
        if self.config.dockerhub_repo:
            return self.config.dockerhub_repo
        return repo_basename(self.config.repo_url or DEFAULT_REPO_URL)

    def collect_credentials(self, default_tag: Optional[str] = None) -> PublishTarget:
        """
        Gather username, repository, token and tag for this run.

        Preset values from the configuration are used without asking, except
        the repository and tag which are always offered for confirmation.

        Args:
            default_tag: Tag suggested at the prompt; defaults to the configured tag.

        Returns:
            The frozen publish target.
        """
        username = self.config.dockerhub_username or self._ask("Docker Hub username")

        namespace = self.config.dockerhub_namespace or username
        repository = self.default_repository()
        answer = self._ask("Docker Hub repo (namespace/name)",
                           default=f"{namespace}/{repository}")
        namespace, repository = ImageReference.split_repository_path(answer, username)
        if not namespace or not repository:
            raise ShipError(f"Invalid Docker Hub repo: {answer!r}")

        token = self.config.dockerhub_token
        if token is None:
            token = SecretStr(self._ask("Docker Hub access token (input hidden)", hide_input=True))
        if not token.get_secret_value():
            raise ShipError("Token cannot be empty.")
        register_secret(self.logger, token.get_secret_value())

        tag = self._ask("Tag to push", default=default_tag or self.config.image_tag)

        target = PublishTarget(username=username, namespace=namespace,
                               repository=repository, tag=tag, token=token)
        log_ok(self.logger, "Target: %s", self.remote_reference(target))
        return target

    def remote_reference(self, target: PublishTarget, tag: Optional[str] = None) -> ImageReference:
        return ImageReference.remote(target.namespace, target.repository, tag or target.tag)

    def login(self, target: PublishTarget):
        """
        Authenticate the docker CLI, passing the token on stdin.
        """
        self.logger.info("Logging in to Docker Hub as %s...", target.username)
        try:
            self.runner.run(
                ["docker", "login", "-u", target.username, "--password-stdin"],
                input_text=target.token.get_secret_value() + "\n",
            )
        except CommandError as e:
            raise ShipError("Docker Hub login failed.") from e
        log_ok(self.logger, "Logged in.")

    def image_exists(self, image: ImageReference) -> bool:
        return self.runner.succeeds(["docker", "image", "inspect", image.local_name])

    def resolve_local_image(self, local_name: str, target: PublishTarget,
                            strict: bool = False) -> ImageReference:
        """
        Find the local image to publish.

        Looks for `<local_name>:<tag>` first. Unless `strict` is set, falls back
        to an image named after the registry repository with the same tag.

        Args:
            local_name: Configured local image name, optionally with its own tag.
            target: Publish target supplying the tag and repository name.
            strict: Disable the fallback.

        Returns:
            Reference of the existing local image.
        """
        image = ImageReference.parse(local_name)
        if ":" not in local_name.rsplit("/", 1)[-1]:
            image = image.with_tag(target.tag)
        if self.image_exists(image):
            return image

        if strict:
            raise ShipError(f"No local image tagged {image.local_name}.")

        fallback = ImageReference(repository=target.repository, tag=target.tag)
        self.logger.warning("Local image %s not found. Trying %s...",
                            image.local_name, fallback.local_name)
        if not self.image_exists(fallback):
            raise ShipError(
                f"No local image tagged {fallback.local_name}. Run 'dockship build' first.")
        return fallback

    def tag_and_push(self, source: ImageReference, target: PublishTarget) -> List[str]:
        """
        Tag the local image under the remote reference and push it.

        A non-latest tag is also pushed as `latest`.

        Returns:
            The pushed remote references, in push order.
        """
        tags = [target.tag]
        if target.tag != ImageReference.DEFAULT_TAG:
            tags.append(ImageReference.DEFAULT_TAG)

        pushed = []
        for tag in tags:
            remote = self.remote_reference(target, tag)
            self.logger.info("Tagging %s -> %s", source.local_name, remote.full_name)
            self.runner.run(["docker", "tag", source.local_name, remote.full_name])
            self.logger.info("Pushing %s", remote.full_name)
            self.runner.run(["docker", "push", remote.full_name])
            log_ok(self.logger, "Pushed %s", remote.full_name)
            pushed.append(remote.full_name)
        return pushed
