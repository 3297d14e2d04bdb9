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
Run configuration for dockship.

The configuration is read once at startup from the process environment,
optionally layered over a dotenv file, and never mutated afterwards.
"""
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, SecretStr

DEFAULT_REPO_URL = "https://github.com/graylanquantum/quantum-road-scanner-pqs/"
DEFAULT_TAG = "latest"

# Environment variable -> ShipConfig field
ENV_FIELDS: Dict[str, str] = {
    "GIT_REPO_URL": "repo_url",
    "APP_DIR": "app_dir",
    "IMAGE_LOCAL_NAME": "image_local_name",
    "IMAGE_TAG": "image_tag",
    "LOG_PATH": "log_path",
    "DOCKER_REQUIRED_VERSION": "docker_required_version",
    "DOCKERHUB_USERNAME": "dockerhub_username",
    "DOCKERHUB_TOKEN": "dockerhub_token",
    "DOCKERHUB_NAMESPACE": "dockerhub_namespace",
    "DOCKERHUB_REPO": "dockerhub_repo",
}


class ShipConfig(BaseModel):
    """
    Immutable settings shared by every step of a run.
    """
    model_config = ConfigDict(frozen=True)

    repo_url: Optional[str] = None
    app_dir: Path = Path.home() / "docker_app_src"
    image_local_name: str = "app_image"
    image_tag: str = DEFAULT_TAG
    log_path: Path = Path.home() / "docker_ship.log"
    docker_required_version: str = "20.10.0"

    dockerhub_username: Optional[str] = None
    dockerhub_token: Optional[SecretStr] = None
    dockerhub_namespace: Optional[str] = None
    dockerhub_repo: Optional[str] = None

    # Accept every prompt default instead of asking
    no_input: bool = False

    @classmethod
    def from_env(cls,
                 environ: Optional[Mapping[str, str]] = None,
                 env_file: Optional[str] = None,
                 **overrides) -> "ShipConfig":
        """
        Builds the configuration from environment variables.

        :param environ: Variables to read; defaults to the process environment.
        :param env_file: Optional dotenv file; process variables take precedence over it.
        :param overrides: Field values that win over both sources (CLI options).
        :return: A frozen ShipConfig.
        """
        merged: Dict[str, str] = {}
        if env_file and os.path.exists(env_file):
            merged.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        source = os.environ if environ is None else environ
        # Empty variables behave as unset and never hide a dotenv value
        merged.update({k: v for k, v in source.items() if v})

        values = {}
        for env_name, field in ENV_FIELDS.items():
            value = merged.get(env_name)
            if value:
                values[field] = value

        for key in ("app_dir", "log_path"):
            if key in values:
                values[key] = Path(values[key]).expanduser()

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class PublishTarget(BaseModel):
    """
    Where and as whom an image gets pushed.
    """
    model_config = ConfigDict(frozen=True)

    username: str
    namespace: str
    repository: str
    tag: str
    token: SecretStr
