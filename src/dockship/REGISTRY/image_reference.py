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
Image reference composition for local builds and registry pushes.
Handles references like 'app_image:v1' or 'docker.io/alice/proj:v1'.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class ImageReference:
    """
    A named, tagged image, either local or qualified with a registry.

    Examples:
        - app_image -> app_image:latest (local)
        - app_image:v1 -> app_image:v1 (local)
        - docker.io/alice/proj:v1 -> registry docker.io, repository alice/proj
        - localhost:5000/proj:v1 -> registry localhost:5000, repository proj
    """

    repository: str
    tag: str = "latest"
    registry: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'app_image', 'alice/proj:v1')

        Returns:
            Parsed ImageReference; registry is None unless the reference names one.
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValueError("Empty image reference")

        tag = cls.DEFAULT_TAG
        last_colon = reference.rfind(":")
        if last_colon != -1:
            after_colon = reference[last_colon + 1:]
            # A slash after the colon means it was a registry port, not a tag
            if "/" not in after_colon:
                tag = after_colon
                reference = reference[:last_colon]
        if not tag:
            raise ValueError("Empty tag in image reference")

        registry = None
        parts = reference.split("/")
        first_part = parts[0]
        if len(parts) > 1 and ("." in first_part or ":" in first_part or first_part == "localhost"):
            registry = first_part
            reference = "/".join(parts[1:])

        if not reference:
            raise ValueError("Empty repository in image reference")
        return cls(repository=reference, tag=tag, registry=registry)

    @classmethod
    def remote(cls, namespace: str, name: str, tag: str,
               registry: Optional[str] = None) -> "ImageReference":
        """Reference for `<registry>/<namespace>/<name>:<tag>`."""
        return cls(repository=f"{namespace}/{name}", tag=tag,
                   registry=registry or cls.DEFAULT_REGISTRY)

    @staticmethod
    def split_repository_path(value: str, default_namespace: str) -> Tuple[str, str]:
        """
        Split a 'namespace/name' answer; a bare 'name' keeps the default namespace.
        """
        value = value.strip()
        if "/" in value:
            namespace, name = value.split("/", 1)
            return namespace, name
        return default_namespace, value

    def with_tag(self, tag: str) -> "ImageReference":
        return replace(self, tag=tag)

    @property
    def local_name(self) -> str:
        """Get 'repository:tag' without the registry."""
        return f"{self.repository}:{self.tag}"

    @property
    def full_name(self) -> str:
        """Get full image name with registry, when there is one."""
        if self.registry:
            return f"{self.registry}/{self.local_name}"
        return self.local_name

    def __str__(self) -> str:
        return self.full_name
