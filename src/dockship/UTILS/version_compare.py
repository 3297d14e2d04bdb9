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
Natural ordering for dotted version strings, similar to `sort -V`.
"""
import re
from typing import Optional, Tuple

_CHUNK_RE = re.compile(r"(\d+)")
_ENGINE_VERSION_RE = re.compile(r"version\s+v?([0-9][^\s,]*)", re.IGNORECASE)


def _natural_key(version: str) -> Tuple[Tuple[Tuple[int, int, str], ...], ...]:
    """
    Splits a version into dot segments, each made of numeric and text chunks.

    Numeric chunks compare as integers, text chunks lexicographically, and a
    number always sorts after text in the same position.
    """
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]

    key = []
    for segment in version.split("."):
        chunks = []
        for chunk in _CHUNK_RE.split(segment):
            if not chunk:
                continue
            if chunk.isdigit():
                chunks.append((1, int(chunk), ""))
            else:
                chunks.append((0, 0, chunk))
        key.append(tuple(chunks))
    return tuple(key)


def version_ge(installed: str, required: str) -> bool:
    """
    Returns True if `installed` is the same as or newer than `required`.

    Missing trailing segments count as older: "20.10" < "20.10.0".
    """
    return _natural_key(installed or "") >= _natural_key(required or "")


def parse_engine_version(version_output: str) -> Optional[str]:
    """
    Extracts the version number from `docker --version` output.

    "Docker version 24.0.7, build afdd53b" -> "24.0.7"
    """
    match = _ENGINE_VERSION_RE.search(version_output or "")
    if not match:
        return None
    return match.group(1)
