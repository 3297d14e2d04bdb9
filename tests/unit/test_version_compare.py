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
Unit tests for version comparison.
"""
import pytest
from dockship.UTILS.version_compare import parse_engine_version, version_ge


class TestVersionGe:
    """Tests for version_ge."""

    @pytest.mark.parametrize("version", ["20.10.0", "1", "0.0.1", "24.0.7-rc1", ""])
    def test_reflexive(self, version):
        """A version always satisfies itself."""
        assert version_ge(version, version)

    def test_numeric_not_lexicographic(self):
        """Segments compare as numbers: 20.10 is newer than 20.9."""
        assert version_ge("20.10.0", "20.9.9")
        assert not version_ge("20.9.9", "20.10.0")

    def test_newer_major(self):
        assert version_ge("24.0.7", "20.10.0")

    def test_older_minor(self):
        assert not version_ge("19.03.12", "20.10.0")

    def test_shorter_version_is_older(self):
        assert not version_ge("20.10", "20.10.0")
        assert version_ge("20.10.0", "20.10")

    def test_leading_v_ignored(self):
        assert version_ge("v20.10.0", "20.10.0")

    def test_empty_installed_version_fails(self):
        assert not version_ge("", "20.10.0")

    def test_malformed_input_does_not_raise(self):
        """Text segments fall back to lexicographic ordering."""
        assert version_ge("20.beta", "20.alpha")
        assert not version_ge("20.alpha", "20.beta")


class TestParseEngineVersion:
    """Tests for parse_engine_version."""

    def test_docker_version_line(self):
        assert parse_engine_version("Docker version 24.0.7, build afdd53b") == "24.0.7"

    def test_prerelease(self):
        assert parse_engine_version("Docker version 25.0.0-beta.1, build abc") == "25.0.0-beta.1"

    def test_unrecognized_output(self):
        assert parse_engine_version("command not found") is None
        assert parse_engine_version("") is None
