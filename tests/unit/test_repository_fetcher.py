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
Unit tests for the repository fetcher.
"""
import pytest
from dockship.errors import MissingBuildFileError
from dockship.MANAGERS.repository_fetcher import RepositoryFetcher, repo_basename
from dockship.MODELS.ship_config import DEFAULT_REPO_URL, ShipConfig




class TestRepoBasename:
    """Tests for repo_basename."""

    @pytest.mark.parametrize("url, expected", [
        ("https://github.com/graylanquantum/quantum-road-scanner-pqs/", "quantum-road-scanner-pqs"),
        ("https://github.com/org/proj.git", "proj"),
        ("git@github.com:org/proj.git", "proj"),
        ("git@github.com:proj.git", "proj"),
        ("", "app"),
        (None, "app"),
    ])
    def test_basename(self, url, expected):
        assert repo_basename(url) == expected


class TestRepositoryFetcher:
    """Tests for RepositoryFetcher."""

    def test_url_from_config_skips_prompt(self, tmp_path, runner, logger, prompts):
        config = ShipConfig(repo_url="https://example.com/proj.git", app_dir=tmp_path / "src")
        assert RepositoryFetcher(config, runner, logger).resolve_url() == "https://example.com/proj.git"
        assert prompts.asked == []

    def test_url_prompt_defaults(self, config, runner, logger, prompts):
        assert RepositoryFetcher(config, runner, logger).resolve_url() == DEFAULT_REPO_URL
        assert prompts.asked[0][0] == "Git repo URL of Docker image source"

    def test_url_prompt_answer(self, config, runner, logger, prompts):
        prompts.answers["Git repo URL of Docker image source"] = "https://example.com/other.git"
        assert RepositoryFetcher(config, runner, logger).resolve_url() == "https://example.com/other.git"

    def test_no_input_uses_default_url(self, tmp_path, runner, logger, prompts):
        config = ShipConfig(app_dir=tmp_path / "src", no_input=True)
        assert RepositoryFetcher(config, runner, logger).resolve_url() == DEFAULT_REPO_URL
        assert prompts.asked == []

    def test_clone_replaces_stale_checkout(self, config, runner, logger, fake_clone):
        stale = config.app_dir / "stale.txt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        runner.respond(["git", "clone"], effect=fake_clone("Dockerfile"))

        build_file = RepositoryFetcher(config, runner, logger).clone("https://example.com/proj.git")

        assert build_file == config.app_dir / "Dockerfile"
        assert not stale.exists()
        assert runner.called("git", "clone") == [
            ["git", "clone", "https://example.com/proj.git", str(config.app_dir)]
        ]

    def test_containerfile_is_accepted(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("Containerfile"))
        build_file = RepositoryFetcher(config, runner, logger).clone("https://example.com/proj.git")
        assert build_file.name == "Containerfile"

    def test_missing_build_file_is_fatal(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("README.md"))
        with pytest.raises(MissingBuildFileError) as exc_info:
            RepositoryFetcher(config, runner, logger).clone("https://example.com/proj.git")
        assert exc_info.value.exit_code == 1


class TestDescribeTag:
    """Tests for tag derivation from git metadata."""

    def test_default_tag_uses_git_describe(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("Dockerfile"))
        runner.respond(["git", "-C"], output="v1.2.0-3-gabc1234-dirty")
        fetcher = RepositoryFetcher(config, runner, logger)
        fetcher.clone("https://example.com/proj.git")
        assert fetcher.describe_tag(config.app_dir, "latest") == "v1.2.0-3-gabc1234-dirty"
        assert runner.called("git", "-C")[0] == [
            "git", "-C", str(config.app_dir), "describe", "--tags", "--always", "--dirty"
        ]

    def test_configured_tag_is_kept(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("Dockerfile"))
        fetcher = RepositoryFetcher(config, runner, logger)
        fetcher.clone("https://example.com/proj.git")
        assert fetcher.describe_tag(config.app_dir, "v9") == "v9"
        assert runner.called("git", "-C") == []

    def test_no_git_metadata_keeps_default(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("Dockerfile", git=False))
        fetcher = RepositoryFetcher(config, runner, logger)
        fetcher.clone("https://example.com/proj.git")
        assert fetcher.describe_tag(config.app_dir, "latest") == "latest"
        assert runner.called("git", "-C") == []

    def test_describe_failure_falls_back_to_latest(self, config, runner, logger, fake_clone):
        runner.respond(["git", "clone"], effect=fake_clone("Dockerfile"))
        runner.respond(["git", "-C"], returncode=128)
        fetcher = RepositoryFetcher(config, runner, logger)
        fetcher.clone("https://example.com/proj.git")
        assert fetcher.describe_tag(config.app_dir, "latest") == "latest"
