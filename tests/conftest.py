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
Shared fixtures: a scripted command runner, prompt answers and an isolated environment.
"""
import logging
from pathlib import Path

import click
import pytest

from dockship.MANAGERS.run_log import setup_run_log
from dockship.MODELS.ship_config import ENV_FIELDS, ShipConfig
from dockship.RUNNERS.command_runner import CommandResult, CommandRunner

ENGINE_VERSION = "Docker version 24.0.7, build afdd53b"


class FakeRunner(CommandRunner):
    """
    Records commands instead of running them.

    Responses are matched by command prefix; the most recently added match wins.
    Unmatched commands succeed with empty output.
    """
    def __init__(self):
        super().__init__(logging.getLogger("dockship"))
        self.responses = []
        self.calls = []
        self.inputs = []

    def respond(self, prefix, returncode=0, output="", effect=None):
        self.responses.insert(0, (tuple(prefix), returncode, output, effect))
        return self

    def run(self, command, input_text=None, cwd=None, check=True, quiet=False):
        command = [str(part) for part in command]
        self.calls.append(command)
        self.inputs.append(input_text)

        returncode, output = 0, ""
        for prefix, rc, out, effect in self.responses:
            if tuple(command[:len(prefix)]) == prefix:
                if effect is not None:
                    effect(command)
                returncode, output = rc, out
                break

        result = CommandResult(command, returncode, output)
        if check:
            result.check()
        return result

    def called(self, *prefix) -> list:
        return [c for c in self.calls if tuple(c[:len(prefix)]) == prefix]


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep configuration variables from the host out of the tests."""
    for var in ENV_FIELDS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("USER", "alice")
    yield


@pytest.fixture
def runner():
    """A runner for a host with a ready, recent Docker engine."""
    fake = FakeRunner()
    fake.respond(["docker", "--version"], output=ENGINE_VERSION)
    fake.respond(["id", "-nG"], output="alice sudo docker")
    return fake


@pytest.fixture
def ship_log(tmp_path):
    return tmp_path / "ship.log"


@pytest.fixture
def logger(ship_log):
    log = setup_run_log(str(ship_log))
    yield log
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()


@pytest.fixture
def config(tmp_path, ship_log):
    return ShipConfig(app_dir=tmp_path / "src", log_path=ship_log)


class PromptScript:
    """
    Scripted answers for click.prompt, keyed by prompt text.

    Prompts without an answer return their default.
    """
    def __init__(self):
        self.answers = {}
        self.asked = []

    def __call__(self, text, default=None, hide_input=False, **kwargs):
        self.asked.append((text, hide_input))
        if text in self.answers:
            return self.answers[text]
        if default is None:
            raise AssertionError(f"Unexpected prompt without default: {text}")
        return default


@pytest.fixture
def prompts(monkeypatch):
    script = PromptScript()
    monkeypatch.setattr(click, "prompt", script)
    return script


def clone_effect(*files, git=True):
    """Returns a runner effect that creates a checkout with the given files."""
    def effect(command):
        checkout = Path(command[-1])
        checkout.mkdir(parents=True)
        if git:
            (checkout / ".git").mkdir()
        for name in files:
            (checkout / name).write_text("FROM python:3.12\n")
    return effect


@pytest.fixture
def fake_clone():
    return clone_effect
