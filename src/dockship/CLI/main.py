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
Command Line Interface for dockship.
"""
import os

import click

from .. import __version__
from ..errors import PrivilegeError, ShipError
from ..MANAGERS.run_log import log_ok, setup_run_log
from ..MANAGERS.ship_orchestrator import ShipOrchestrator
from ..MODELS.ship_config import ShipConfig
from ..RUNNERS.command_runner import CommandRunner


def check_privileges(runner: CommandRunner):
    """
    Refuses to run as root and requires working sudo for the invoking user.
    """
    if os.geteuid() == 0:
        raise PrivilegeError("Do NOT run dockship as root. Use a regular user with sudo.")
    if not runner.run(["sudo", "-v"], check=False, quiet=True).ok:
        raise PrivilegeError("sudo privileges are required.")


def execute(ctx, step, *args, **kwargs):
    """
    Runs one workflow step, turning any failure into a log message and exit status.
    """
    logger = ctx.obj['logger']
    try:
        return step(*args, **kwargs)
    except ShipError as e:
        if e.exit_code == 0:
            logger.warning(str(e))
        else:
            logger.error(str(e))
            logger.error("An error occurred. See %s for details.", ctx.obj['config'].log_path)
        ctx.exit(e.exit_code)
    except (click.exceptions.Exit, click.Abort, click.ClickException):
        raise
    except Exception as e:
        logger.error("%s: %s", type(e).__name__, e)
        logger.error("An error occurred. See %s for details.", ctx.obj['config'].log_path)
        ctx.exit(1)


class ShipGroup(click.Group):
    """
    Command group that reports an unknown command with exit status 1.

    Status 2 stays reserved for a refused start (root user or no sudo).
    """
    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def run_step(ctx, step, *args):
    """
    Checks privileges, then runs one workflow step to completion.
    """
    execute(ctx, check_privileges, ctx.obj['runner'])
    execute(ctx, step, *args)
    log_ok(ctx.obj['logger'], "Done.")


@click.group(cls=ShipGroup, invoke_without_command=True)
@click.option('--env-file', default='.env', show_default=True,
              help='Dotenv file with configuration overrides (ignored if missing)')
@click.option('--log-file', default=None, help='Run log path (overrides LOG_PATH)')
@click.option('--no-input', is_flag=True, help='Accept defaults instead of prompting')
@click.version_option(__version__, prog_name='dockship')
@click.pass_context
def cli(ctx, env_file, log_file, no_input):
    """
    dockship - install Docker, build an image from a git repo and push it to Docker Hub.

    Runs the full flow (install, build, push) when no command is given.

    Environment overrides: GIT_REPO_URL, APP_DIR, IMAGE_LOCAL_NAME, IMAGE_TAG,
    LOG_PATH, DOCKER_REQUIRED_VERSION, DOCKERHUB_USERNAME, DOCKERHUB_TOKEN,
    DOCKERHUB_NAMESPACE, DOCKERHUB_REPO.

    Exit status: 0 on success or when a re-login is needed, 1 on a failed step
    or an unknown command, 2 when run as root or without sudo.
    """
    ctx.ensure_object(dict)
    config = ShipConfig.from_env(env_file=env_file, log_path=log_file, no_input=no_input or None)
    secrets = [config.dockerhub_token.get_secret_value()] if config.dockerhub_token else []
    logger = setup_run_log(str(config.log_path), secrets=secrets)

    runner = ctx.obj.get('runner') or CommandRunner(logger)
    ctx.obj['runner'] = runner
    ctx.obj['config'] = config
    ctx.obj['logger'] = logger
    ctx.obj['orchestrator'] = ShipOrchestrator(config, runner, logger)

    if ctx.invoked_subcommand is None:
        ctx.invoke(all_steps)


@cli.command()
@click.pass_context
def install(ctx):
    """Install or verify Docker."""
    run_step(ctx, ctx.obj['orchestrator'].install)


@cli.command()
@click.pass_context
def build(ctx):
    """Prompt for the repo, clone it and build the local image."""
    run_step(ctx, ctx.obj['orchestrator'].build)


@cli.command()
@click.option('--image', default=None,
              help='Local image NAME[:TAG] to publish; disables the fallback lookup')
@click.pass_context
def push(ctx, image):
    """Prompt for Docker Hub credentials, log in, tag and push the built image."""
    run_step(ctx, ctx.obj['orchestrator'].push, image)


@cli.command(name='all')
@click.pass_context
def all_steps(ctx):
    """Full flow: install, clone/build, log in, push."""
    run_step(ctx, ctx.obj['orchestrator'].all)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
