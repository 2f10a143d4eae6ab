"""
terraclient command line.

Commands:
  apply     provision a configuration and write the resulting state
  destroy   tear down what a state file records
  outputs   print output values from a state file as JSON
  check     verify the terraform binary (and optionally a configuration)

Credentials default to the configured credentials environment variable
(GOOGLE_APPLICATION_CREDENTIALS unless changed in settings).
"""

import json
import logging
import os
import sys
from typing import Dict, Optional, Tuple

import click

from .config import Settings
from .core import InfraSession, TerraformLifecycle, TerraformParser
from .errors import TerraclientError, TerraformCommandError
from .utils import setup_logging, validate_terraform_installed

logger = logging.getLogger(__name__)


def _fail(msg: str) -> None:
    click.secho(msg, fg="bright_red", err=True)
    raise SystemExit(1)


def _read_file(path: Optional[str]) -> bytes:
    if not path:
        return b""
    with open(path, "rb") as f:
        return f.read()


def _parse_vars(values: Tuple[str, ...]) -> Dict[str, str]:
    inputs = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--var")
        inputs[name] = value
    return inputs


def _build_session(
    settings: Settings,
    config: Optional[str],
    state: Optional[str],
    credentials: Optional[str],
    plugin_dir: Optional[str],
    variables: Tuple[str, ...],
) -> InfraSession:
    if credentials is None:
        credentials = os.environ.get(settings.credentials_env_var, "")
    return InfraSession(
        config=_read_file(config),
        credentials=credentials,
        state=_read_file(state),
        plugin_dir=plugin_dir,
        inputs=_parse_vars(variables),
        lifecycle=TerraformLifecycle(settings),
    )


def _report_command_error(e: TerraformCommandError) -> None:
    if e.stdout:
        click.echo(e.stdout)
    if e.stderr:
        click.echo(e.stderr, err=True)
    _fail(str(e).splitlines()[0])


_session_options = [
    click.option("--config", "-c", "config", type=click.Path(exists=True, dir_okay=False),
                 required=True, help="Terraform configuration file."),
    click.option("--credentials", type=str, default=None,
                 help="Credentials value exported to terraform (default: from environment)."),
    click.option("--plugin-dir", type=click.Path(exists=True, file_okay=False), default=None,
                 help="Pre-populated provider plugin directory."),
    click.option("--var", "variables", multiple=True, metavar="KEY=VALUE",
                 help="Variable override; may be repeated."),
]


def session_options(func):
    for option in reversed(_session_options):
        func = option(func)
    return func


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"],
              case_sensitive=False), default=None, help="Log level.")
@click.option("--log-file", is_flag=True, help="Also log to a file in the cache directory.")
@click.option("--keep-workspaces", is_flag=True, help="Leave workspace directories behind.")
@click.option("--settings", "settings_file", type=click.Path(dir_okay=False), default=None,
              help="Settings JSON file.")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_file: bool,
        keep_workspaces: bool, settings_file: Optional[str]) -> None:
    """Drive terraform apply/destroy/output as single isolated operations."""
    settings = Settings(config_file=settings_file)
    if keep_workspaces:
        settings.set("keep_workspaces", True)
    setup_logging(log_level=log_level or settings.get("log_level", "INFO"), log_file=log_file)
    ctx.obj = settings


@cli.command()
@session_options
@click.option("--state-out", type=click.Path(dir_okay=False), required=True,
              help="Where to write the new state.")
@click.pass_obj
def apply(settings: Settings, config: str, credentials: Optional[str], plugin_dir: Optional[str],
          variables: Tuple[str, ...], state_out: str) -> None:
    """Apply a configuration and save the resulting state."""
    session = _build_session(settings, config, None, credentials, plugin_dir, variables)
    try:
        stdout = session.apply()
    except TerraformCommandError as e:
        _report_command_error(e)
    except TerraclientError as e:
        _fail(str(e))
    else:
        click.echo(stdout)
        try:
            with open(state_out, "wb") as f:
                f.write(session.state)
        except OSError as e:
            # The infrastructure exists now; the state must not be lost
            click.echo(session.state, err=True)
            _fail(f"Could not write state to {state_out}: {e}. The new state was printed above.")
        logger.info(f"State written to {state_out}")


@cli.command()
@session_options
@click.option("--state", type=click.Path(exists=True, dir_okay=False), required=True,
              help="State file recording what to destroy.")
@click.pass_obj
def destroy(settings: Settings, config: str, credentials: Optional[str], plugin_dir: Optional[str],
            variables: Tuple[str, ...], state: str) -> None:
    """Destroy the infrastructure recorded in a state file."""
    session = _build_session(settings, config, state, credentials, plugin_dir, variables)
    try:
        stdout = session.destroy()
    except TerraformCommandError as e:
        _report_command_error(e)
    except TerraclientError as e:
        _fail(str(e))
    else:
        click.echo(stdout)


@cli.command()
@click.option("--state", type=click.Path(exists=True, dir_okay=False), required=True,
              help="State file to read outputs from.")
@click.option("--pretty", is_flag=True, help="Indent the JSON.")
@click.pass_obj
def outputs(settings: Settings, state: str, pretty: bool) -> None:
    """Print output values as a JSON object."""
    session = InfraSession(state=_read_file(state), lifecycle=TerraformLifecycle(settings))
    try:
        values = session.outputs()
    except TerraformCommandError as e:
        _report_command_error(e)
    except TerraclientError as e:
        _fail(str(e))
    else:
        click.echo(json.dumps(values, indent=2 if pretty else None, sort_keys=True))


@cli.command()
@click.option("--config", "-c", "config", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Also check that this configuration parses.")
@click.pass_obj
def check(settings: Settings, config: Optional[str]) -> None:
    """Check that terraform is installed and a configuration parses."""
    installed, version = validate_terraform_installed(settings.terraform_binary)
    if not installed:
        _fail(f"terraform binary not found: {settings.terraform_binary}")
    click.echo(version)

    if config:
        is_valid, error = TerraformParser(_read_file(config)).validate_syntax()
        if not is_valid:
            _fail(f"{config}: {error}")
        click.echo(f"{config}: OK")


def main() -> int:
    """Console entry point."""
    return cli(prog_name="terraclient")


if __name__ == "__main__":
    sys.exit(main())
