from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import courier
import courier.lib.cli as click
from courier.core import CourierContainer
from courier.model import DeploymentEnvironment

DEFAULT_CONFIG_ROOT = Path(courier.__file__).resolve().parents[1] / "config"
SUBCOMMANDS = ("pending", "schema")

# subcommand modules loaded while parsing, wired into the container at boot
_loaded: list[types.ModuleType] = []


class CourierGroup(click.Group):
    """Imports `courier.cli.<name>` only when that subcommand is invoked."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(SUBCOMMANDS)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in SUBCOMMANDS:
            return None
        module = importlib.import_module(f"courier.cli.{cmd_name}")
        if module not in _loaded:
            _loaded.append(module)
        return module.command


@click.group(cls=CourierGroup)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=DEFAULT_CONFIG_ROOT, type=click.FileURLParamType(dir_ok=True))
@click.option("-o", "--override", multiple=True, help="override a setting, e.g. -o sync.tie_break=server")
@click.option("-D", "--debug", is_flag=True, default=False, help="print tracebacks and capture warnings")
@click.pass_obj
def main(
    ct: CourierContainer,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    override: tuple[str, ...],
    debug: bool,
):
    """Inspect and maintain the offline assignment queue."""
    CourierContainer.boot(ct, debug=debug, env=env, config_root=config_root, override=override, wiring=tuple(_loaded))


def execute_command(*argv: str) -> t.NoReturn:
    threading.current_thread().name = "courier-0"
    args = list(argv or sys.argv)
    container = CourierContainer()

    try:
        rc = main.main(args[1:], prog_name=Path(args[0]).name, standalone_mode=False, obj=container)
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Exception as e:
        click.echo(click.style("ERROR ", fg="red") + str(e), err=True)
        if "-D" in args or "--debug" in args:
            traceback.print_exc()
        sys.exit(-1)
    finally:
        container.shutdown_resources()
    sys.exit(rc if isinstance(rc, int) else 0)


if __name__ == "__main__":
    execute_command(*sys.argv)
