"""CLI entry point for lsboot.

``lsboot init`` provisions the language server into a working directory and
launches it with this process's stdio, so an editor can use ``lsboot init``
as its server command.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__

app = typer.Typer(
    name="lsboot",
    help="Acquire and launch language-server binaries",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


@app.command()
def version():
    """Print version and exit."""
    console.print(f"lsboot {__version__}")


@app.command()
def init(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Initialization options as JSON, or @path to a JSON/JSONC file",
    ),
    profile: str = typer.Option(
        "terraform-ls",
        "--profile",
        "-p",
        help="Built-in profile name or path to a profile file",
    ),
    directory: Optional[Path] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Working directory for the binary (default: data dir)",
    ),
    os_name: Optional[str] = typer.Option(None, "--os", help="Override the reported OS"),
    arch: Optional[str] = typer.Option(None, "--arch", help="Override the reported architecture"),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Acquire the binary but only print the launch directive",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARN or ERROR"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="kv, json or pretty"),
    print_logs: bool = typer.Option(False, "--print-logs", help="Print logs to stderr"),
):
    """Resolve, fetch if needed, and launch the language server."""
    from .cmd.init import init_command

    code = asyncio.run(init_command(
        config=config,
        profile=profile,
        directory=directory,
        os_name=os_name,
        arch=arch,
        dry_run=dry_run,
        log_level=log_level,
        log_format=log_format,
        print_logs=print_logs,
    ))
    if code:
        raise typer.Exit(code)


@app.command()
def profiles():
    """List built-in profiles."""
    from ..core.profiles import PROFILES

    table = Table("name", "binary", "version", "patterns")
    for item in PROFILES.values():
        table.add_row(item.name, item.binary_name, item.default_version, ", ".join(item.patterns))
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
