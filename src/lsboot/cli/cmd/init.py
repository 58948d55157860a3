"""``lsboot init`` command implementation."""

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from rich.console import Console

from ...bootstrap import LocalHost, Plugin
from ...core.config_loader import load_json_file, load_json_text
from ...core.env import Env
from ...core.errors import ConfigError
from ...core.global_paths import GlobalPath
from ...core.profiles import get_profile
from ...util.log import Log, LogFormat, LogLevel

log = Log.create({"service": "cli.init"})

# stdout belongs to the language server once it is launched.
err_console = Console(stderr=True)


def load_payload(config: Optional[str]) -> Dict[str, Any]:
    if not config:
        return {}
    if config.startswith("@"):
        return load_json_file(config[1:])
    return load_json_text(config, source="--config")


async def init_command(
    *,
    config: Optional[str] = None,
    profile: str = "terraform-ls",
    directory: Optional[Path] = None,
    os_name: Optional[str] = None,
    arch: Optional[str] = None,
    dry_run: bool = False,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    print_logs: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    console: Optional[Console] = None,
) -> int:
    """Run one initialize pass and return a process exit code."""
    console = console or Console()
    try:
        level = LogLevel.parse(log_level or Env.log_level())
        layout = LogFormat.parse(log_format or Env.log_format())
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 2
    Log.configure(level=level, format=layout, console=print_logs, file=not print_logs)

    try:
        selected = get_profile(profile)
        payload = load_payload(config)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 2

    workdir = directory or Path(GlobalPath.bin())
    workdir.mkdir(parents=True, exist_ok=True)

    host = LocalHost(
        workdir,
        os_name=os_name,
        arch=arch,
        transport=transport,
        user_agent=selected.user_agent,
        launch=not dry_run,
        inherit_stdio=True,
        console=err_console,
    )
    result = await Plugin(host, selected).handle_request("initialize", payload)
    if result is None:
        if Log.file():
            err_console.print(f"Details in {Log.file()}", soft_wrap=True, markup=False, highlight=False)
        return 1

    if dry_run:
        for key, value in (
            ("uri", result.uri),
            ("args", " ".join(result.args)),
            ("selector", ", ".join(f"{f.language}:{f.pattern}" for f in result.document_selector)),
            ("fetched", "yes" if result.fetched else "no"),
        ):
            console.print(f"{key}: {value}", soft_wrap=True, markup=False, highlight=False)
        return 0

    if host.process is None:
        return 1
    log.info("language server running", {"pid": host.process.pid})
    return await asyncio.to_thread(host.process.wait)
