from __future__ import annotations

import io
import json
from pathlib import Path

import httpx
import pytest
from rich.console import Console
from typer.testing import CliRunner

from lsboot.cli.cmd.init import init_command, load_payload
from lsboot.cli.main import app
from lsboot.core import env
from lsboot.core.errors import ConfigError
from lsboot.core.global_paths import GlobalPath
from tests.helpers import make_zip


runner = CliRunner()


@pytest.fixture(autouse=True)
def _log_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path / "log")))


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "lsboot" in result.stdout


def test_profiles_command() -> None:
    result = runner.invoke(app, ["profiles"])
    assert result.exit_code == 0
    assert "terraform-ls" in result.stdout


def test_dry_run_with_existing_binary(tmp_path: Path) -> None:
    workdir = tmp_path / "bin"
    workdir.mkdir()
    (workdir / "terraform-ls").write_bytes(b"bin")

    result = runner.invoke(
        app,
        ["init", "--dir", str(workdir), "--os", "Linux", "--arch", "x86_64", "--dry-run"],
    )

    assert result.exit_code == 0
    assert "terraform-ls" in result.stdout
    assert "serve" in result.stdout


def test_unsupported_platform_exit_code(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init", "--dir", str(tmp_path), "--os", "plan9", "--dry-run"])
    assert result.exit_code == 1


def test_invalid_config_exit_code(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init", "--dir", str(tmp_path), "--config", "[1]", "--dry-run"])
    assert result.exit_code == 2


def test_load_payload_from_file(tmp_path: Path) -> None:
    path = tmp_path / "init.jsonc"
    path.write_text('{\n  // pin\n  "terraformVersion": "0.30.0"\n}', encoding="utf-8")

    assert load_payload(f"@{path}") == {"terraformVersion": "0.30.0"}
    assert load_payload(None) == {}
    with pytest.raises(ConfigError):
        load_payload(f"@{tmp_path / 'missing.json'}")


@pytest.mark.anyio
async def test_init_command_downloads_with_transport(tmp_path: Path) -> None:
    body = make_zip({"terraform-ls": b"bin"})
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, content=body)

    code = await init_command(
        config='{"lsp": {"terraformVersion": "0.31.0"}}',
        directory=tmp_path,
        os_name="Darwin",
        arch="arm64",
        dry_run=True,
        transport=httpx.MockTransport(handler),
        console=Console(file=io.StringIO()),
    )

    assert code == 0
    assert urls == [
        "https://releases.hashicorp.com/terraform-ls/0.31.0/terraform-ls_0.31.0_darwin_arm64.zip"
    ]
    assert (tmp_path / "terraform-ls").read_bytes() == b"bin"


@pytest.mark.anyio
async def test_init_command_rejects_bad_log_level(tmp_path: Path) -> None:
    assert await init_command(directory=tmp_path, log_level="loud", dry_run=True) == 2


def _session_log(tmp_path: Path) -> str:
    (path,) = (tmp_path / "log").glob("lsboot-*.log")
    return path.read_text(encoding="utf-8")


def _existing_binary(tmp_path: Path) -> Path:
    workdir = tmp_path / "bin"
    workdir.mkdir()
    (workdir / "terraform-ls").write_bytes(b"bin")
    return workdir


def test_log_format_option_writes_json_lines(tmp_path: Path) -> None:
    workdir = _existing_binary(tmp_path)

    result = runner.invoke(
        app,
        ["init", "--dir", str(workdir), "--os", "linux", "--arch", "amd64", "--dry-run", "--log-format", "json"],
    )

    assert result.exit_code == 0
    records = [json.loads(line) for line in _session_log(tmp_path).splitlines()]
    starting = [r for r in records if r["msg"].startswith("Starting LSP server with URI: ")]
    assert starting and starting[0]["service"] == "bootstrap.host"
    assert starting[0]["level"] == "info"


def test_log_format_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(env.LOG_FORMAT, "pretty")
    workdir = _existing_binary(tmp_path)

    result = runner.invoke(app, ["init", "--dir", str(workdir), "--os", "linux", "--arch", "amd64", "--dry-run"])

    assert result.exit_code == 0
    assert "INFO  [bootstrap.host] Starting LSP server with URI: " in _session_log(tmp_path)


def test_failure_points_at_session_log(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init", "--dir", str(tmp_path / "w"), "--os", "plan9", "--dry-run"])

    assert result.exit_code == 1
    assert "Unsupported OS: plan9" in _session_log(tmp_path)
    assert f"Details in {tmp_path / 'log'}" in result.output


@pytest.mark.anyio
async def test_init_command_rejects_bad_log_format(tmp_path: Path) -> None:
    assert await init_command(directory=tmp_path, log_format="xml", dry_run=True) == 2
