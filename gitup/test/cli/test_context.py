from __future__ import annotations

from pathlib import Path

import pytest
import typer

from gitup.cli.context import build_context
from gitup.core.errors import ErrorCode
from gitup.output.console import MockConsole


def test_missing_config_is_an_error(tmp_path: Path) -> None:
    console = MockConsole()

    with pytest.raises(typer.Exit) as exc:
        build_context(tmp_path / "missing.toml", console=console)

    assert exc.value.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert console.has_error()


def test_missing_config_allowed(tmp_path: Path) -> None:
    ctx = build_context(tmp_path / "missing.toml", require_config=False, console=MockConsole())

    assert ctx.config.repos == ()
    assert ctx.config_path == tmp_path / "missing.toml"


def test_invalid_config_reports_message(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("max_workers = 0\n", encoding="utf-8")
    console = MockConsole()

    with pytest.raises(typer.Exit):
        build_context(path, console=console)

    assert console.find("max_workers")


def test_loads_config(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[[repos]]\npath = "/src/app"\n', encoding="utf-8")

    ctx = build_context(path, console=MockConsole())

    assert [r.path for r in ctx.config.repos] == [Path("/src/app")]
