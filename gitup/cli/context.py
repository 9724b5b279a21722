from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from gitup.cli.commands._helpers import exit_on_error
from gitup.core.config import AppConfig, ConfigError, default_config_path, load_config
from gitup.core.errors import ErrorCode
from gitup.core.result import Ok, Result
from gitup.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: AppConfig
    config_path: Path
    console: ConsoleProtocol


def build_context(
    config_path: Path | None = None,
    *,
    require_config: bool = True,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    """Load configuration and set up output.

    A missing config file is only an error when ``require_config`` is set;
    ``gitup update --repo PATH`` works without one.
    """
    console = console or RichConsole()
    path = config_path or default_config_path()

    result: Result[AppConfig, ConfigError]
    if not require_config and not path.exists():
        result = Ok(AppConfig())
    else:
        result = load_config(path)

    config = exit_on_error(result, console, ErrorCode.CONFIG_ERROR)

    return CLIContext(config=config, config_path=path, console=console)
