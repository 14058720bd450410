from __future__ import annotations

from pathlib import Path

import anyio
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .app import Cogwork
from .config import ConfigError, read_config, resolve_config_path
from .events import EVENT_NAMES
from .libraries import LIBRARY_IDS, library_bindings
from .logging import get_logger, setup_logging
from .settings import load_settings, validate_settings_data

logger = get_logger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Run cogwork modules on a chat library.",
)


@app.callback()
def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Cogwork CLI."""


_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to cogwork.toml (defaults to ~/.cogwork/cogwork.toml).",
)


@app.command()
def run(config: Path | None = _CONFIG_OPTION) -> None:
    """Connect to the configured library and serve the configured modules."""
    try:
        settings, config_path = load_settings(config)
    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    setup_logging(level=settings.logging.level, format=settings.logging.format)
    try:
        cogwork = Cogwork(settings)
        cogwork.load_modules_from_settings()
    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    logger.info("config.loaded", path=str(config_path), library=settings.library)
    anyio.run(cogwork.run)


@app.command()
def check(config: Path | None = _CONFIG_OPTION) -> None:
    """Validate the config file without connecting."""
    cfg_path = resolve_config_path(config)
    try:
        data = read_config(cfg_path)
        settings = validate_settings_data(data, config_path=cfg_path)
    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(
        f"{cfg_path}: ok (library={settings.library}, "
        f"modules={len(settings.modules)})"
    )


@app.command()
def events(
    library: str | None = typer.Option(
        None,
        "--library",
        "-l",
        help="Only show one library.",
    ),
) -> None:
    """Show the internal event names and the upstream events behind them."""
    if library is not None and library.lower() not in LIBRARY_IDS:
        typer.echo(
            f"Unknown library {library!r}. Available: {', '.join(LIBRARY_IDS)}.",
            err=True,
        )
        raise typer.Exit(code=1)
    library_ids = (library.lower(),) if library is not None else LIBRARY_IDS

    table = Table(title="cogwork events")
    table.add_column("event", style="bold")
    for library_id in library_ids:
        table.add_column(library_id)
    bindings = [library_bindings(library_id) for library_id in library_ids]
    for name in EVENT_NAMES:
        cells: list[str] = []
        for table_bindings in bindings:
            binding = table_bindings.get(name)
            raw = binding.raw_events if binding is not None else ()
            cells.append(", ".join(raw) if raw else "[dim]unsupported[/dim]")
        table.add_row(name, *cells)
    Console().print(table)


def main() -> None:
    app()
