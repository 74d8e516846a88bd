"""CLI entry point."""

from __future__ import annotations

import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from cachespine.cache.base import BaseCache
from cachespine.cache.factory import CacheRegistry, fingerprint
from cachespine.core.config import CacheConfig, Settings, get_settings
from cachespine.core.exceptions import ConfigurationError

app = typer.Typer(
    name="cachespine",
    help="One async cache API over Redis, Memcached and memory",
    no_args_is_help=True,
)
console = Console()

CHECK_KEY = "cachespine:check"


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show version."""
    from cachespine import __version__

    console.print(f"cachespine {__version__}")


def _config_error(error: Exception) -> typer.Exit:
    console.print(f"[red]Configuration error:[/red] {error}")
    return typer.Exit(code=1)


def _load_settings() -> tuple[Settings, CacheConfig]:
    try:
        settings = get_settings()
        return settings, settings.to_cache_config()
    except ValidationError as e:
        raise _config_error(e) from e


@app.command()
def info() -> None:
    """Show the cache configured by the environment."""
    import sys

    from cachespine import __version__

    _, config = _load_settings()

    console.print(f"[bold]CacheSpine[/bold] {__version__}")
    console.print(f"Python {sys.version}")
    console.print(f"Engine: {config.engine.value}")
    console.print(f"Mode: {config.consistency_mode.value}")
    console.print(f"Fingerprint: {fingerprint(config)}")


async def _round_trip(cache: BaseCache) -> list[tuple[str, bool, str]]:
    steps = []
    for name, operation in (
        ("set", lambda: cache.set(CHECK_KEY, "ok", ttl=30)),
        ("get", lambda: cache.get(CHECK_KEY)),
        ("delete", lambda: cache.delete(CHECK_KEY)),
    ):
        result = await operation()
        if result.is_success:
            steps.append((name, True, repr(result.response)))
        else:
            steps.append((name, False, f"{result.error_code} ({result.error.internal_id})"))
            break
    return steps


@app.command()
def check() -> None:
    """Run a set/get/delete round trip against the configured cache."""
    settings, config = _load_settings()
    _configure_logging(settings)

    async def run() -> list[tuple[str, bool, str]]:
        registry = CacheRegistry()
        try:
            cache = await registry.get(config)
            return await _round_trip(cache)
        finally:
            await registry.close()

    try:
        steps = asyncio.run(run())
    except ConfigurationError as e:
        raise _config_error(e) from e

    for name, ok, detail in steps:
        status = "[green]ok[/green]" if ok else "[red]failed[/red]"
        console.print(f"{name:<7} {status} {detail}")

    if not all(ok for _, ok, _ in steps):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
