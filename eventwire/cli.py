"""eventwire CLI: listen to an SSE endpoint, manage defaults, show process info."""

import asyncio
import signal
import sys
import tomllib
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
import tomli_w
from loguru import logger
from pydantic import ValidationError

from .client import AsyncSSEClient, describe_process
from .errors import ConfigError
from .types import ClientConfig, DisconnectedPayload, ErrorPayload, ReconnectingPayload, SSEEvent


# ============================================================================
# Config helpers
# ============================================================================

CONFIG_DIR = Path.home() / ".eventwire"
CONFIG_FILE = CONFIG_DIR / "config.toml"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


# Keys accepted under [default] and how their string form is converted
CONFIG_KEYS: Dict[str, Callable[[str], Any]] = {
    "url": str,
    "auto_reconnect": _parse_bool,
    "base_delay": float,
    "max_attempts": int,
    "timeout": float,
}


def _load_config() -> Dict[str, Any]:
    """Read config.toml, returning an empty dict if it doesn't exist."""
    if not CONFIG_FILE.exists():
        return {}
    with open(CONFIG_FILE, "rb") as f:
        return tomllib.load(f)


def _save_config(cfg: Dict[str, Any]) -> None:
    """Write config dict to config.toml."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(cfg, f)


def _set_default(cfg: Dict[str, Any], key: str, value: str) -> Any:
    """Validate and store ``value`` under ``[default].key``. Accepts ``default.`` prefixed keys."""
    name = key[len("default."):] if key.startswith("default.") else key
    convert = CONFIG_KEYS.get(name)
    if convert is None:
        raise ConfigError(f"Unknown config key {key!r} (expected one of: {', '.join(CONFIG_KEYS)})")
    try:
        converted = convert(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {e}") from e
    cfg.setdefault("default", {})[name] = converted
    return converted


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.enable("eventwire")


# ============================================================================
# CLI group
# ============================================================================

@click.group()
def cli():
    """Server-Sent Events client"""
    pass


# ============================================================================
# eventwire listen [url]
# ============================================================================

def _stamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _attach_printers(client: AsyncSSEClient) -> None:
    @client.on("connected")
    def on_connected(_: None) -> None:
        click.secho(f"[{_stamp()}] Connected", fg="green")

    @client.on("disconnected")
    def on_disconnected(payload: DisconnectedPayload) -> None:
        click.secho(f"[{_stamp()}] Disconnected: {payload.reason.value}", fg="yellow")

    @client.on("reconnecting")
    def on_reconnecting(payload: ReconnectingPayload) -> None:
        click.secho(
            f"[{_stamp()}] Reconnecting... (attempt {payload.attempt}, waiting {payload.delay:.1f}s)",
            fg="cyan",
        )

    @client.on("message")
    def on_message(event: SSEEvent) -> None:
        click.echo(f"[{_stamp()}] [{event.event}] {event.data}")

    @client.on("error")
    def on_error(payload: ErrorPayload) -> None:
        click.secho(f"[{_stamp()}] [{payload.kind.value}] {payload.message}", fg="red", err=True)
        if payload.cause is not None:
            click.secho(f"  {type(payload.cause).__name__}: {payload.cause}", fg="red", err=True)


async def _listen(url: str, config: ClientConfig) -> None:
    async with AsyncSSEClient(config) as client:
        _attach_printers(client)
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, client.disconnect)
            except NotImplementedError:
                # Windows event loops have no signal handlers; Ctrl+C raises KeyboardInterrupt
                pass
        await client.connect(url)


@cli.command()
@click.argument("url", required=False)
@click.option("--auto-reconnect/--no-auto-reconnect", default=None,
              help="Reconnect after the stream ends or fails")
@click.option("--base-delay", type=float, default=None, help="Base reconnect delay in seconds")
@click.option("--max-attempts", type=int, default=None, help="Reconnect attempt limit (0 = unlimited)")
@click.option("--timeout", type=float, default=None, help="Connect timeout in seconds")
@click.option("-v", "--verbose", is_flag=True, help="Log lifecycle details to stderr")
def listen(url: Optional[str], auto_reconnect: Optional[bool], base_delay: Optional[float],
           max_attempts: Optional[int], timeout: Optional[float], verbose: bool):
    """Stream events from URL until interrupted."""
    defaults = _load_config().get("default", {})
    url = url or defaults.get("url")
    if not url:
        click.echo("Error: No URL given and none configured. Run 'eventwire config set url <url>'.", err=True)
        sys.exit(1)

    options = {
        "auto_reconnect": auto_reconnect if auto_reconnect is not None else defaults.get("auto_reconnect", True),
        "reconnect_base_delay": base_delay if base_delay is not None else defaults.get("base_delay", 5.0),
        "max_reconnect_attempts": max_attempts if max_attempts is not None else defaults.get("max_attempts", 0),
        "timeout": timeout if timeout is not None else defaults.get("timeout", 100.0),
    }
    try:
        config = ClientConfig(**options)
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    _configure_logging(verbose)
    click.echo("=== Process Information ===")
    click.echo(describe_process())
    click.echo("")
    click.echo(f"Connecting to {url}...")
    if config.auto_reconnect:
        click.echo("Auto-reconnect enabled. Running until interrupted.")

    try:
        asyncio.run(_listen(url, config))
    except KeyboardInterrupt:
        click.echo("Connection cancelled.")
    click.echo("Process terminated.")


# ============================================================================
# eventwire info
# ============================================================================

@cli.command()
def info():
    """Show diagnostic process information."""
    click.echo(describe_process())


# ============================================================================
# eventwire config (subgroup)
# ============================================================================

@cli.group()
def config():
    """Manage configuration."""
    pass


@config.command("show")
def config_show():
    """Print config file contents."""
    if not CONFIG_FILE.exists():
        click.echo(f"No config file found at {CONFIG_FILE}")
        return

    with open(CONFIG_FILE, "r") as f:
        click.echo(f.read())


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a default (e.g., eventwire config set url https://example.com/events)"""
    cfg = _load_config()
    try:
        converted = _set_default(cfg, key, value)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    _save_config(cfg)
    click.echo(f"Set {key} = {converted!r}")


# ============================================================================
# Entry point
# ============================================================================

def main():
    cli()


if __name__ == "__main__":
    main()
