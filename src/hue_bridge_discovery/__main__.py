"""CLI entry point for Hue bridge discovery."""

import asyncio
import json
import sys
from pathlib import Path

import click

from .config import Config
from .discovery.discovery_service import discover_bridges
from .exceptions import DiscoveryFailed
from .models.common import DiscoveryMode
from .utils.logging_config import configure_logging


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="HUE_DISCOVERY_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None, # Falls back to the Config default
    help="Override the logging level (e.g., DEBUG, INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, log_level: str | None, log_format: str | None) -> None:
    """Hue Bridge Discovery - finds Hue bridges on your network."""
    try:
        if config_file:
            cfg = Config.from_file(Path(config_file))
        else:
            # Environment variables (and .env if present)
            cfg = Config()
    except (OSError, ValueError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()

    configure_logging(cfg.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.option(
    "--all", "find_all",
    is_flag=True,
    default=False,
    help="Wait for every bridge instead of returning the first one found."
)
@click.option(
    "--output-file", "-o",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the discovered bridges to this file (JSON format)."
)
@click.pass_context
def discover(ctx: click.Context, find_all: bool, output_file: str | None) -> None:
    """Discovers bridges and prints them as JSON."""
    config: Config = ctx.obj["config"]
    mode = DiscoveryMode.EXHAUSTIVE if find_all else DiscoveryMode.FIRST_MATCH

    try:
        bridges = asyncio.run(discover_bridges(mode=mode, config=config))
    except KeyboardInterrupt:
        click.echo("\nDiscovery interrupted by user.", err=True)
        sys.exit(130)
    except DiscoveryFailed as e:
        click.echo(f"No bridges found: {e}", err=True)
        sys.exit(1)

    payload = json.dumps([bridge.model_dump() for bridge in bridges], indent=2)
    if output_file:
        try:
            with open(output_file, "w") as f:
                f.write(payload)
            click.echo(f"{len(bridges)} bridge(s) written to {output_file}")
        except OSError as e:
            click.echo(f"Error writing output file {output_file}: {e}", err=True)
            sys.exit(1)
    else:
        click.echo(payload)


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"Hue Bridge Discovery v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
