"""CLI for the birthday app — run the web server."""

from __future__ import annotations

import logging
import sys

import click
import uvicorn

from birthdays.config import ConfigError, load_config
from birthdays.core.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Birthdays — upcoming birthdays and anniversaries from Google Calendar."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Listen port (default: PORT or 3000)")
def serve(host: str | None, port: int | None) -> None:
    """Start the web server."""
    try:
        config = load_config()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    configure_logging(level=config.logging.level, fmt=config.logging.format)

    from birthdays.api.app import create_app

    app = create_app(config)
    bind_host = host or config.host
    bind_port = port or config.port
    logger.info("Server running on %s:%d", bind_host, bind_port)
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)


if __name__ == "__main__":
    cli()
