"""Click CLI: run the relay server or register webhooks on their own."""

from __future__ import annotations

import asyncio
import json
import logging

import click
import uvicorn
from dotenv import load_dotenv

from src.bots.registry import InvalidConfigError, MissingCredentialError, load_config_from_env
from src.server.app import create_app
from src.server.context import RelayContext, build_context
from src.server.logging_setup import configure_logging
from src.webhook.registrar import register_all

logger = logging.getLogger(__name__)


def _load_context() -> RelayContext:
    try:
        config = load_config_from_env()
        configure_logging(config.log_level)
        return build_context(config)
    except (MissingCredentialError, InvalidConfigError) as exc:
        configure_logging()
        logger.error("Configuration error: %s", exc)
        raise SystemExit(1) from exc


@click.group()
@click.option("--env-file", default=".env", show_default=True, help="Dotenv file to load.")
def cli(env_file: str) -> None:
    """LawSense/Densa Telegram webhook relay."""
    load_dotenv(env_file)


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides HOST).")
@click.option("--port", type=int, default=None, help="Bind port (overrides PORT).")
def serve(host: str | None, port: int | None) -> None:
    """Register webhooks (if WEBHOOK_URL is set) and start the server."""
    context = _load_context()
    config = context.config

    logger.info("Starting webhook server...")
    asyncio.run(register_all(context.registry, config.webhook_url, context.clients))

    bind_host = host or config.host
    bind_port = port or config.port
    logger.info("Server listening on http://%s:%d", bind_host, bind_port)
    uvicorn.run(create_app(context), host=bind_host, port=bind_port, log_config=None)
    logger.info("Server stopped")


@cli.command("register-webhooks")
@click.pass_context
def register_webhooks(ctx: click.Context) -> None:
    """Register webhook URLs with Telegram and print the results as JSON."""
    context = _load_context()
    if not context.config.webhook_url:
        raise click.UsageError("WEBHOOK_URL must be set to register webhooks.")

    results = asyncio.run(
        register_all(context.registry, context.config.webhook_url, context.clients)
    )
    click.echo(json.dumps(
        [
            {"identity": r.identity_name, "url": r.url, "succeeded": r.succeeded, "error": r.error}
            for r in results
        ],
        indent=2,
    ))
    if any(not r.succeeded for r in results):
        ctx.exit(1)
