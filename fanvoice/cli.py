"""Click CLI for running and checking the webhook service."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from fanvoice.audit.logger import validate_audit_chain
from fanvoice.config import ConfigError, Settings
from fanvoice.webhook.signature import compute_signature


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


@click.group()
def cli() -> None:
    """Fanvue voice reply webhook service."""


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """Run the webhook server."""
    import uvicorn

    settings = _load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "fanvoice.server.app:create_app_from_env",
        factory=True,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


@cli.command("check-config")
def check_config() -> None:
    """Validate the environment and print the configuration with secrets masked."""
    settings = _load_settings()
    click.echo(json.dumps(settings.redacted(), indent=2))


@cli.command()
@click.argument("body_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--secret", envvar="FANVUE_WEBHOOK_SIGNING_SECRET", required=True,
              help="Webhook signing secret.")
def sign(body_file: str, secret: str) -> None:
    """Print the signature header value for a request body file."""
    click.echo(compute_signature(secret, Path(body_file).read_bytes()))


@cli.command("verify-audit")
@click.argument("log_file", envvar="AUDIT_LOG_PATH",
                type=click.Path(exists=True, dir_okay=False))
def verify_audit(log_file: str) -> None:
    """Check the hash chain of an audit log file (defaults to AUDIT_LOG_PATH)."""
    result = validate_audit_chain(Path(log_file))
    if not result.valid:
        click.echo(f"Audit chain broken at line {result.broken_at_line}", err=True)
        sys.exit(1)
    click.echo("Audit chain valid")
