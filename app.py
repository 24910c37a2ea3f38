# app.py

import logging
import os

import click
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

# Module imports after load_dotenv() - E402 is intentional
from config import load_config  # noqa: E402
from config.validation import validate_and_exit  # noqa: E402
from mailroute import __version__  # noqa: E402
from mailroute.exporter.cli import exporter_cli  # noqa: E402
from mailroute.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="mailroute")
@click.pass_context
def cli(ctx):
    """Mailbox routing-address migration tooling."""
    mailroute_env = os.environ.get("MAILROUTE_ENV", "development")

    # Validate environment variables (only in production)
    if mailroute_env == "production":
        validate_and_exit(mailroute_env)

    if ctx.obj is None:
        ctx.obj = load_config(mailroute_env)
    setup_logging(ctx.obj)
    logger.debug("Configuration loaded", extra={"mailroute_env": mailroute_env})


cli.add_command(exporter_cli)


if __name__ == "__main__":
    cli()
