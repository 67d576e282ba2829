"""CLI interface for layerkit"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import click
from pydantic import BaseModel

from layerkit.domain.errors import LayerError
from layerkit.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from layerkit.infrastructure.layer.client import LayerClient, extract_uuid

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _echo_json(data: Any) -> None:
    if isinstance(data, BaseModel):
        payload = data.model_dump(mode="json", exclude_none=True)
    elif isinstance(data, Iterable) and not isinstance(data, (str, bytes, dict)):
        payload = [item.model_dump(mode="json", exclude_none=True) for item in data]
    else:
        payload = data
    click.echo(json.dumps(payload, indent=2))


def _create_client(ctx: click.Context) -> LayerClient:
    """Create a Layer client from config, exiting with a message on failure"""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        return LayerClient.from_config(config_manager)
    except (ConfigurationError, ValueError) as e:
        _die(str(e), verbose=verbose, exc=e)


def _run(ctx: click.Context, action) -> None:
    client = _create_client(ctx)
    verbose = ctx.obj.get("verbose", False)
    try:
        _echo_json(action(client))
    except LayerError as e:
        _die(f"Layer API error: {e}", verbose=verbose, exc=e)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .layerkit.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """layerkit - Layer Platform API client"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("identifier", type=str)
def uuid(identifier: str):
    """Print the UUID at the end of a Layer identifier.

    IDENTIFIER: e.g. layer:///conversations/<uuid>
    """
    click.echo(extract_uuid(identifier))


@cli.command()
@click.argument("user_id", type=str)
@click.pass_context
def identity(ctx, user_id: str):
    """Show the identity of a user.

    USER_ID: Layer user ID
    """
    _run(ctx, lambda client: client.retrieve_identity(user_id))


@cli.command()
@click.argument("user_id", type=str)
@click.pass_context
def conversations(ctx, user_id: str):
    """List the conversations of a user.

    USER_ID: Layer user ID
    """
    _run(ctx, lambda client: client.get_conversations_by_user(user_id))


@cli.command()
@click.argument("conversation_id", type=str)
@click.option("--page-size", type=click.IntRange(min=0), default=0, help="Messages per page (0 = service default)")
@click.option("--from-id", type=str, default="", help="Only messages older than this message ID")
@click.pass_context
def messages(ctx, conversation_id: str, page_size: int, from_id: str):
    """List one page of messages of a conversation.

    CONVERSATION_ID: Conversation ID or full layer:/// identifier
    """
    _run(
        ctx,
        lambda client: client.retrieve_messages(conversation_id, page_size=page_size, from_id=from_id),
    )


@cli.command()
@click.pass_context
def webhooks(ctx):
    """List the webhooks registered for the app."""
    _run(ctx, lambda client: client.list_webhooks())


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
