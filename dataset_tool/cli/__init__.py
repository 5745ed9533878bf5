"""
Unified CLI entry point for dataset-tool operations using Click.

This module provides the main CLI group and shared helpers.
"""

import sys
from typing import Any, Dict, Optional

import click

from .._version import __version__
from ..services import TransferService
from ..utils.config_manager import ConfigManager
from ..utils.constants import EXIT_USER_INTERRUPT, MAX_WORKERS_LIMIT
from ..utils.logger import setup_logging


def create_service(obj: Dict[str, Any]) -> TransferService:
    """
    Set up logging and build a TransferService from the shared CLI options.

    Raises:
        FileNotFoundError: If the configuration file does not exist
        InvalidSpecificationError: If the configuration does not validate
    """
    setup_logging(obj.get("debug", 0))
    settings = ConfigManager(obj.get("config")).settings()
    return TransferService(settings)


# ============================================================================
# CLI Group
# ============================================================================


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="dataset-tool")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config file (default: $DATASET_TOOL_CONFIG or ~/.config/dataset-tool/config.toml)",
)
@click.option(
    "-d",
    "--debug",
    count=True,
    help="Increase verbosity (use -d for INFO, -dd for DEBUG, -ddd for DEBUG with HTTP logs)",
)
@click.option(
    "--concurrency",
    type=click.IntRange(1, MAX_WORKERS_LIMIT),
    default=None,
    help="Number of concurrent download workers (default: from config, 4)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], debug: int, concurrency: Optional[int]) -> None:
    """dataset-tool - Push and download datasets."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["debug"] = debug
    ctx.obj["concurrency"] = concurrency


# Registered after the group exists; the command modules import create_service
from . import download, info, push  # noqa: E402  pylint: disable=wrong-import-position

cli.add_command(push.push)
cli.add_command(download.download)
cli.add_command(info.info)


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()  # pylint: disable=no-value-for-parameter  # Click handles parameters
    except KeyboardInterrupt:
        click.echo("\n\nOperation cancelled by user", err=True)
        sys.exit(EXIT_USER_INTERRUPT)


__all__ = ["cli", "main", "create_service"]
