"""
Download command for dataset-tool CLI.

This module provides the download command, which waits for a dataset's
upload to finish and extracts it into a local directory.
"""

import os

import click

from ..models.context import DownloadContext
from ..transfer import ProgressChannel
from ..utils.error_handling import with_error_handling
from .progress import render_progress


@click.command()
@click.argument("dataset_id")
@click.argument("dest", type=click.Path(file_okay=False))
@click.pass_context
@with_error_handling("download", exit_on_error=True)
def download(ctx: click.Context, dataset_id: str, dest: str) -> None:
    """Download DATASET_ID into DEST, which must be empty or not exist."""
    from . import create_service

    context = DownloadContext(
        dataset_id=dataset_id,
        local_dir=os.path.abspath(dest),
        config=ctx.obj["config"],
        debug=ctx.obj["debug"],
        concurrency=ctx.obj["concurrency"],
    )

    with create_service(ctx.obj) as service:
        # Only uploaded datasets have a known size
        _, size = service.describe(dataset_id)

        channel = ProgressChannel()
        with render_progress(channel, size, "Downloading"):
            result = service.download(context, progress=channel)

    click.echo(result.local_dir)


__all__ = ["download"]
