"""
Info command for dataset-tool CLI.
"""

from datetime import datetime, timezone

import click

from ..transfer import format_file_size
from ..utils.error_handling import with_error_handling


@click.command()
@click.argument("dataset_id")
@click.pass_context
@with_error_handling("dataset info", exit_on_error=True)
def info(ctx: click.Context, dataset_id: str) -> None:
    """Show the upload status of DATASET_ID."""
    from . import create_service

    with create_service(ctx.obj) as service:
        dataset, size = service.describe(dataset_id)

    click.echo(f"id:      {dataset.dataset_id}")
    click.echo(f"name:    {dataset.name}")
    click.echo(f"status:  {dataset.upload_status.value}")
    if not dataset.is_uploaded and dataset.upload_expire:
        expire = datetime.fromtimestamp(dataset.upload_expire, tz=timezone.utc)
        click.echo(f"expires: {expire.isoformat()}")
    click.echo(f"bucket:  {dataset.bucket}")
    click.echo(f"root:    {dataset.dataset_root}")
    if size is not None:
        click.echo(f"size:    {format_file_size(size)}")


__all__ = ["info"]
