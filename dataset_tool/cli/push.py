"""
Push command for dataset-tool CLI.

This module provides the push command for uploading a local directory into
a new dataset.
"""

import logging
import os

import click

from ..models.context import PushContext
from ..transfer import ProgressChannel
from ..utils.error_handling import with_error_handling
from ..utils.validation import parse_input_specification
from .progress import render_progress


def tree_size(path: str) -> int:
    """Total size of the regular files below ``path``, used as the progress bar length."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            full = os.path.join(root, name)
            if os.path.isfile(full) and not os.path.islink(full):
                total += os.path.getsize(full)
    return total


@click.command()
@click.argument("spec")
@click.pass_context
@with_error_handling("push", exit_on_error=True)
def push(ctx: click.Context, spec: str) -> None:
    """Push a local directory to a new dataset.

    SPEC is LOCAL_PATH[:DATASET_NAME]; a name is generated when omitted.
    """
    from . import create_service

    local_path, name = parse_input_specification(spec)
    context = PushContext(local_path=local_path, name=name, config=ctx.obj["config"], debug=ctx.obj["debug"])

    with create_service(ctx.obj) as service:
        channel = ProgressChannel()
        with render_progress(channel, tree_size(local_path), "Uploading"):
            result = service.push(context, reporter=channel)

    click.echo(result.dataset_id)
    logging.info("Dataset name: %s", result.name)


__all__ = ["push", "tree_size"]
