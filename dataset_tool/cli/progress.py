"""
Terminal progress rendering for the CLI.

A background thread drains a ProgressChannel and advances a click progress
bar; the thread ends when the channel is closed.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import click

from ..transfer import ProgressChannel


def _drain(channel: ProgressChannel, length: Optional[int], label: str) -> None:
    if not length:
        for _ in channel:
            pass
        return

    with click.progressbar(length=length, label=label, file=click.get_text_stream("stderr")) as bar:
        shown = 0
        for transferred in channel:
            step = min(transferred, length) - shown
            if step > 0:
                bar.update(step)
                shown += step


@contextmanager
def render_progress(channel: ProgressChannel, length: Optional[int], label: str) -> Iterator[ProgressChannel]:
    """
    Render the byte counts sent on ``channel`` while the block runs.

    The channel must be closed by the block (or the operation it starts);
    the renderer waits for that before returning. Without a known length
    progress is consumed silently.
    """
    thread = threading.Thread(target=_drain, args=(channel, length, label), daemon=True)
    thread.start()
    try:
        yield channel
    finally:
        if not channel.closed:
            channel.close()
        thread.join()


__all__ = ["render_progress"]
