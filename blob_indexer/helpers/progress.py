"""Rich progress display for block range ingestion."""

from __future__ import annotations

from contextlib import contextmanager

from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console


def create_standard_progress(
    console: Console | None = None, *, expand: bool = False, disable: bool = False
) -> Progress:
    """Create a progress bar showing blocks done out of the range size.

    Args:
        console: Rich console to render on (optional)
        expand: Stretch the bar to the console width
        disable: Track tasks without rendering anything

    Returns:
        Progress with spinner, description, bar, block counter, elapsed
        and remaining time columns
    """
    separator = TextColumn("[dim]|[/dim]")
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        separator,
        TimeElapsedColumn(),
        separator,
        TimeRemainingColumn(),
        console=console,
        expand=expand,
        disable=disable,
    )


@contextmanager
def track_progress(
    description: str,
    total: int,
    console: Console | None = None,
    *,
    disable: bool = False,
) -> Iterator[tuple[Progress, TaskID]]:
    """Render a single progress task for the duration of the block.

    Yields:
        (progress, task_id); advance the task once per processed block

    Example:
        ```python
        with track_progress("Ingesting blocks", total=end - start + 1) as (
            progress,
            task_id,
        ):
            async for block in walker.walk(start, end):
                progress.update(task_id, advance=1)
        ```
    """
    with create_standard_progress(console, expand=True, disable=disable) as progress:
        yield progress, progress.add_task(description, total=total)


__all__ = [
    "TaskID",
    "create_standard_progress",
    "track_progress",
]
