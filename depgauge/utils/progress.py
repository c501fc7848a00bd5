"""
Progress reporting for registry resolution stages.

The core accepts any object with ``begin``/``advance``/``end`` methods
(:class:`ProgressSink`). Hooks are called synchronously around each
resolution stage; passing no sink at all is always allowed.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)

from depgauge.utils.console import get_error_console


@runtime_checkable
class ProgressSink(Protocol):
    """Observer notified while package versions are being resolved."""

    def begin(self, total: int, label: str) -> None:
        """A stage of ``total`` lookups described by ``label`` starts."""

    def advance(self, label: str) -> None:
        """One lookup (for package ``label``) finished, successfully or not."""

    def end(self) -> None:
        """The current stage finished."""


class RichProgressSink:
    """Progress sink rendering a Rich progress bar on stderr.

    Each :meth:`begin` opens a fresh bar; :meth:`end` closes it so that
    the next stage starts from zero.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or get_error_console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def begin(self, total: int, label: str) -> None:
        self.end()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[dim]{task.fields[current]}"),
            console=self._console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task(label, total=total, current="")

    def advance(self, label: str) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, advance=1, current=label)

    def end(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None
