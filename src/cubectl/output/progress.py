"""Progress sinks and cooperative cancellation.

:class:`RichProgressSink` draws a ``rich.progress`` bar on stderr;
:class:`NullProgressSink` draws nothing.  Both honor a
:class:`CancellationToken`, stop after ``max_povs`` POVs when asked to,
and log a stall warning when a blocking engine call runs longer than
``stall_warning_seconds``.  The warning never interrupts the call.
"""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

import structlog
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

log = structlog.get_logger(__name__)


class CancellationToken:
    """Thread-safe flag checked by the executor between POVs."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Iterator[CancellationToken]:
    """Turn the first Ctrl+C into a cancellation request.

    The POV in flight finishes and the batch stops cleanly.  A second
    Ctrl+C raises :class:`KeyboardInterrupt` as usual.  The previous
    handler is restored on exit.  Outside the main thread this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handle(signum: int, frame: FrameType | None) -> None:
        if token.is_cancelled:
            raise KeyboardInterrupt
        log.warning("cancel.requested", signal=signal.Signals(signum).name)
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


class NullProgressSink:
    """Progress sink without rendering.

    Also the base of :class:`RichProgressSink`; subclasses override the
    ``_on_*`` methods to draw.
    """

    def __init__(
        self,
        token: CancellationToken | None = None,
        *,
        max_povs: int = 0,
        stall_warning_seconds: float = 0.0,
    ) -> None:
        self.token = token or CancellationToken()
        self.max_povs = max_povs
        self.stall_warning_seconds = stall_warning_seconds
        self.label = ""
        self.total = 0
        self.completed = 0
        self._timer: threading.Timer | None = None
        self._active = False

    @property
    def cancelled(self) -> bool:
        return self.token.is_cancelled

    def init_progress(self, label: str, total: int) -> None:
        self.label = label
        self.total = total
        self.completed = 0
        self._active = True
        self._on_start()

    def iteration_complete(self) -> bool:
        """Advance by one POV; True asks the executor to stop."""
        self.completed += 1
        self._on_advance()
        return 0 < self.max_povs <= self.completed

    def end_progress(self) -> None:
        self.blocking_task_complete()
        if self._active:
            self._active = False
            self._on_stop()

    def monitor_blocking_task(self) -> None:
        if self.stall_warning_seconds <= 0:
            return
        self._timer = threading.Timer(self.stall_warning_seconds, self._stalled)
        self._timer.daemon = True
        self._timer.start()

    def blocking_task_complete(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _stalled(self) -> None:
        log.warning(
            "blocking.stall",
            operation=self.label,
            seconds=self.stall_warning_seconds,
            completed=self.completed,
            total=self.total,
        )

    # Rendering hooks
    def _on_start(self) -> None:
        pass

    def _on_advance(self) -> None:
        pass

    def _on_stop(self) -> None:
        pass


class RichProgressSink(NullProgressSink):
    """Progress bar on stderr via ``rich.progress``."""

    def __init__(
        self,
        token: CancellationToken | None = None,
        *,
        console: Console | None = None,
        max_povs: int = 0,
        stall_warning_seconds: float = 0.0,
    ) -> None:
        super().__init__(
            token, max_povs=max_povs, stall_warning_seconds=stall_warning_seconds
        )
        self._console = console or Console(stderr=True)
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    def _on_start(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._progress.start()
        self._task = self._progress.add_task(self.label, total=self.total)

    def _on_advance(self) -> None:
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)

    def _on_stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None
