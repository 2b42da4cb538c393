"""Tests for progress sinks and interrupt handling."""

from __future__ import annotations

import os
import signal
import threading
import time
from io import StringIO

import pytest
from rich.console import Console

from cubectl.output.progress import (
    CancellationToken,
    NullProgressSink,
    RichProgressSink,
    cancel_on_interrupt,
)


class TestCancellationToken:
    def test_starts_clear(self) -> None:
        assert not CancellationToken().is_cancelled

    def test_cancel(self) -> None:
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled


class TestNullProgressSink:
    def test_counts(self) -> None:
        sink = NullProgressSink()
        sink.init_progress("Consolidating", 3)
        assert sink.iteration_complete() is False
        assert sink.completed == 1
        assert sink.total == 3

    def test_max_povs_stops(self) -> None:
        sink = NullProgressSink(max_povs=2)
        sink.init_progress("Calculating", 5)
        assert sink.iteration_complete() is False
        assert sink.iteration_complete() is True

    def test_cancelled_follows_token(self) -> None:
        token = CancellationToken()
        sink = NullProgressSink(token)
        assert not sink.cancelled
        token.cancel()
        assert sink.cancelled

    def test_end_is_idempotent(self) -> None:
        sink = NullProgressSink()
        sink.init_progress("Allocating", 1)
        sink.end_progress()
        sink.end_progress()

    def test_monitor_disabled_at_zero(self) -> None:
        sink = NullProgressSink(stall_warning_seconds=0)
        sink.monitor_blocking_task()
        assert sink._timer is None

    def test_stall_warning_fires(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fired = threading.Event()
        sink = NullProgressSink(stall_warning_seconds=0.01)
        monkeypatch.setattr(sink, "_stalled", fired.set)
        sink.init_progress("Consolidating", 1)
        sink.monitor_blocking_task()
        assert fired.wait(2.0)
        sink.end_progress()

    def test_completed_task_cancels_timer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fired = threading.Event()
        sink = NullProgressSink(stall_warning_seconds=0.2)
        monkeypatch.setattr(sink, "_stalled", fired.set)
        sink.monitor_blocking_task()
        sink.blocking_task_complete()
        time.sleep(0.3)
        assert not fired.is_set()
        assert sink._timer is None


class TestRichProgressSink:
    def test_renders_to_console(self) -> None:
        console = Console(file=StringIO(), force_terminal=False, width=80)
        sink = RichProgressSink(console=console)
        sink.init_progress("Consolidating", 2)
        sink.iteration_complete()
        sink.iteration_complete()
        sink.end_progress()
        assert sink._progress is None
        assert sink.completed == 2


@pytest.mark.skipif(os.name == "nt", reason="POSIX signals")
class TestCancelOnInterrupt:
    def test_first_interrupt_cancels(self) -> None:
        token = CancellationToken()
        with cancel_on_interrupt(token):
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)
            assert token.is_cancelled

    def test_second_interrupt_raises(self) -> None:
        token = CancellationToken()
        with pytest.raises(KeyboardInterrupt), cancel_on_interrupt(token):
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)

    def test_previous_handler_restored(self) -> None:
        before = signal.getsignal(signal.SIGINT)
        with cancel_on_interrupt(CancellationToken()):
            assert signal.getsignal(signal.SIGINT) is not before
        assert signal.getsignal(signal.SIGINT) is before

    def test_noop_off_main_thread(self) -> None:
        seen: list[object] = []

        def run() -> None:
            with cancel_on_interrupt(CancellationToken()) as token:
                seen.append(token)

        thread = threading.Thread(target=run)
        thread.start()
        thread.join()
        assert len(seen) == 1
