"""
Background scheduling -- delayed tasks, worker threads, and debouncing.

Sync work never runs on the caller's thread. Everything here is
cancellable and safe to call from any thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger("oneclickcopy.scheduler")


def _guarded(fn: Callable[..., Any], *args: Any) -> None:
    """Run ``fn`` and log anything it raises (worker threads have no caller)."""
    try:
        fn(*args)
    except Exception:
        logger.exception("Background task %s failed", getattr(fn, "__name__", fn))


class TaskHandle:
    """Handle to a scheduled task. Cancelling is immediate and idempotent."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._started = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def started(self) -> bool:
        return self._started

    def cancel(self) -> bool:
        """Cancel the task if it has not started yet.

        Returns:
            bool: True if the task will no longer run.
        """
        with self._lock:
            if self._started:
                return False
            self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        return True

    def _claim(self) -> bool:
        """Mark the task as started unless it was cancelled first."""
        with self._lock:
            if self._cancelled:
                return False
            self._started = True
            return True


class ThreadScheduler:
    """Runs delayed tasks on ``threading.Timer`` and work on daemon threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: set[TaskHandle] = set()
        self._threads: list[threading.Thread] = []
        self._closed = False

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> TaskHandle:
        """Run ``fn(*args)`` after ``delay`` seconds unless cancelled.

        Args:
            delay: Seconds to wait. Negative delays run as soon as possible.
            fn: Callable to invoke on the timer thread.

        Returns:
            TaskHandle: Cancellable handle for the scheduled task.
        """
        handle = TaskHandle()

        def _run() -> None:
            with self._lock:
                self._pending.discard(handle)
            if handle._claim():
                _guarded(fn, *args)

        timer = threading.Timer(max(delay, 0.0), _run)
        timer.daemon = True
        handle._timer = timer
        with self._lock:
            if self._closed:
                handle.cancel()
                return handle
            self._pending.add(handle)
        timer.start()
        return handle

    def submit(self, fn: Callable[..., Any], *args: Any) -> Optional[threading.Thread]:
        """Run ``fn(*args)`` on a background thread right away."""
        with self._lock:
            if self._closed:
                logger.debug("Scheduler closed, dropping %s", fn)
                return None
            self._threads = [t for t in self._threads if t.is_alive()]
            thread = threading.Thread(
                target=_guarded, args=(fn, *args), name="oneclickcopy-worker", daemon=True
            )
            self._threads.append(thread)
        thread.start()
        return thread

    def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for background threads that are already running."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)

    def shutdown(self) -> None:
        """Cancel every pending timer and refuse new work."""
        with self._lock:
            self._closed = True
            pending = list(self._pending)
            self._pending.clear()
        for handle in pending:
            handle.cancel()


class Debouncer:
    """Trailing-edge debounce: ``fn`` runs once, ``delay`` after the last trigger."""

    def __init__(self, delay: float, fn: Callable[[], Any], scheduler: ThreadScheduler) -> None:
        self.delay = delay
        self._fn = fn
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._handle: Optional[TaskHandle] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """Start or restart the quiet-period timer."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            self._handle = self._scheduler.call_later(self.delay, self._fire, self._generation)

    def flush(self) -> bool:
        """Run a pending call now instead of waiting.

        Returns:
            bool: True if something was pending and has run.
        """
        with self._lock:
            if self._handle is None:
                return False
            self._handle.cancel()
            self._handle = None
            self._generation += 1
        self._fn()
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._handle = None
        self._fn()
