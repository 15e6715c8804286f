# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Run messenger calls in background threads so the UI stays responsive."""

from __future__ import annotations

import logging
from typing import Any, Callable

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal, pyqtSlot

from artfolio.artfolio_exceptions import ArtfolioException


log = logging.getLogger("background")


class CallSignals(QObject):
    # token, whether it succeeded, the result or the exception
    done = pyqtSignal(int, bool, object)


class BackendCall(QRunnable):
    """One call to the backend, run on a thread of the pool."""

    def __init__(self, token: int, fn: Callable, args: tuple):
        super().__init__()
        self.token = token
        self._fn = fn
        self._args = args
        self.signals = CallSignals()

    @pyqtSlot()
    def run(self):
        try:
            result = self._fn(*self._args)
        except ArtfolioException as e:
            self.signals.done.emit(self.token, False, e)
            return
        except Exception as e:
            # not expected: still report it, a silent worker leaves the UI waiting
            log.exception("unexpected failure in background call %s", self.token)
            self.signals.done.emit(self.token, False, e)
            return
        self.signals.done.emit(self.token, True, result)


class BackgroundRunner(QObject):
    """Runs backend calls on a thread pool, with results back on the Qt thread.

    Call :meth:`submit` with a callable, typically a messenger method,
    and its arguments.  It returns at once.  When the call finishes,
    ``on_success(result)`` or ``on_failure(exception)`` is called on
    the thread that owns the runner, usually the GUI thread, so the
    callbacks may touch widgets.

    There is no cancellation: callers that no longer want a result
    should check, in their callback, whether it is still relevant.

    The messenger serialises its requests with a mutex, so sharing one
    messenger between pool threads is safe, if not parallel.
    """

    def __init__(self, parent: QObject | None = None, *, max_threads: int = 2):
        super().__init__(parent)
        self.threadpool = QThreadPool()
        self.threadpool.setMaxThreadCount(max_threads)
        self._next_token = 0
        self._callbacks: dict[int, tuple[Callable | None, Callable | None]] = {}
        # the signal objects must outlive their runnables until delivery
        self._signals: dict[int, CallSignals] = {}

    @property
    def pending(self) -> int:
        """How many calls have not yet delivered their result."""
        return len(self._callbacks)

    def submit(
        self,
        fn: Callable,
        *args: Any,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> None:
        self._next_token += 1
        token = self._next_token
        call = BackendCall(token, fn, args)
        call.signals.done.connect(self._deliver)
        self._callbacks[token] = (on_success, on_failure)
        self._signals[token] = call.signals
        self.threadpool.start(call)

    def _deliver(self, token: int, ok: bool, value: Any) -> None:
        on_success, on_failure = self._callbacks.pop(token)
        self._signals.pop(token)
        if ok:
            if on_success:
                on_success(value)
        elif on_failure:
            on_failure(value)

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until the running calls finish, e.g., before shutting down.

        Results are still delivered later, through the event loop.
        """
        return self.threadpool.waitForDone(msecs)
