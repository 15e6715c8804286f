# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

import os

import pytest
from PyQt6.QtCore import QObject, pyqtSignal

# widget tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeTimer(QObject):
    """Stands in for a QTimer: time passes only when a test says so."""

    timeout = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.interval = None
        self.starts = 0
        self._active = False
        self._elapsed = 0

    def start(self, msec: int) -> None:
        self.interval = msec
        self.starts += 1
        self._active = True
        self._elapsed = 0

    def stop(self) -> None:
        self._active = False

    def isActive(self) -> bool:
        return self._active

    def advance(self, ms: int) -> None:
        """Let simulated time pass, firing timeouts as a QTimer would."""
        self._elapsed += ms
        while self._active and self._elapsed >= self.interval:
            self._elapsed -= self.interval
            self.timeout.emit()


@pytest.fixture
def fake_timer():
    return FakeTimer()


class FakeRunner:
    """Stands in for a BackgroundRunner, running calls on the calling thread.

    By default each call runs as soon as it is submitted.  With
    ``deferred=True`` calls wait in :attr:`queue` until
    :meth:`run_pending`, so a test can look at the state in between.
    """

    def __init__(self, *, deferred: bool = False):
        self.deferred = deferred
        self.queue = []

    @property
    def pending(self) -> int:
        return len(self.queue)

    def submit(self, fn, *args, on_success=None, on_failure=None) -> None:
        self.queue.append((fn, args, on_success, on_failure))
        if not self.deferred:
            self.run_pending()

    def run_pending(self) -> None:
        while self.queue:
            fn, args, on_success, on_failure = self.queue.pop(0)
            try:
                result = fn(*args)
            except Exception as e:
                if on_failure:
                    on_failure(e)
                continue
            if on_success:
                on_success(result)

    def wait_for_done(self, msecs: int = -1) -> bool:
        self.run_pending()
        return True


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def deferred_runner():
    return FakeRunner(deferred=True)
