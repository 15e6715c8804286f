# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Flipbook playback of a student's works, oldest to newest."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from artfolio.misc_utils import clamp
from artfolio.records import Artifact, ordered_playback_sequence


log = logging.getLogger("playback")

# time each work is shown at 1x speed
BaseIntervalMs = 2000
PlaybackSpeeds = (1, 2, 4)


class PlaybackController(QObject):
    """Step through an ordered sequence of works, automatically or by hand.

    The sequence must already be sorted oldest first, see
    :func:`artfolio.records.ordered_playback_sequence` or
    :meth:`start_playback`.  Out-of-range positions are clamped, never
    wrapped; manual stepping or seeking pauses playback.

    While playing, a single timer advances one work per interval
    (``2000 ms`` divided by the speed).  Playback stops on the last
    work.  Anything that stops playback, including :meth:`close`, goes
    through :meth:`_cancel_timer` so no timer outlives the sequence.

    Signals:

      * `current_changed(object)`: the displayed work changed (or None).
      * `playing_changed(bool)`
      * `speed_changed(int)`
      * `sequence_changed(list)`: a sequence was opened or closed.
    """

    current_changed = pyqtSignal(object)
    playing_changed = pyqtSignal(bool)
    speed_changed = pyqtSignal(int)
    sequence_changed = pyqtSignal(list)

    def __init__(self, parent: QObject | None = None, *, timer: Any = None):
        """Initialize a new PlaybackController.

        Args:
            parent: the usual Qt parent.

        Keyword Args:
            timer: something that looks like a ``QTimer``: has a
                ``timeout`` signal and ``start(msec)``, ``stop()`` and
                ``isActive()`` methods.  By default we make a QTimer.
                Tests pass a fake timer here.
        """
        super().__init__(parent)
        self._sequence: list[Artifact] = []
        self._index = 0
        self._playing = False
        self._speed = PlaybackSpeeds[0]
        if timer is None:
            timer = QTimer(self)
        self._timer = timer
        self._timer.timeout.connect(self._tick)

    @property
    def sequence(self) -> list[Artifact]:
        return list(self._sequence)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def interval_ms(self) -> int:
        return BaseIntervalMs // self._speed

    @property
    def current_artifact(self) -> Artifact | None:
        if not self._sequence:
            return None
        return self._sequence[self._index]

    @property
    def is_open(self) -> bool:
        return bool(self._sequence)

    def _last_index(self) -> int:
        return max(len(self._sequence) - 1, 0)

    def position_label(self) -> str:
        """Something like "3 / 7" for display, empty if nothing is loaded."""
        if not self._sequence:
            return ""
        return f"{self._index + 1} / {len(self._sequence)}"

    def _start_timer(self) -> None:
        # starting an active QTimer restarts it with the new interval
        self._timer.start(self.interval_ms)

    def _cancel_timer(self) -> None:
        if self._timer.isActive():
            log.debug("stopping playback timer")
        self._timer.stop()

    def _set_playing(self, playing: bool) -> None:
        if playing:
            self._start_timer()
        else:
            self._cancel_timer()
        if playing != self._playing:
            self._playing = playing
            self.playing_changed.emit(playing)

    def _set_index(self, index: int) -> None:
        index = clamp(index, 0, self._last_index())
        if index != self._index:
            self._index = index
            self.current_changed.emit(self.current_artifact)

    def open_sequence(self, artifacts: Sequence[Artifact], start_index: int = 0) -> None:
        """Load a sequence of works, paused at a starting position.

        Args:
            artifacts: works sorted oldest first; we do not sort them.
            start_index: where to start, clamped into range.
        """
        self._set_playing(False)
        self._sequence = list(artifacts)
        self._index = clamp(start_index, 0, self._last_index())
        log.debug("opened sequence of %d works at %d", len(self._sequence), self._index)
        self.sequence_changed.emit(self.sequence)
        self.current_changed.emit(self.current_artifact)

    def start_playback(self, artifacts: Sequence[Artifact]) -> None:
        """Sort the works oldest first, open them and start playing."""
        self.open_sequence(ordered_playback_sequence(artifacts), 0)
        self.play()

    def play(self) -> None:
        """Start advancing; from the last work this restarts at the first."""
        if not self._sequence:
            log.debug("nothing to play")
            return
        if self._playing:
            return
        if self._index >= self._last_index():
            self._set_index(0)
        self._set_playing(True)

    def pause(self) -> None:
        if not self._playing:
            return
        self._set_playing(False)

    def toggle_playing(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def set_speed(self, multiplier: int) -> None:
        """Change the speed; takes effect immediately if playing.

        Raises:
            ValueError: not one of 1, 2 or 4.
        """
        if multiplier not in PlaybackSpeeds:
            raise ValueError(f"speed must be one of {PlaybackSpeeds}, not {multiplier}")
        if multiplier == self._speed:
            return
        self._speed = multiplier
        self.speed_changed.emit(multiplier)
        if self._playing:
            self._start_timer()

    def step_forward(self) -> None:
        self._set_playing(False)
        self._set_index(self._index + 1)

    def step_backward(self) -> None:
        self._set_playing(False)
        self._set_index(self._index - 1)

    def seek(self, index: int) -> None:
        """Jump to a position, e.g., from a scrubber; pauses playback."""
        self._set_playing(False)
        self._set_index(index)

    def close(self) -> None:
        """Stop playing and forget the sequence."""
        self._set_playing(False)
        had_sequence = bool(self._sequence)
        self._sequence = []
        self._index = 0
        if had_sequence:
            self.sequence_changed.emit([])
            self.current_changed.emit(None)

    def _tick(self) -> None:
        if not self._playing or not self._sequence:
            # a stray timeout after stopping: make sure it's the last one
            self._cancel_timer()
            return
        self._set_index(self._index + 1)
        if self._index >= self._last_index():
            log.debug("reached the end of the sequence")
            self._set_playing(False)
