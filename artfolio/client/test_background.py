# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

import threading
import time
from unittest.mock import MagicMock

from artfolio.artfolio_exceptions import ArtfolioConnectionError, ArtfolioNotFound
from artfolio.records import Artifact, Viewer
from artfolio.client.background import BackgroundRunner
from artfolio.client.reactions import FavoriteToggle, ReactionOverlay


work = Artifact(
    id="w1",
    student_id="s1",
    image_url="https://example.co/w1.png",
    created_at="2024-03-01T10:00:00Z",
)
classmate = Viewer(user_id="s2")


def test_result_delivered_on_the_gui_thread(qtbot) -> None:
    runner = BackgroundRunner()
    gui = threading.get_ident()
    results = []

    def double(x):
        return x * 2, threading.get_ident()

    runner.submit(
        double, 21, on_success=lambda r: results.append((r, threading.get_ident()))
    )
    qtbot.waitUntil(lambda: bool(results))
    (value, worker), delivered_on = results[0]
    assert value == 42
    assert worker != gui
    assert delivered_on == gui
    assert runner.pending == 0


def test_failure_delivered(qtbot) -> None:
    runner = BackgroundRunner()
    errors = []

    def missing():
        raise ArtfolioNotFound("gone")

    runner.submit(missing, on_success=errors.append, on_failure=errors.append)
    qtbot.waitUntil(lambda: bool(errors))
    assert isinstance(errors[0], ArtfolioNotFound)


def test_unexpected_error_still_delivered(qtbot, caplog) -> None:
    runner = BackgroundRunner()
    errors = []
    runner.submit(int, "not a number", on_failure=errors.append)
    qtbot.waitUntil(lambda: bool(errors))
    assert isinstance(errors[0], ValueError)
    assert "unexpected failure" in caplog.text


def test_submit_returns_before_the_call_finishes(qtbot) -> None:
    runner = BackgroundRunner()
    release = threading.Event()
    done = []
    t0 = time.monotonic()
    runner.submit(release.wait, 5, on_success=done.append)
    assert time.monotonic() - t0 < 0.5
    assert runner.pending == 1
    release.set()
    qtbot.waitUntil(lambda: bool(done))
    assert runner.wait_for_done(1000)


def test_react_does_not_wait_for_the_backend(qtbot) -> None:
    release = threading.Event()
    msgr = MagicMock()
    msgr.list_reactions.return_value = []
    msgr.create_reaction.side_effect = lambda *args: release.wait(5)
    overlay = ReactionOverlay(msgr, classmate)
    overlay.set_artifact(work)
    qtbot.waitUntil(lambda: overlay.runner.pending == 0)
    try:
        t0 = time.monotonic()
        assert overlay.react("fire")
        assert time.monotonic() - t0 < 0.5
        assert overlay.counts == {"fire": 1}
    finally:
        release.set()
    qtbot.waitUntil(lambda: overlay.runner.pending == 0)
    msgr.create_reaction.assert_called_once_with("w1", "s2", "fire")
    assert overlay.counts == {"fire": 1}


def test_favorite_rolls_back_when_the_backend_answers(qtbot) -> None:
    release = threading.Event()
    msgr = MagicMock()
    msgr.favorite_exists.return_value = False

    def refuse(user_id, work_id):
        release.wait(5)
        raise ArtfolioConnectionError("offline")

    msgr.upsert_favorite.side_effect = refuse
    toggle = FavoriteToggle(msgr, classmate)
    toggle.set_artifact(work)
    qtbot.waitUntil(lambda: toggle.is_loaded)
    try:
        assert toggle.toggle_favorite()
        assert toggle.is_favorite
    finally:
        release.set()
    qtbot.waitUntil(lambda: not toggle.is_favorite)
    assert toggle.runner.wait_for_done(1000)
