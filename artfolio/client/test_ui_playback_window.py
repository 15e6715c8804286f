# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

import threading
import time
from io import BytesIO
from unittest.mock import MagicMock

from PIL import Image
from PyQt6.QtCore import Qt

from artfolio.artfolio_exceptions import ArtfolioConnectionError
from artfolio.conftest import FakeRunner
from artfolio.misc_utils import datetime_to_local_simple_string
from artfolio.records import Artifact, Reaction, Viewer
from artfolio.client.playback import PlaybackController
from artfolio.client.playback_window import PlaybackWindow
from artfolio.client.reaction_widgets import FavoriteButton, ReactionBar
from artfolio.client.reactions import FavoriteToggle, ReactionOverlay


def _png():
    out = BytesIO()
    Image.new("RGB", (8, 6), (30, 60, 90)).save(out, format="PNG")
    return out.getvalue()


def _works(n, student="s1"):
    return [
        Artifact(
            id=f"w{i}",
            student_id=student,
            image_url=f"https://example.co/w{i}.png",
            created_at=f"2024-03-{i + 1:02}T10:00:00Z",
            unit_name="Landscapes",
        )
        for i in range(n)
    ]


def _msgr():
    msgr = MagicMock()
    msgr.get_bytes.return_value = _png()
    msgr.count_annotations.return_value = 3
    msgr.list_reactions.return_value = [
        Reaction(work_id="w0", sender_id="s3", reaction_type="fire")
    ]
    msgr.favorite_exists.return_value = False
    return msgr


def _window(qtbot, fake_timer, viewer=Viewer(user_id="s2")):
    controller = PlaybackController(timer=fake_timer)
    w = PlaybackWindow(
        None, _msgr(), viewer, controller=controller, runner=FakeRunner()
    )
    qtbot.addWidget(w)
    w.show()
    return w


def test_window_empty(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    assert w.positionLabel.text() == ""
    assert not w.playB.isEnabled()
    assert not w.annotationsB.isEnabled()


def test_window_plays(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    works = _works(3)
    w.controller.start_playback([works[1], works[2], works[0]])
    assert w.controller.playing
    assert w.positionLabel.text() == "1 / 3"
    assert w.titleLabel.text() == "<b>Landscapes</b>"
    assert w.annotationsB.text() == "Circled comments (3)"
    assert not w.prevB.isEnabled()
    fake_timer.advance(2000)
    assert w.positionLabel.text() == "2 / 3"
    assert w.scrubber.value() == 1
    w.msgr.list_reactions.assert_called_with("w1")


def test_window_buttons(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.controller.start_playback(_works(4))
    qtbot.mouseClick(w.nextB, Qt.MouseButton.LeftButton)
    assert not w.controller.playing
    assert w.controller.current_index == 1
    qtbot.mouseClick(w.prevB, Qt.MouseButton.LeftButton)
    assert w.controller.current_index == 0
    qtbot.mouseClick(w.playB, Qt.MouseButton.LeftButton)
    assert w.controller.playing
    qtbot.mouseClick(w.speedGroup.button(4), Qt.MouseButton.LeftButton)
    assert w.controller.speed == 4
    assert fake_timer.interval == 500


def test_window_scrubber_seeks(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.controller.start_playback(_works(5))
    assert w.scrubber.maximum() == 4
    w.scrubber.setValue(3)
    assert w.controller.current_index == 3
    assert not w.controller.playing


def test_window_initial_speed(qtbot, fake_timer) -> None:
    controller = PlaybackController(timer=fake_timer)
    w = PlaybackWindow(
        None,
        _msgr(),
        Viewer(user_id="s2"),
        controller=controller,
        runner=FakeRunner(),
        speed=2,
    )
    qtbot.addWidget(w)
    assert controller.speed == 2
    assert w.speedGroup.button(2).isChecked()


def test_window_unknown_colour_falls_back(qtbot, fake_timer) -> None:
    controller = PlaybackController(timer=fake_timer)
    w = PlaybackWindow(
        None,
        _msgr(),
        Viewer(user_id="s2"),
        controller=controller,
        runner=FakeRunner(),
        annotation_color="puce",
    )
    qtbot.addWidget(w)
    assert w.annotation_color == "#FF4444"


def test_window_count_failure(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.msgr.count_annotations.side_effect = ArtfolioConnectionError("offline")
    w.controller.open_sequence(_works(2))
    assert w.annotationsB.text() == "Circled comments"


def test_window_close_stops_timer(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.controller.start_playback(_works(3))
    assert fake_timer.isActive()
    w.reject()
    assert not fake_timer.isActive()
    assert not w.controller.is_open


def test_own_work_hides_reacting(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer, viewer=Viewer(user_id="s1"))
    w.controller.open_sequence(_works(2))
    assert w.reactionBar.addB.isHidden()


def test_reaction_bar_chips(qtbot) -> None:
    msgr = _msgr()
    msgr.list_reactions.return_value = [
        Reaction(work_id="w0", sender_id="s3", reaction_type=k)
        for k in ("like", "fire", "like")
    ]
    overlay = ReactionOverlay(msgr, Viewer(user_id="s2"), runner=FakeRunner())
    bar = ReactionBar(None, overlay)
    qtbot.addWidget(bar)
    assert bar.chips == []
    assert bar.addB.text() == "\N{WHITE SMILING FACE}"
    overlay.set_artifact(_works(1)[0])
    assert [c.text() for c in bar.chips] == ["\N{THUMBS UP SIGN} 2", "\N{FIRE} 1"]
    assert bar.addB.text() == "+"
    assert not bar.addB.isHidden()
    bar.addB.menu().actions()[0].trigger()
    msgr.create_reaction.assert_called_once_with("w0", "s2", "like")
    assert bar.chips[0].text() == "\N{THUMBS UP SIGN} 3"


def test_favorite_button(qtbot) -> None:
    msgr = _msgr()
    toggle = FavoriteToggle(msgr, Viewer(user_id="s2"), runner=FakeRunner())
    b = FavoriteButton(None, toggle)
    qtbot.addWidget(b)
    b.show()
    assert not b.isEnabled()
    toggle.set_artifact(_works(1)[0])
    b.sync()
    assert b.isEnabled()
    assert not b.isChecked()
    qtbot.mouseClick(b, Qt.MouseButton.LeftButton)
    assert b.isChecked()
    msgr.upsert_favorite.assert_called_once_with("s2", "w0")


def test_favorite_button_rollback(qtbot) -> None:
    msgr = _msgr()
    msgr.upsert_favorite.side_effect = ArtfolioConnectionError("offline")
    toggle = FavoriteToggle(msgr, Viewer(user_id="s2"), runner=FakeRunner())
    toggle.set_artifact(_works(1)[0])
    b = FavoriteButton(None, toggle)
    qtbot.addWidget(b)
    b.show()
    qtbot.mouseClick(b, Qt.MouseButton.LeftButton)
    assert not b.isChecked()
    assert not toggle.is_favorite


def test_window_shows_date_and_reflection(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    works = _works(2)
    works[0] = works[0].model_copy(update={"reflection": "I tried wet on wet."})
    w.controller.open_sequence(works)
    assert w.reflectionLabel.text() == "I tried wet on wet."
    assert not w.reflectionLabel.isHidden()
    assert w.dateLabel.text() == datetime_to_local_simple_string(works[0].created_at)
    w.controller.step_forward()
    assert w.reflectionLabel.isHidden()
    assert w.dateLabel.text() == datetime_to_local_simple_string(works[1].created_at)
    w.controller.close()
    assert w.dateLabel.text() == ""
    assert w.reflectionLabel.isHidden()


def test_window_image_loaded_once(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.controller.open_sequence(_works(2))
    assert w.imageLabel.pixmap() is not None
    assert not w.imageLabel.pixmap().isNull()
    w.controller.step_forward()
    w.controller.step_backward()
    assert w.msgr.get_bytes.call_count == 2


def test_window_image_failure(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.msgr.get_bytes.side_effect = ArtfolioConnectionError("offline")
    w.controller.open_sequence(_works(1))
    assert w.imageLabel.text() == "(image unavailable)"


def test_window_unit_chooser(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    works = _works(4)
    works[1] = works[1].model_copy(update={"unit_name": "Portraits"})
    works[3] = works[3].model_copy(update={"unit_name": None})
    w.set_works(works)
    assert [w.unitCombo.itemText(i) for i in range(w.unitCombo.count())] == [
        "All works (4)",
        "Landscapes (2)",
        "Portraits (1)",
        "Uncategorized (1)",
    ]
    assert not w.unitCombo.isHidden()
    assert w.controller.playing
    assert len(w.controller.sequence) == 4
    w.play_unit(1)
    assert [a.id for a in w.controller.sequence] == ["w0", "w2"]
    assert w.controller.playing
    assert w.unitCombo.currentIndex() == 1


def test_window_unit_chooser_hidden_for_one_unit(qtbot, fake_timer) -> None:
    w = _window(qtbot, fake_timer)
    w.set_works(_works(3))
    assert w.unitCombo.isHidden()
    assert w.positionLabel.text() == "1 / 3"


def test_tick_does_not_wait_for_the_backend(qtbot, fake_timer) -> None:
    release = threading.Event()

    def slow_count(work_id):
        release.wait(5)
        return 7

    def slow_image(url):
        release.wait(5)
        return _png()

    msgr = _msgr()
    msgr.count_annotations.side_effect = slow_count
    msgr.get_bytes.side_effect = slow_image
    msgr.list_reactions.side_effect = lambda work_id: release.wait(5) and []
    controller = PlaybackController(timer=fake_timer)
    w = PlaybackWindow(None, msgr, Viewer(user_id="s2"), controller=controller)
    qtbot.addWidget(w)
    try:
        t0 = time.monotonic()
        w.controller.start_playback(_works(3))
        fake_timer.advance(2000)
        assert time.monotonic() - t0 < 0.5
        assert w.positionLabel.text() == "2 / 3"
        assert w.annotationsB.text() == "Circled comments"
        assert w.imageLabel.text().startswith("Loading")
    finally:
        release.set()
    qtbot.waitUntil(lambda: w.annotationsB.text() == "Circled comments (7)")
    qtbot.waitUntil(lambda: w.runner.pending == 0)
    assert not w.imageLabel.pixmap().isNull()
