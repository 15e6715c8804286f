# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""A flipbook window for watching a student's works one after another."""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from artfolio.misc_utils import datetime_to_local_simple_string
from artfolio.records import Artifact, Viewer, group_by_unit
from .annotation_layer import AnnotationLayer
from .annotations import AnnotationEngine, AnnotationPalette, DefaultAnnotationColor
from .background import BackgroundRunner
from .image_utils import pixmap_from_bytes, work_image_bytes
from .playback import PlaybackController, PlaybackSpeeds
from .reaction_widgets import FavoriteButton, ReactionBar
from .reactions import FavoriteToggle, ReactionOverlay


log = logging.getLogger("client")


class PlaybackWindow(QDialog):
    """Show a sequence of works with play, step, speed and scrubber controls.

    The reactions, favorite, annotation count, date and reflection
    follow whichever work is on display.  Everything fetched from the
    backend is fetched in the background: the window shows what it has
    and fills in the rest as it arrives, ignoring answers about works
    no longer on display.  Closing the window closes the controller,
    which stops its timer.

    Args:
        parent: the parent widget or None.
        msgr: a :class:`artfolio.messenger.Messenger`.
        viewer: who is watching.

    Keyword Args:
        controller: a :class:`PlaybackController`, by default we make one.
        runner: a :class:`BackgroundRunner` for backend calls, by default
            we make one.
        image_msgr: a messenger used only for downloading images, so
            that large downloads do not hold up the small calls.
            Defaults to ``msgr``.
        speed: the initial speed, one of 1, 2 or 4.
        annotation_color: the colour new circles start with, remembered
            between openings of the annotation layer.
    """

    def __init__(
        self,
        parent: QWidget | None,
        msgr: Any,
        viewer: Viewer,
        *,
        controller: PlaybackController | None = None,
        runner: Any = None,
        image_msgr: Any = None,
        speed: int = 1,
        annotation_color: str = DefaultAnnotationColor,
    ):
        super().__init__(parent)
        self.setWindowTitle("Playback")
        self.msgr = msgr
        self.image_msgr = image_msgr if image_msgr is not None else msgr
        self.viewer = viewer
        if annotation_color not in AnnotationPalette:
            log.warning("Ignoring unexpected annotation colour %s", annotation_color)
            annotation_color = DefaultAnnotationColor
        self.annotation_color = annotation_color
        if controller is None:
            controller = PlaybackController(self)
        self.controller = controller
        if runner is None:
            runner = BackgroundRunner(self)
        self.runner = runner
        self.reactions = ReactionOverlay(msgr, viewer, runner=runner, parent=self)
        self.favorite = FavoriteToggle(msgr, viewer, runner=runner, parent=self)
        self._pixmaps: dict[str, QPixmap] = {}
        self._downloading: set[str] = set()
        self._units: list[tuple[str, list[Artifact]]] = []

        self.titleLabel = QLabel()
        self.unitCombo = QComboBox()
        self.unitCombo.setToolTip("Choose which works to play")
        self.unitCombo.activated.connect(self.play_unit)
        self.unitCombo.hide()
        closeB = QToolButton()
        closeB.setText("\N{MULTIPLICATION SIGN}")
        closeB.setToolTip("close")
        closeB.clicked.connect(self.reject)
        header = QHBoxLayout()
        header.addWidget(self.titleLabel, 1)
        header.addWidget(self.unitCombo)
        header.addWidget(closeB)

        self.imageLabel = QLabel()
        self.imageLabel.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.imageLabel.setMinimumSize(320, 240)
        self.dateLabel = QLabel()
        self.reflectionLabel = QLabel()
        self.reflectionLabel.setWordWrap(True)
        self.reflectionLabel.hide()
        self.positionLabel = QLabel()
        self.reactionBar = ReactionBar(self, self.reactions)
        self.favoriteB = FavoriteButton(self, self.favorite)
        self.annotationsB = QPushButton()
        self.annotationsB.clicked.connect(self.show_annotations)
        below = QHBoxLayout()
        below.addWidget(self.positionLabel)
        below.addWidget(self.annotationsB)
        below.addStretch(1)
        below.addWidget(self.reactionBar)
        below.addWidget(self.favoriteB)

        self.prevB = QToolButton()
        self.prevB.setText("\N{BLACK LEFT-POINTING DOUBLE TRIANGLE WITH VERTICAL BAR}")
        self.prevB.setToolTip("previous")
        self.prevB.clicked.connect(self.controller.step_backward)
        self.playB = QToolButton()
        self.playB.clicked.connect(self.controller.toggle_playing)
        self.nextB = QToolButton()
        self.nextB.setText("\N{BLACK RIGHT-POINTING DOUBLE TRIANGLE WITH VERTICAL BAR}")
        self.nextB.setToolTip("next")
        self.nextB.clicked.connect(self.controller.step_forward)
        self.speedGroup = QButtonGroup(self)
        self.speedGroup.setExclusive(True)
        controls = QHBoxLayout()
        controls.addStretch(1)
        controls.addWidget(self.prevB)
        controls.addWidget(self.playB)
        controls.addWidget(self.nextB)
        controls.addSpacing(12)
        for s in PlaybackSpeeds:
            b = QToolButton()
            b.setText(f"{s}x")
            b.setCheckable(True)
            self.speedGroup.addButton(b, s)
            controls.addWidget(b)
        self.speedGroup.idClicked.connect(self.controller.set_speed)
        controls.addStretch(1)

        self.scrubber = QSlider(Qt.Orientation.Horizontal)
        self.scrubber.setMinimum(0)
        self.scrubber.valueChanged.connect(self.controller.seek)

        vb = QVBoxLayout()
        vb.addLayout(header)
        vb.addWidget(self.imageLabel, 1)
        vb.addWidget(self.dateLabel)
        vb.addWidget(self.reflectionLabel)
        vb.addLayout(below)
        vb.addWidget(self.scrubber)
        vb.addLayout(controls)
        self.setLayout(vb)

        self.controller.current_changed.connect(self.show_artifact)
        self.controller.playing_changed.connect(self._playing_changed)
        self.controller.speed_changed.connect(self._speed_changed)
        self.controller.sequence_changed.connect(self._sequence_changed)
        self.controller.set_speed(speed)
        self._speed_changed(self.controller.speed)
        self._playing_changed(self.controller.playing)
        self._sequence_changed(self.controller.sequence)
        self.show_artifact(self.controller.current_artifact)

    def set_works(self, works: list[Artifact]) -> None:
        """Offer a set of works, by unit, and start playing all of them.

        The unit chooser lists every work first, then one entry per
        unit; it is hidden when there is only one unit.
        """
        self._units = [("All works", list(works))] + list(group_by_unit(works).items())
        self.unitCombo.clear()
        for name, group in self._units:
            self.unitCombo.addItem(f"{name} ({len(group)})")
        self.unitCombo.setVisible(len(self._units) > 2)
        self.play_unit(0)

    def play_unit(self, index: int) -> None:
        """Play the works of one entry of the unit chooser from the start."""
        if not 0 <= index < len(self._units):
            return
        self.unitCombo.setCurrentIndex(index)
        _, works = self._units[index]
        self.controller.start_playback(works)

    def _is_current(self, artifact_id: str) -> bool:
        artifact = self.controller.current_artifact
        return artifact is not None and artifact.id == artifact_id

    def _fetch_image(self, artifact: Artifact) -> None:
        if artifact.id in self._downloading:
            return
        self._downloading.add(artifact.id)
        self.runner.submit(
            work_image_bytes,
            self.image_msgr,
            artifact,
            on_success=lambda data: self._image_arrived(artifact.id, data),
            on_failure=lambda err: self._image_failed(artifact.id, err),
        )

    def _image_arrived(self, artifact_id: str, data: bytes) -> None:
        self._downloading.discard(artifact_id)
        self._pixmaps[artifact_id] = pixmap_from_bytes(data)
        if self._is_current(artifact_id):
            self._show_pixmap(self._pixmaps[artifact_id])

    def _image_failed(self, artifact_id: str, err: Exception) -> None:
        self._downloading.discard(artifact_id)
        log.error("Could not download image of work %s: %s", artifact_id, err)
        if self._is_current(artifact_id):
            self.imageLabel.setText("(image unavailable)")

    def _show_pixmap(self, pix: QPixmap) -> None:
        if pix.isNull():
            self.imageLabel.setText("(image unavailable)")
            return
        self.imageLabel.setPixmap(
            pix.scaled(
                self.imageLabel.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    def _fetch_annotation_count(self, artifact: Artifact) -> None:
        self.runner.submit(
            self.msgr.count_annotations,
            artifact.id,
            on_success=lambda n: self._annotation_count_arrived(artifact.id, n),
            on_failure=lambda err: log.error(
                "Could not count annotations of %s: %s", artifact.id, err
            ),
        )

    def _annotation_count_arrived(self, artifact_id: str, n: int) -> None:
        if self._is_current(artifact_id):
            self.annotationsB.setText(
                f"Circled comments ({n})" if n else "Circled comments"
            )

    def show_artifact(self, artifact: Artifact | None) -> None:
        """Display a work and point the reactions and favorite at it.

        Returns without waiting for the backend; the image, counts and
        favorite state are filled in as they arrive.
        """
        self.reactions.set_artifact(artifact)
        self.favorite.set_artifact(artifact)
        self.favoriteB.sync()
        self.annotationsB.setEnabled(artifact is not None)
        self.annotationsB.setText("Circled comments")
        self.positionLabel.setText(self.controller.position_label())
        self.scrubber.blockSignals(True)
        self.scrubber.setValue(self.controller.current_index)
        self.scrubber.blockSignals(False)
        self._update_step_buttons()
        if artifact is None:
            self.imageLabel.clear()
            self.dateLabel.clear()
            self.reflectionLabel.clear()
            self.reflectionLabel.hide()
            return
        self.dateLabel.setText(datetime_to_local_simple_string(artifact.created_at))
        self.reflectionLabel.setText(artifact.reflection or "")
        self.reflectionLabel.setVisible(bool(artifact.reflection))
        if artifact.id in self._pixmaps:
            self._show_pixmap(self._pixmaps[artifact.id])
        else:
            self.imageLabel.setText("Loading\N{HORIZONTAL ELLIPSIS}")
            self._fetch_image(artifact)
        self._fetch_annotation_count(artifact)

    def _update_step_buttons(self) -> None:
        n = len(self.controller.sequence)
        i = self.controller.current_index
        self.prevB.setEnabled(n > 0 and i > 0)
        self.nextB.setEnabled(n > 0 and i < n - 1)

    def _sequence_changed(self, seq: list[Artifact]) -> None:
        self._pixmaps = {}
        self.scrubber.blockSignals(True)
        self.scrubber.setMaximum(max(len(seq) - 1, 0))
        self.scrubber.blockSignals(False)
        self.scrubber.setEnabled(len(seq) > 1)
        self.playB.setEnabled(bool(seq))
        if seq and seq[0].unit_name:
            self.titleLabel.setText(f"<b>{seq[0].unit_name}</b>")
        else:
            self.titleLabel.setText("")

    def _playing_changed(self, playing: bool) -> None:
        if playing:
            self.playB.setText("\N{DOUBLE VERTICAL BAR}")
            self.playB.setToolTip("pause")
        else:
            self.playB.setText("\N{BLACK RIGHT-POINTING TRIANGLE}")
            self.playB.setToolTip("play")

    def _speed_changed(self, speed: int) -> None:
        b = self.speedGroup.button(speed)
        if b:
            b.setChecked(True)

    def show_annotations(self) -> None:
        """Open the circled comments of the displayed work, pausing playback."""
        artifact = self.controller.current_artifact
        if artifact is None:
            return
        self.controller.pause()
        engine = AnnotationEngine(
            self.msgr, self.viewer, runner=self.runner, parent=self
        )
        engine.set_artifact(artifact)
        engine.set_color(self.annotation_color)
        # if the image has not arrived yet, the layer shows the markers alone
        pix = self._pixmaps.get(artifact.id, QPixmap())
        AnnotationLayer(self, engine, pix).exec()
        self.annotation_color = engine.color
        # the count may have changed
        self._fetch_annotation_count(artifact)

    def done(self, r: int) -> None:
        # covers accept, reject and closing the window
        self.controller.close()
        super().done(r)

    def closeEvent(self, event) -> None:
        self.controller.close()
        super().closeEvent(event)
