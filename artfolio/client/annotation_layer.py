# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Widgets drawing circled comments over the image of a work."""

from __future__ import annotations

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import (
    QButtonGroup,
    QDialog,
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsPixmapItem,
    QGraphicsRectItem,
    QGraphicsScene,
    QGraphicsSimpleTextItem,
    QGraphicsView,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from artfolio.misc_utils import datetime_to_local_simple_string
from artfolio.records import Annotation, DefaultRadiusPercent
from .annotations import AnnotationEngine, AnnotationPalette, comment_summary

# alpha of the tint inside a marker, and inside the not-yet-saved marker
MarkerFillAlpha = 0x20
PendingFillAlpha = 0x40


def marker_rect(
    x_percent: float, y_percent: float, radius_percent: float, image_rect: QRectF
) -> QRectF:
    """The square holding a marker, centred on its percent position.

    The radius is a percent of the shorter side of the image, so the
    marker keeps its size relative to the image at any zoom.
    """
    cx = image_rect.left() + image_rect.width() * x_percent / 100
    cy = image_rect.top() + image_rect.height() * y_percent / 100
    r = min(image_rect.width(), image_rect.height()) * radius_percent / 100
    return QRectF(cx - r, cy - r, 2 * r, 2 * r)


class MarkerItem(QGraphicsEllipseItem):
    """A ring with a translucent fill and, if there is a comment, a label below."""

    def __init__(self, ann: Annotation, image_rect: QRectF, *, engine: AnnotationEngine):
        rect = marker_rect(ann.x_percent, ann.y_percent, ann.radius_percent, image_rect)
        super().__init__(rect)
        self.annotation = ann
        self.engine = engine
        colour = QColor(ann.color)
        self.setPen(QPen(colour, max(2.0, rect.width() / 10)))
        fill = QColor(colour)
        fill.setAlpha(MarkerFillAlpha)
        self.setBrush(QBrush(fill))
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        summary = comment_summary(ann.comment)
        if summary:
            label = QGraphicsSimpleTextItem(summary, self)
            label.setBrush(QBrush(Qt.GlobalColor.white))
            br = label.boundingRect()
            label.setPos(rect.center().x() - br.width() / 2, rect.bottom() + 4)
            backing = QGraphicsRectItem(label.boundingRect().adjusted(-3, -1, 3, 1), label)
            backing.setBrush(QBrush(QColor(0, 0, 0, 200)))
            backing.setPen(QPen(Qt.PenStyle.NoPen))
            backing.setFlag(QGraphicsItem.GraphicsItemFlag.ItemStacksBehindParent)

    def mousePressEvent(self, event):
        self.engine.select_annotation(self.annotation)
        event.accept()


class _AnnotationScene(QGraphicsScene):
    """While placing, clicks become pending markers instead of reaching items."""

    def __init__(self, engine: AnnotationEngine):
        super().__init__()
        self.engine = engine
        self.image_rect = QRectF(0, 0, 1, 1)

    def mousePressEvent(self, event):
        if self.engine.is_placing:
            pos = event.scenePos()
            if self.image_rect.contains(pos):
                self.engine.resolve_click(pos.x(), pos.y(), self.image_rect)
            event.accept()
            return
        super().mousePressEvent(event)


class AnnotationDetailDialog(QDialog):
    """The full comment of a marker, when it was made, and maybe a delete button."""

    def __init__(self, parent: QWidget | None, ann: Annotation, *, can_delete: bool):
        super().__init__(parent)
        self.setWindowTitle("Comment details")
        self.annotation = ann
        self.wants_delete = False
        swatch = QLabel()
        swatch.setFixedSize(24, 24)
        swatch.setStyleSheet(f"background-color: {ann.color}; border-radius: 12px;")
        if ann.comment:
            text = QLabel(ann.comment)
        else:
            text = QLabel("<i>No comment</i>")
        text.setWordWrap(True)
        when = QLabel(f"<small>{datetime_to_local_simple_string(ann.created_at)}</small>")
        closeB = QPushButton("Close")
        closeB.clicked.connect(self.reject)
        buttons = QHBoxLayout()
        buttons.addWidget(closeB)
        if can_delete:
            deleteB = QPushButton("Delete")
            deleteB.clicked.connect(self._delete)
            buttons.addWidget(deleteB)
            self.deleteB = deleteB
        top = QHBoxLayout()
        top.addWidget(swatch)
        top.addWidget(QLabel("<b>Comment details</b>"), 1)
        vb = QVBoxLayout()
        vb.addLayout(top)
        vb.addWidget(text)
        vb.addWidget(when)
        vb.addLayout(buttons)
        self.setLayout(vb)

    def _delete(self):
        self.wants_delete = True
        self.accept()


class AnnotationLayer(QDialog):
    """Show a work with its circled comments, and let permitted viewers add more.

    Args:
        parent: the parent widget.
        engine: an :class:`AnnotationEngine` already pointed at the work.
        pixmap: the image of the work, brightness already applied.
    """

    def __init__(self, parent: QWidget | None, engine: AnnotationEngine, pixmap: QPixmap):
        super().__init__(parent)
        self.setWindowTitle("Circled comments")
        self.engine = engine
        self.scene = _AnnotationScene(engine)
        self.view = QGraphicsView(self.scene)
        self.view.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.view.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        self._markers: list[MarkerItem] = []
        self._pending_item: QGraphicsEllipseItem | None = None
        self._set_pixmap(pixmap)

        self.addB = QPushButton()
        self.addB.clicked.connect(engine.begin_placement)
        self.addB.setVisible(engine.can_edit)
        viewOnly = QLabel("(view only)")
        viewOnly.setVisible(not engine.can_edit)
        closeB = QToolButton()
        closeB.setText("\N{MULTIPLICATION SIGN}")
        closeB.setToolTip("close")
        closeB.clicked.connect(self.reject)
        header = QHBoxLayout()
        header.addWidget(QLabel("<b>Circled comments</b>"))
        header.addWidget(self.addB)
        header.addWidget(viewOnly)
        header.addStretch(1)
        header.addWidget(closeB)

        self.instructions = QLabel("Click the image to place a circle")
        self.instructions.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.form = QWidget()
        self.colourGroup = QButtonGroup(self.form)
        self.colourGroup.setExclusive(True)
        colours = QHBoxLayout()
        colours.addWidget(QLabel("Colour:"))
        for c in AnnotationPalette:
            b = QToolButton()
            b.setCheckable(True)
            b.setChecked(c == engine.color)
            b.setFixedSize(28, 28)
            b.setStyleSheet(f"background-color: {c}; border-radius: 14px;")
            b.setToolTip(c)
            b.clicked.connect(lambda _=False, c=c: self._choose_colour(c))
            self.colourGroup.addButton(b)
            colours.addWidget(b)
        colours.addStretch(1)
        self.commentLE = QLineEdit()
        self.commentLE.setPlaceholderText("Comment (optional)")
        self.commentLE.textChanged.connect(self._draft_changed)
        self.saveB = QPushButton("Save")
        self.saveB.clicked.connect(self.save)
        entry = QHBoxLayout()
        entry.addWidget(self.commentLE, 1)
        entry.addWidget(self.saveB)
        fl = QVBoxLayout()
        fl.addLayout(colours)
        fl.addLayout(entry)
        self.form.setLayout(fl)

        self.countLabel = QLabel()
        self.countLabel.setAlignment(Qt.AlignmentFlag.AlignCenter)

        vb = QVBoxLayout()
        vb.addLayout(header)
        vb.addWidget(self.instructions)
        vb.addWidget(self.view, 1)
        vb.addWidget(self.form)
        vb.addWidget(self.countLabel)
        self.setLayout(vb)

        engine.annotations_changed.connect(self.redraw_markers)
        engine.placement_changed.connect(self._placement_changed)
        engine.pending_changed.connect(self._pending_changed)
        engine.selection_changed.connect(self._selection_changed)
        self.redraw_markers(engine.annotations)
        self._placement_changed(engine.is_placing)
        self._pending_changed(engine.pending)

    def _set_pixmap(self, pixmap: QPixmap) -> None:
        self.imageItem = QGraphicsPixmapItem(pixmap)
        self.imageItem.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        self.scene.addItem(self.imageItem)
        rect = self.imageItem.boundingRect()
        if rect.isEmpty():
            # no image: keep percent maths working on a nominal square
            rect = QRectF(0, 0, 100, 100)
        self.scene.image_rect = rect
        self.scene.setSceneRect(rect)

    def resizeEvent(self, event):
        self.view.fitInView(self.scene.image_rect, Qt.AspectRatioMode.KeepAspectRatio)
        super().resizeEvent(event)

    def redraw_markers(self, anns: list[Annotation]) -> None:
        for m in self._markers:
            self.scene.removeItem(m)
        self._markers = []
        for ann in anns:
            m = MarkerItem(ann, self.scene.image_rect, engine=self.engine)
            self.scene.addItem(m)
            self._markers.append(m)
        self.countLabel.setText(f"{len(anns)} marks")

    def _placement_changed(self, placing: bool) -> None:
        self.addB.setText("Cancel" if placing else "Add circle")
        self.instructions.setVisible(placing and self.engine.pending is None)
        if placing:
            self.view.setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.view.unsetCursor()

    def _pending_changed(self, coords) -> None:
        if self._pending_item is not None:
            self.scene.removeItem(self._pending_item)
            self._pending_item = None
        self.form.setVisible(coords is not None)
        self.instructions.setVisible(self.engine.is_placing and coords is None)
        if coords is None:
            self.commentLE.clear()
            return
        x, y = coords
        rect = marker_rect(x, y, DefaultRadiusPercent, self.scene.image_rect)
        colour = QColor(self.engine.color)
        fill = QColor(colour)
        fill.setAlpha(PendingFillAlpha)
        item = QGraphicsEllipseItem(rect)
        item.setPen(QPen(colour, max(2.0, rect.width() / 10)))
        item.setBrush(QBrush(fill))
        self.scene.addItem(item)
        self._pending_item = item

    def _choose_colour(self, colour: str) -> None:
        self.engine.set_color(colour)
        # recolour the pending marker
        self._pending_changed(self.engine.pending)

    def _draft_changed(self, text: str) -> None:
        self.engine.draft_comment = text

    def save(self) -> None:
        self.engine.commit_annotation()

    def _selection_changed(self, ann: Annotation | None) -> None:
        if ann is None:
            return
        d = AnnotationDetailDialog(self, ann, can_delete=self.engine.can_edit)
        d.exec()
        if d.wants_delete:
            self.engine.delete_annotation(ann.id)
        self.engine.close_detail()
