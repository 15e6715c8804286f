# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Circled comments on a work: placing, listing and removing them.

The :class:`AnnotationEngine` holds the state; widgets in
:mod:`artfolio.client.annotation_layer` draw it.  Positions are kept in
percent of the image so markers land on the same spot whatever size the
image is shown at.
"""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, QRectF, pyqtSignal

from artfolio.misc_utils import abbreviate, clamp
from artfolio.records import Annotation, Artifact, DefaultRadiusPercent, Viewer
from .background import BackgroundRunner


log = logging.getLogger("annotations")

AnnotationPalette = ("#FF4444", "#44FF44", "#4444FF", "#FFFF44", "#FF44FF", "#44FFFF")
DefaultAnnotationColor = AnnotationPalette[0]
# comments longer than this are abbreviated under the marker
CommentSummaryLength = 20


def resolve_click(
    client_x: float, client_y: float, bounds: QRectF
) -> tuple[float, float] | None:
    """Convert a pointer position to percent-of-container coordinates.

    Args:
        client_x: horizontal pointer position, same coordinate system
            as ``bounds``.
        client_y: vertical pointer position.
        bounds: the rectangle of the displayed image.

    Returns:
        ``(x_percent, y_percent)``, each clamped to [0, 100], or None
        if ``bounds`` has no area (e.g., the image is not laid out yet).
    """
    if bounds.isEmpty():
        return None
    x = (client_x - bounds.left()) / bounds.width() * 100
    y = (client_y - bounds.top()) / bounds.height() * 100
    return clamp(x, 0.0, 100.0), clamp(y, 0.0, 100.0)


def comment_summary(comment: str | None) -> str:
    """The short label shown under a marker."""
    if not comment:
        return ""
    return abbreviate(comment, CommentSummaryLength)


class AnnotationEngine(QObject):
    """Place, view and remove circled comments on the displayed work.

    There are two independent tracks of state:

      * placement: ``idle -> placing -> pending -> idle``.  The first
        click while placing captures a pending coordinate; committing
        or cancelling returns to idle.
      * detail: ``idle -> detail -> idle`` when a marker is clicked and
        the detail view is closed.  Marker clicks are ignored while
        placing.

    Only viewers who do not own the work may add or delete markers,
    except teachers who may annotate anything.  This is a convenience
    for the UI, the backend must do its own checks.

    Backend calls go through a :class:`BackgroundRunner` and return at
    once; the results arrive later as signals.  A result for a work
    that is no longer displayed is dropped.

    The engine emits **signals**:

      * `annotations_changed(list)`: the list of annotations changed.
      * `annotation_committed(object)`: a new annotation was saved,
        as stored by the backend.
      * `placement_changed(bool)`: placing mode was entered or left.
      * `pending_changed(object)`: the pending ``(x, y)`` or None.
      * `selection_changed(object)`: the annotation in the detail view,
        or None.
    """

    annotations_changed = pyqtSignal(list)
    annotation_committed = pyqtSignal(object)
    placement_changed = pyqtSignal(bool)
    pending_changed = pyqtSignal(object)
    selection_changed = pyqtSignal(object)

    def __init__(
        self,
        msgr: Any,
        viewer: Viewer,
        *,
        runner: Any = None,
        parent: QObject | None = None,
    ):
        """Initialize a new AnnotationEngine.

        Args:
            msgr: a :class:`artfolio.messenger.Messenger` or something
                with the same annotation methods.
            viewer: who is looking.

        Keyword Args:
            runner: a :class:`BackgroundRunner` to make backend calls
                with, by default we make our own.
            parent: the usual Qt parent.
        """
        super().__init__(parent)
        self.msgr = msgr
        self.viewer = viewer
        if runner is None:
            runner = BackgroundRunner(self)
        self.runner = runner
        self.artifact: Artifact | None = None
        self._annotations: list[Annotation] = []
        self._placing = False
        self._pending: tuple[float, float] | None = None
        self._selected: Annotation | None = None
        self.color = DefaultAnnotationColor
        self.draft_comment = ""

    @property
    def annotations(self) -> list[Annotation]:
        return list(self._annotations)

    @property
    def annotation_count(self) -> int:
        return len(self._annotations)

    @property
    def is_placing(self) -> bool:
        return self._placing

    @property
    def pending(self) -> tuple[float, float] | None:
        return self._pending

    @property
    def selected(self) -> Annotation | None:
        return self._selected

    @property
    def can_edit(self) -> bool:
        """Can the viewer add or remove markers on the current work?"""
        if self.artifact is None:
            return False
        if self.viewer.is_supervisor:
            return True
        return not self.viewer.owns(self.artifact)

    def _is_current(self, artifact_id: str) -> bool:
        return self.artifact is not None and self.artifact.id == artifact_id

    def set_artifact(self, artifact: Artifact | None) -> None:
        """Switch to another work, dropping any half-done placement."""
        self._set_placing(False)
        self._set_selected(None)
        self.draft_comment = ""
        self.artifact = artifact
        self._set_annotations([])
        if artifact is not None:
            self.load_annotations(artifact.id)

    def load_annotations(self, artifact_id: str) -> None:
        """Fetch the annotations of a work in the background.

        They arrive, oldest first, through `annotations_changed`.  A
        failure to fetch is logged and looks the same as having no
        annotations: we still want the image to be viewable.
        """
        self.runner.submit(
            self.msgr.list_annotations,
            artifact_id,
            on_success=lambda anns: self._annotations_loaded(artifact_id, anns),
            on_failure=lambda err: self._annotations_not_loaded(artifact_id, err),
        )

    def _annotations_loaded(self, artifact_id: str, anns: list[Annotation]) -> None:
        if not self._is_current(artifact_id):
            log.debug("Dropping annotations of %s, no longer displayed", artifact_id)
            return
        self._set_annotations(sorted(anns, key=lambda a: a.created_at))

    def _annotations_not_loaded(self, artifact_id: str, err: Exception) -> None:
        log.error("Could not fetch annotations of work %s: %s", artifact_id, err)
        if self._is_current(artifact_id):
            self._set_annotations([])

    def _set_annotations(self, anns: list[Annotation]) -> None:
        self._annotations = list(anns)
        self.annotations_changed.emit(self.annotations)

    def _set_placing(self, placing: bool) -> None:
        if self._pending is not None:
            self._pending = None
            self.pending_changed.emit(None)
        if placing != self._placing:
            self._placing = placing
            self.placement_changed.emit(placing)

    def _set_selected(self, ann: Annotation | None) -> None:
        if ann != self._selected:
            self._selected = ann
            self.selection_changed.emit(ann)

    def begin_placement(self) -> None:
        """Toggle placing mode; calling again while placing cancels."""
        if not self.can_edit:
            log.debug("Viewer %s cannot annotate this work", self.viewer.user_id)
            return
        if self._placing:
            self._set_placing(False)
            return
        self._set_selected(None)
        self._set_placing(True)

    def cancel_placement(self) -> None:
        self._set_placing(False)
        self.draft_comment = ""

    def resolve_click(
        self, client_x: float, client_y: float, bounds: QRectF
    ) -> tuple[float, float] | None:
        """Capture a click on the image as the pending annotation.

        Returns:
            The ``(x_percent, y_percent)`` of the click, or None when
            we are not placing or the image has no area, in which case
            nothing happens.
        """
        if not self._placing:
            return None
        coords = resolve_click(client_x, client_y, bounds)
        if coords is None:
            return None
        self._pending = coords
        self.pending_changed.emit(self._pending)
        return self._pending

    def set_color(self, color: str) -> None:
        if color not in AnnotationPalette:
            raise ValueError(f"{color} is not one of the palette colours")
        self.color = color

    def commit_annotation(
        self,
        coords: tuple[float, float] | None = None,
        color: str | None = None,
        comment: str | None = None,
    ) -> bool:
        """Save a new annotation, adding it to our list once stored.

        The backend's copy of the annotation is emitted with
        `annotation_committed`, after which placing ends and the
        pending coordinate and draft comment are cleared.  If the
        backend refuses, this is logged and we stay in placing mode.

        Args:
            coords: ``(x_percent, y_percent)``, defaults to the pending
                coordinate.
            color: defaults to the currently chosen colour.
            comment: defaults to the draft comment; empty means none.

        Returns:
            False if there was nothing to save or the viewer may not
            annotate, otherwise True: the request is on its way.
        """
        if not self.can_edit:
            log.debug("Viewer %s cannot annotate this work", self.viewer.user_id)
            return False
        assert self.artifact is not None
        if coords is None:
            coords = self._pending
        if coords is None:
            return False
        if color is None:
            color = self.color
        if comment is None:
            comment = self.draft_comment
        x, y = coords
        artifact_id = self.artifact.id
        self.runner.submit(
            self.msgr.create_annotation,
            artifact_id,
            self.viewer.user_id,
            x,
            y,
            DefaultRadiusPercent,
            comment.strip() or None,
            color,
            on_success=lambda ann: self._committed(artifact_id, ann),
            on_failure=lambda err: log.error(
                "Could not save annotation on work %s: %s", artifact_id, err
            ),
        )
        return True

    def _committed(self, artifact_id: str, ann: Annotation) -> None:
        log.info(
            "Added annotation %s at (%.1f%%, %.1f%%)",
            ann.id,
            ann.x_percent,
            ann.y_percent,
        )
        if not self._is_current(artifact_id):
            return
        self._set_annotations(self._annotations + [ann])
        self.draft_comment = ""
        self._set_placing(False)
        self.annotation_committed.emit(ann)

    def select_annotation(self, ann: Annotation) -> bool:
        """Open the detail view of a marker, unless we are placing.

        Returns:
            True if the detail view opened.
        """
        if self._placing:
            return False
        self._set_selected(ann)
        return True

    def close_detail(self) -> None:
        self._set_selected(None)

    def delete_annotation(self, annotation_id: str) -> bool:
        """Remove an annotation from the backend, then from our list.

        Returns:
            False if the viewer may not delete here, otherwise True: the
            request is on its way.  Failures are logged and leave the
            annotation in place.
        """
        if not self.can_edit:
            log.debug("Viewer %s cannot delete annotations here", self.viewer.user_id)
            return False
        assert self.artifact is not None
        artifact_id = self.artifact.id
        self.runner.submit(
            self.msgr.delete_annotation,
            annotation_id,
            on_success=lambda _: self._deleted(artifact_id, annotation_id),
            on_failure=lambda err: log.error(
                "Could not delete annotation %s: %s", annotation_id, err
            ),
        )
        return True

    def _deleted(self, artifact_id: str, annotation_id: str) -> None:
        if not self._is_current(artifact_id):
            return
        self._set_annotations([a for a in self._annotations if a.id != annotation_id])
        if self._selected is not None and self._selected.id == annotation_id:
            self._set_selected(None)
