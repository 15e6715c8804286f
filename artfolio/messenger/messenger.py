# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Backend communication for the review client."""

from __future__ import annotations

import logging

from artfolio.artfolio_exceptions import ArtfolioSeriousException
from artfolio.records import Annotation, Artifact, Favorite, Reaction
from .base_messenger import BaseMessenger


log = logging.getLogger("messenger")


def _eq(value: str) -> str:
    return f"eq.{value}"


class Messenger(BaseMessenger):
    """Handle communication with the backend for works, annotations, reactions and favorites.

    Each method is one call to the backend; rows are converted to our
    records on the way in.  Every method may raise any of the exceptions
    documented in :meth:`BaseMessenger._request`.
    """

    def _rows(self, response) -> list:
        rows = self._json(response)
        if not isinstance(rows, list):
            raise ArtfolioSeriousException(
                f"Expected a list of rows, got {type(rows).__name__}"
            )
        return rows

    # ------------------------
    # Works

    def list_artifacts(
        self, student_id: str, task_box_id: str | None = None
    ) -> list[Artifact]:
        """The works of one student, optionally only those in one task box.

        The gateway orders them oldest first but callers wanting a
        playback sequence should still use
        :func:`artfolio.records.ordered_playback_sequence`.
        """
        params = {
            "select": "*,task_boxes(*)",
            "student_id": _eq(student_id),
            "order": "created_at.asc",
        }
        if task_box_id is not None:
            params["task_box_id"] = _eq(task_box_id)
        response = self._request("GET", "works", params=params)
        return [Artifact.from_row(row) for row in self._rows(response)]

    def get_artifacts(self, work_ids: list[str]) -> list[Artifact]:
        """Particular works by id, e.g., a user's favorites, oldest first."""
        if not work_ids:
            return []
        params = {
            "select": "*,task_boxes(*)",
            "id": f"in.({','.join(work_ids)})",
            "order": "created_at.asc",
        }
        response = self._request("GET", "works", params=params)
        return [Artifact.from_row(row) for row in self._rows(response)]

    # ------------------------
    # Annotations

    def list_annotations(self, work_id: str) -> list[Annotation]:
        params = {
            "select": "*",
            "work_id": _eq(work_id),
            "order": "created_at.asc",
        }
        response = self._request("GET", "annotations", params=params)
        return [Annotation.from_row(row) for row in self._rows(response)]

    def count_annotations(self, work_id: str) -> int:
        """How many annotations on a work, without downloading them."""
        params = {"select": "id", "work_id": _eq(work_id), "limit": "1"}
        response = self._request(
            "GET", "annotations", params=params, prefer="count=exact"
        )
        # looks like "0-0/17" or "*/0"
        content_range = response.headers.get("Content-Range", "")
        _, _, total = content_range.rpartition("/")
        if total.isdigit():
            return int(total)
        log.warning("No usable Content-Range in count response: %s", content_range)
        return len(self._rows(response))

    def create_annotation(
        self,
        work_id: str,
        user_id: str,
        x_percent: float,
        y_percent: float,
        radius_percent: float,
        comment: str | None,
        color: str,
    ) -> Annotation:
        """Store a new annotation, the server assigns the id and timestamp.

        Returns:
            The annotation as stored by the server.
        """
        row = {
            "work_id": work_id,
            "user_id": user_id,
            "x_percent": x_percent,
            "y_percent": y_percent,
            "radius_percent": radius_percent,
            "comment": comment or None,
            "color": color,
        }
        response = self._request(
            "POST", "annotations", json=row, prefer="return=representation"
        )
        rows = self._rows(response)
        if len(rows) != 1:
            raise ArtfolioSeriousException(
                f"Expected the stored annotation back, got {len(rows)} rows"
            )
        return Annotation.from_row(rows[0])

    def delete_annotation(self, annotation_id: str) -> None:
        self._request("DELETE", "annotations", params={"id": _eq(annotation_id)})

    # ------------------------
    # Reactions

    def create_reaction(self, work_id: str, sender_id: str, kind: str) -> None:
        row = {"work_id": work_id, "sender_id": sender_id, "reaction_type": kind}
        self._request("POST", "reactions", json=row, prefer="return=minimal")

    def list_reactions(self, work_id: str) -> list[Reaction]:
        params = {
            "select": "work_id,sender_id,reaction_type",
            "work_id": _eq(work_id),
        }
        response = self._request("GET", "reactions", params=params)
        return [Reaction.from_row(row) for row in self._rows(response)]

    # ------------------------
    # Favorites

    def upsert_favorite(self, user_id: str, work_id: str) -> None:
        """Mark a work as a favorite, doing nothing if it already is."""
        row = {"user_id": user_id, "work_id": work_id}
        self._request(
            "POST",
            "favorites",
            json=row,
            prefer="resolution=ignore-duplicates,return=minimal",
        )

    def delete_favorite(self, user_id: str, work_id: str) -> None:
        params = {"user_id": _eq(user_id), "work_id": _eq(work_id)}
        self._request("DELETE", "favorites", params=params)

    def favorite_exists(self, user_id: str, work_id: str) -> bool:
        params = {
            "select": "created_at",
            "user_id": _eq(user_id),
            "work_id": _eq(work_id),
            "limit": "1",
        }
        response = self._request("GET", "favorites", params=params)
        return bool(self._rows(response))

    def list_favorites(self, user_id: str) -> list[Favorite]:
        """The favorites of a user, most recently bookmarked first."""
        params = {
            "select": "user_id,work_id,created_at",
            "user_id": _eq(user_id),
            "order": "created_at.desc",
        }
        response = self._request("GET", "favorites", params=params)
        return [Favorite.from_row(row) for row in self._rows(response)]
