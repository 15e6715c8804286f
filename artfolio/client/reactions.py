# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Reactions and favorites on a work, shown optimistically.

Both update what the viewer sees before the backend answers.  They
differ on failure:

  * reactions are append-only events: a failed insert is logged and the
    count we show stays bumped.  There is no rollback (a known gap).
  * favorites are a yes/no membership: a failed insert or delete flips
    the state back, so we never show a favorite that isn't there.
"""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, pyqtSignal

from artfolio.records import Artifact, Reaction, Viewer
from .background import BackgroundRunner


log = logging.getLogger("reactions")

# kind: (icon, label), in the order offered by the picker
ReactionKinds = {
    "like": ("\N{THUMBS UP SIGN}", "Like"),
    "fire": ("\N{FIRE}", "Amazing"),
    "star": ("\N{WHITE MEDIUM STAR}", "Lovely"),
    "clap": ("\N{CLAPPING HANDS SIGN}", "Applause"),
    "smile": ("\N{SMILING FACE WITH SMILING EYES}", "Cheer"),
}
# shown for kinds we don't know, e.g., added by a newer client
FallbackReactionIcon = "\N{MIDDLE DOT}"


def reaction_icon(kind: str) -> str:
    icon, _ = ReactionKinds.get(kind, (FallbackReactionIcon, kind))
    return icon


def reaction_label(kind: str) -> str:
    _, label = ReactionKinds.get(kind, (FallbackReactionIcon, kind))
    return label


class ReactionOverlay(QObject):
    """Reaction counts of the displayed work and a way to add to them.

    Backend calls go through a :class:`BackgroundRunner`, so nothing
    here waits for the network.  Counts fetched for a work that is no
    longer displayed are dropped.

    Signals:

      * `counts_changed(list)`: list of ``(kind, count)`` pairs, most
        popular first.
    """

    counts_changed = pyqtSignal(list)

    def __init__(
        self,
        msgr: Any,
        viewer: Viewer,
        *,
        runner: Any = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.msgr = msgr
        self.viewer = viewer
        if runner is None:
            runner = BackgroundRunner(self)
        self.runner = runner
        self.artifact: Artifact | None = None
        self._counts: dict[str, int] = {}
        # reactions made before the counts arrived, added on arrival
        self._early: dict[str, int] | None = {}

    @property
    def can_react(self) -> bool:
        """No reacting to nothing, nor to your own work."""
        return self.artifact is not None and not self.viewer.owns(self.artifact)

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def sorted_counts(self) -> list[tuple[str, int]]:
        """Pairs of ``(kind, count)``, largest count first."""
        return sorted(self._counts.items(), key=lambda kc: kc[1], reverse=True)

    def _emit(self) -> None:
        self.counts_changed.emit(self.sorted_counts())

    def _is_current(self, artifact_id: str) -> bool:
        return self.artifact is not None and self.artifact.id == artifact_id

    def set_artifact(self, artifact: Artifact | None) -> None:
        self.artifact = artifact
        self.refresh()

    def refresh(self) -> None:
        """Recount the reactions of the current work from the backend.

        The counts are cleared at once and filled in when the backend
        answers.
        """
        self._counts = {}
        self._early = {}
        self._emit()
        if self.artifact is None:
            return
        artifact_id = self.artifact.id
        self.runner.submit(
            self.msgr.list_reactions,
            artifact_id,
            on_success=lambda reactions: self._reactions_loaded(artifact_id, reactions),
            on_failure=lambda err: log.error(
                "Could not fetch reactions of %s: %s", artifact_id, err
            ),
        )

    def _reactions_loaded(self, artifact_id: str, reactions: list[Reaction]) -> None:
        if not self._is_current(artifact_id):
            log.debug("Dropping reactions of %s, no longer displayed", artifact_id)
            return
        counts: dict[str, int] = dict(self._early or {})
        for r in reactions:
            counts[r.reaction_type] = counts.get(r.reaction_type, 0) + 1
        self._counts = counts
        self._early = None
        self._emit()

    def react(self, kind: str) -> bool:
        """Add one reaction of a kind, showing it before the backend confirms.

        Repeated reactions are allowed and each one counts.  If the
        backend fails we log it but keep showing the bumped count.

        Returns:
            False if the viewer may not react here (and nothing was
            done), otherwise True.

        Raises:
            ValueError: unknown kind of reaction.
        """
        if kind not in ReactionKinds:
            raise ValueError(f'Unknown kind of reaction "{kind}"')
        if not self.can_react:
            log.debug("Viewer %s cannot react to this work", self.viewer.user_id)
            return False
        assert self.artifact is not None
        self._counts[kind] = self._counts.get(kind, 0) + 1
        if self._early is not None:
            self._early[kind] = self._early.get(kind, 0) + 1
        self._emit()
        artifact_id = self.artifact.id
        self.runner.submit(
            self.msgr.create_reaction,
            artifact_id,
            self.viewer.user_id,
            kind,
            on_failure=lambda err: log.warning(
                "Reaction %s on %s was not saved: %s", kind, artifact_id, err
            ),
        )
        return True


class FavoriteToggle(QObject):
    """Whether the viewer has bookmarked the displayed work.

    Until the initial state is fetched, toggling is ignored.

    Signals:

      * `favorite_changed(bool)`
      * `loaded(bool)`: the initial state of the work is now known.
    """

    favorite_changed = pyqtSignal(bool)
    loaded = pyqtSignal(bool)

    def __init__(
        self,
        msgr: Any,
        viewer: Viewer,
        *,
        runner: Any = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.msgr = msgr
        self.viewer = viewer
        if runner is None:
            runner = BackgroundRunner(self)
        self.runner = runner
        self.artifact: Artifact | None = None
        self._is_favorite = False
        self._known = False

    @property
    def is_favorite(self) -> bool:
        return self._is_favorite

    @property
    def is_loaded(self) -> bool:
        return self._known

    def _set(self, value: bool) -> None:
        if value != self._is_favorite:
            self._is_favorite = value
            self.favorite_changed.emit(value)

    def _is_current(self, artifact_id: str) -> bool:
        return self.artifact is not None and self.artifact.id == artifact_id

    def set_artifact(self, artifact: Artifact | None) -> None:
        self.artifact = artifact
        self._known = False
        self._set(False)
        if artifact is not None:
            self.load()

    def load(self) -> None:
        """Ask the backend whether the current work is a favorite."""
        assert self.artifact is not None
        artifact_id = self.artifact.id
        self.runner.submit(
            self.msgr.favorite_exists,
            self.viewer.user_id,
            artifact_id,
            on_success=lambda exists: self._loaded(artifact_id, exists),
            on_failure=lambda err: self._not_loaded(artifact_id, err),
        )

    def _loaded(self, artifact_id: str, exists: bool) -> None:
        if not self._is_current(artifact_id):
            return
        self._set(bool(exists))
        self._known = True
        self.loaded.emit(self._is_favorite)

    def _not_loaded(self, artifact_id: str, err: Exception) -> None:
        log.error("Could not check favorite on %s: %s", artifact_id, err)
        self._loaded(artifact_id, False)

    def toggle_favorite(self) -> bool:
        """Flip the favorite at once, reverting later if the backend refuses.

        Returns:
            The new favorite state as shown, before the backend answers.
        """
        if self.artifact is None or not self._known:
            return self._is_favorite
        new_state = not self._is_favorite
        self._set(new_state)
        artifact_id = self.artifact.id
        call = self.msgr.upsert_favorite if new_state else self.msgr.delete_favorite
        self.runner.submit(
            call,
            self.viewer.user_id,
            artifact_id,
            on_failure=lambda err: self._toggle_failed(artifact_id, new_state, err),
        )
        return self._is_favorite

    def _toggle_failed(self, artifact_id: str, attempted: bool, err: Exception) -> None:
        log.warning("Could not toggle favorite on %s: %s", artifact_id, err)
        # unless the viewer has since moved on or toggled again
        if self._is_current(artifact_id) and self._is_favorite == attempted:
            self._set(not attempted)
