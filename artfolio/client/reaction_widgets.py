# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from __future__ import annotations

from PyQt6.QtWidgets import QHBoxLayout, QLabel, QMenu, QToolButton, QWidget

from .reactions import (
    FavoriteToggle,
    ReactionKinds,
    ReactionOverlay,
    reaction_icon,
    reaction_label,
)


class ReactionBar(QWidget):
    """Chips with the reaction counts of a work and a button to add one.

    The add button is hidden when the viewer owns the work.
    """

    def __init__(self, parent: QWidget | None, overlay: ReactionOverlay):
        super().__init__(parent)
        self.overlay = overlay
        self.chips: list[QLabel] = []
        self.chipLayout = QHBoxLayout()
        self.chipLayout.setContentsMargins(0, 0, 0, 0)
        self.chipLayout.setSpacing(3)
        self.addB = QToolButton()
        self.addB.setToolTip("Add a reaction")
        self.addB.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        m = QMenu(self.addB)
        for kind in ReactionKinds:
            a = m.addAction(f"{reaction_icon(kind)} {reaction_label(kind)}")
            a.triggered.connect(lambda _=False, kind=kind: self.overlay.react(kind))
        self.addB.setMenu(m)
        hb = QHBoxLayout()
        hb.setContentsMargins(0, 0, 0, 0)
        hb.addStretch(1)
        hb.addLayout(self.chipLayout)
        hb.addWidget(self.addB)
        self.setLayout(hb)
        overlay.counts_changed.connect(self.update_counts)
        self.update_counts(overlay.sorted_counts())

    def update_counts(self, counts: list[tuple[str, int]]) -> None:
        for chip in self.chips:
            self.chipLayout.removeWidget(chip)
            chip.deleteLater()
        self.chips = []
        for kind, n in counts:
            chip = QLabel(f"{reaction_icon(kind)} {n}")
            chip.setToolTip(reaction_label(kind))
            self.chipLayout.addWidget(chip)
            self.chips.append(chip)
        if counts:
            self.addB.setText("+")
        else:
            self.addB.setText("\N{WHITE SMILING FACE}")
        self.addB.setVisible(self.overlay.can_react)


class FavoriteButton(QToolButton):
    """A heart that shows and toggles whether the viewer bookmarked the work."""

    def __init__(self, parent: QWidget | None, toggle: FavoriteToggle):
        super().__init__(parent)
        self.toggle = toggle
        self.setText("\N{HEAVY BLACK HEART}")
        self.setCheckable(True)
        self.clicked.connect(self._clicked)
        toggle.favorite_changed.connect(self._update)
        toggle.loaded.connect(self._update)
        self.sync()

    def sync(self) -> None:
        """Show the current state of the toggle, e.g., after it loaded."""
        self._update(self.toggle.is_favorite)

    def _clicked(self) -> None:
        self.toggle.toggle_favorite()
        # the click already flipped the check state: show what the toggle says
        self._update(self.toggle.is_favorite)

    def _update(self, is_favorite: bool) -> None:
        self.setChecked(is_favorite)
        self.setEnabled(self.toggle.is_loaded)
        if is_favorite:
            self.setToolTip("Remove from favorites")
        else:
            self.setToolTip("Save to favorites")
