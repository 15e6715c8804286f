# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Artfolio is a review client for art-class portfolios.

Teachers and classmates look through a student's submitted works as a
flipbook, leave circled comments on them, react and bookmark favorites.
"""

__copyright__ = "Copyright (C) 2025 The Artfolio Developers"
__credits__ = "The Artfolio Developers"
__license__ = "AGPL-3.0-or-later"

from .version import __version__

from .records import (
    Artifact,
    Annotation,
    Reaction,
    Favorite,
    Viewer,
    ordered_playback_sequence,
    group_by_unit,
)

__all__ = [
    "Artifact",
    "Annotation",
    "Reaction",
    "Favorite",
    "Viewer",
    "ordered_playback_sequence",
    "group_by_unit",
]
