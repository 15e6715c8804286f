# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Artfolio review client: playback, circled comments and reactions."""

__copyright__ = "Copyright (C) 2025 The Artfolio Developers"
__credits__ = "The Artfolio Developers"
__license__ = "AGPL-3.0-or-later"


from artfolio import __version__
from .annotations import AnnotationEngine
from .playback import PlaybackController
from .reactions import FavoriteToggle, ReactionOverlay
from .background import BackgroundRunner
from .playback_window import PlaybackWindow

# what you get from "from artfolio.client import *"
__all__ = [
    "AnnotationEngine",
    "PlaybackController",
    "ReactionOverlay",
    "FavoriteToggle",
    "PlaybackWindow",
    "BackgroundRunner",
]
