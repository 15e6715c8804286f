# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Backend bits 'n bobs to talk to the hosted database."""

from .messenger import Messenger

# No one should be calling BaseMessenger directly but maybe
# its useful for typing hints.
from .base_messenger import BaseMessenger

__all__ = [
    "Messenger",
]
