# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from __future__ import annotations

from datetime import datetime

import arrow


# ------------------------------------------------
# some time conversion tools put here nice and central


def local_now_to_filename_string() -> str:
    """The local time now, safe for a filename.

    Filenames must not have ":" (forbidden on win32), so we use "ZZZ"
    rather than "ZZ" as the latter looks like "+00:00".
    """
    return arrow.now().format("YYYY-MM-DD_HH-mm-ss_ZZZ")


def datetime_to_local_simple_string(timestamp: str | datetime) -> str:
    """A human-friendly rendering of a timestamp in the local timezone."""
    return arrow.get(timestamp).to("local").format("YYYY-MM-DD [at] HH:mm:ss")


# ------------------------------------------------


def abbreviate(text: str, limit: int = 20) -> str:
    """Cut text down to a prefix of ``limit`` characters and an ellipsis.

    Text of at most ``limit`` characters is returned unchanged.
    """
    if len(text) <= limit:
        return text
    return text[:limit] + "\N{HORIZONTAL ELLIPSIS}"


def clamp(x, lo, hi):
    return max(lo, min(hi, x))
