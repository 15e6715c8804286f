# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from artfolio.misc_utils import (
    abbreviate,
    clamp,
    datetime_to_local_simple_string,
    local_now_to_filename_string,
)


ellipsis = "\N{HORIZONTAL ELLIPSIS}"


def test_abbreviate_short_text_unchanged() -> None:
    assert abbreviate("short") == "short"
    assert abbreviate("x" * 20) == "x" * 20


def test_abbreviate_long_text() -> None:
    s = "abcdefghijklmnopqrstuvwxyz"
    assert abbreviate(s) == "abcdefghijklmnopqrst" + ellipsis
    assert abbreviate(s, 3) == "abc" + ellipsis


def test_clamp() -> None:
    assert clamp(5, 0, 10) == 5
    assert clamp(-1, 0, 10) == 0
    assert clamp(11, 0, 10) == 10
    assert clamp(101.5, 0.0, 100.0) == 100.0


def test_filename_string_has_no_colons() -> None:
    assert ":" not in local_now_to_filename_string()


def test_simple_string() -> None:
    # noon UTC is the same day almost everywhere
    s = datetime_to_local_simple_string("2024-03-01T12:00:00+00:00")
    date, at, time = s.split(" ")
    assert date in ("2024-02-29", "2024-03-01", "2024-03-02")
    assert at == "at"
    assert len(time) == 8 and time.endswith(":00")
