# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from io import BytesIO
from unittest.mock import MagicMock

from PIL import Image
from pytest import raises

from artfolio.artfolio_exceptions import ArtfolioNotFound
from artfolio.records import Artifact
from artfolio.client.image_utils import (
    adjust_brightness,
    pixmap_from_bytes,
    work_image_bytes,
)


def _png(colour=(200, 200, 200), size=(4, 3)):
    out = BytesIO()
    Image.new("RGB", size, colour).save(out, format="PNG")
    return out.getvalue()


def _work(brightness=100):
    return Artifact(
        id="w1",
        student_id="s1",
        image_url="https://example.co/w1.png",
        brightness=brightness,
        created_at="2024-03-01T10:00:00Z",
    )


def test_default_brightness_is_untouched() -> None:
    data = _png()
    assert adjust_brightness(data, 100) is data


def test_darker() -> None:
    out = adjust_brightness(_png((200, 100, 40)), 50)
    with Image.open(BytesIO(out)) as im:
        assert im.getpixel((0, 0)) == (100, 50, 20)


def test_brighter() -> None:
    out = adjust_brightness(_png((100, 100, 100)), 150)
    with Image.open(BytesIO(out)) as im:
        assert im.getpixel((1, 1)) == (150, 150, 150)


def test_work_image_bytes(qtbot) -> None:
    msgr = MagicMock()
    msgr.get_bytes.return_value = _png()
    data = work_image_bytes(msgr, _work(brightness=80))
    msgr.get_bytes.assert_called_once_with("https://example.co/w1.png")
    pix = pixmap_from_bytes(data)
    assert not pix.isNull()
    assert (pix.width(), pix.height()) == (4, 3)


def test_work_image_bytes_download_fails() -> None:
    msgr = MagicMock()
    msgr.get_bytes.side_effect = ArtfolioNotFound("gone")
    with raises(ArtfolioNotFound):
        work_image_bytes(msgr, _work())


def test_work_image_not_an_image(qtbot, caplog) -> None:
    msgr = MagicMock()
    msgr.get_bytes.return_value = b"this is not an image"
    data = work_image_bytes(msgr, _work(brightness=120))
    assert data == b"this is not an image"
    assert "without brightness" in caplog.text
    assert pixmap_from_bytes(data).isNull()
