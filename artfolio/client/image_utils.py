# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any

from PIL import Image, ImageEnhance
from PyQt6.QtGui import QPixmap

from artfolio.records import Artifact, DefaultBrightness


log = logging.getLogger("client")


def adjust_brightness(data: bytes, percent: int) -> bytes:
    """Scale the brightness of an image, like a CSS ``brightness()`` filter.

    Args:
        data: the bytes of an image file in any format Pillow reads.
        percent: 100 leaves the image alone, 50 is half as bright.

    Returns:
        PNG bytes, or the original bytes if ``percent`` is 100.
    """
    if percent == DefaultBrightness:
        return data
    with Image.open(BytesIO(data)) as im:
        im = ImageEnhance.Brightness(im.convert("RGB")).enhance(percent / 100)
        out = BytesIO()
        im.save(out, format="PNG")
    return out.getvalue()


def work_image_bytes(msgr: Any, artifact: Artifact) -> bytes:
    """Download the image of a work, with its brightness applied.

    Safe to call off the GUI thread: it makes no Qt objects.

    Raises:
        ArtfolioException: the download failed.  If instead the image
            cannot be decoded, we log it and return the bytes unchanged.
    """
    data = msgr.get_bytes(artifact.image_url)
    try:
        data = adjust_brightness(data, artifact.brightness)
    except OSError as e:
        log.warning("Showing work %s without brightness: %s", artifact.id, e)
    return data


def pixmap_from_bytes(data: bytes) -> QPixmap:
    """A pixmap of image data, null if it is not an image; GUI thread only."""
    pix = QPixmap()
    pix.loadFromData(data)
    return pix
