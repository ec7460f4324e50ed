"""JPEG encoding of aligned face images for the wire."""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from face_r300.errors import ImageEncodingFailure

if TYPE_CHECKING:
    from face_r300.core.types import Image


def encode_jpeg(image: Image, quality: int = 100) -> bytes:
    """Encode a BGR uint8 image as JPEG.

    Raises:
        ImageEncodingFailure: If the input is not a non-empty uint8 image or the encoder fails.
    """
    if not isinstance(image, np.ndarray) or image.size == 0 or image.dtype != np.uint8 or image.ndim not in (2, 3):
        raise ImageEncodingFailure
    try:
        ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    except cv2.error as exc:
        raise ImageEncodingFailure from exc
    if not ok:
        raise ImageEncodingFailure
    return buffer.tobytes()
