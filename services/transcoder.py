from __future__ import annotations
import cv2
import numpy as np

from domain.dtos import EncodedImage
from domain.errors import RasterUnavailable
from services.image_utils import bytes_to_cv2, round_half_up

class ImageTranscoder:
    """Re-encodes uploads into a bounded, uniform format before they leave the process."""

    def __init__(self, max_width: int = 1024, quality: float = 0.85) -> None:
        _check(max_width, quality)
        self.max_width = max_width
        self.quality = quality

    def compress(self, data: bytes, max_width: int | None = None, quality: float | None = None) -> EncodedImage:
        max_width = self.max_width if max_width is None else max_width
        quality = self.quality if quality is None else quality
        _check(max_width, quality)
        img = bytes_to_cv2(data, cv2.IMREAD_COLOR)
        h, w = img.shape[:2]
        if w > max_width:
            new_h = max(1, round_half_up(h * max_width / w))
            img = _resize(img, (max_width, new_h))
        params = [int(cv2.IMWRITE_JPEG_QUALITY), max(1, min(100, round_half_up(quality * 100)))]
        return _encode(img, ".jpg", "image/jpeg", params)

    def to_lossless(self, data: bytes) -> EncodedImage:
        # keep alpha and bit depth; PNG is the canonical uncompressed-fidelity format
        img = bytes_to_cv2(data, cv2.IMREAD_UNCHANGED)
        return _encode(img, ".png", "image/png")

def _check(max_width: int, quality: float) -> None:
    if max_width <= 0:
        raise ValueError("max_width must be positive")
    if not 0 < quality <= 1:
        raise ValueError("quality must be in (0, 1]")

def _resize(img: np.ndarray, size: tuple) -> np.ndarray:
    try:
        return cv2.resize(img, size, interpolation=cv2.INTER_AREA)
    except cv2.error as exc:
        raise RasterUnavailable(f"resize failed: {exc}") from exc

def _encode(img: np.ndarray, ext: str, media_type: str, params: list | None = None) -> EncodedImage:
    try:
        ok, buf = cv2.imencode(ext, img, params or [])
    except cv2.error as exc:
        raise RasterUnavailable(f"{ext} encoder failed: {exc}") from exc
    if not ok:
        raise RasterUnavailable(f"{ext} encoder returned no data")
    h, w = img.shape[:2]
    return EncodedImage(data=buf.tobytes(), media_type=media_type, width=int(w), height=int(h))
