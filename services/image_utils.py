from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator

import cv2
import numpy as np

from domain.errors import DecodeError, RasterUnavailable

def bytes_to_cv2(b: bytes, flags: int = cv2.IMREAD_COLOR) -> np.ndarray:
    if not b:
        raise DecodeError("empty image payload")
    arr = np.asarray(bytearray(b), dtype=np.uint8)
    img = cv2.imdecode(arr, flags)
    if img is None or img.size == 0:
        raise DecodeError("image bytes could not be decoded")
    return img

def round_half_up(value: float) -> int:
    # builtin round() is banker's rounding; reported numbers round .5 upwards
    return int(np.floor(value + 0.5))

@contextmanager
def sampling_raster(image_bgr: np.ndarray, max_side: int) -> Iterator[np.ndarray]:
    """Yield an RGB copy of *image_bgr* whose longer side is at most *max_side*.

    The buffer is dropped on exit whether or not sampling succeeded.
    """
    raster = None
    try:
        h, w = image_bgr.shape[:2]
        scale = min(1.0, max_side / max(h, w))
        img = image_bgr
        if scale < 1:
            size = (max(1, int(w * scale)), max(1, int(h * scale)))
            img = cv2.resize(img, size, interpolation=cv2.INTER_AREA)
        raster = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    except cv2.error as exc:
        raise RasterUnavailable(f"could not build sampling raster: {exc}") from exc
    try:
        yield raster
    finally:
        del raster
