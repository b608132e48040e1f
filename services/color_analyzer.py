from __future__ import annotations
import numpy as np
from typing import List, Tuple

from domain.dtos import ColorData, ComputedMeta, VisualFeatures
from domain.enums import AspectRatio
from domain.errors import DecodeError
from services.image_utils import bytes_to_cv2, round_half_up, sampling_raster

BUCKET_WIDTH = 32
TOP_COLORS = 5
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

class ColorAnalyzer:
    def __init__(self, max_side: int = 200, stride: int = 5, top_n: int = TOP_COLORS) -> None:
        if stride < 1:
            raise ValueError("stride must be >= 1")
        self.max_side = max_side
        self.stride = stride  # sample every Nth pixel; higher is faster, coarser
        self.top_n = top_n

    def analyze_bytes(self, data: bytes) -> VisualFeatures:
        return self.analyze(bytes_to_cv2(data))

    def analyze(self, image_bgr: np.ndarray) -> VisualFeatures:
        if image_bgr is None or image_bgr.size == 0:
            raise DecodeError("empty image")
        # reported size is the source size, not the sampling raster
        h, w = image_bgr.shape[:2]
        with sampling_raster(image_bgr, self.max_side) as rgb:
            samples = rgb.reshape(-1, 3)[:: self.stride].astype(np.int64)
            palette = self.extract_palette(samples)
            brightness, contrast = self.luminance_stats(samples)
        meta = ComputedMeta(
            width=int(w),
            height=int(h),
            aspect_ratio=AspectRatio.from_size(w, h),
            dominant_colors=[c.hex for c in palette],
            brightness=brightness,
            contrast=contrast,
        )
        return VisualFeatures(meta=meta, palette=palette)

    def extract_palette(self, samples: np.ndarray) -> List[ColorData]:
        """Rank 32-wide RGB buckets by count over (N, 3) RGB samples.

        Each bucket is reported with the first sampled pixel that fell in it.
        """
        total = len(samples)
        if total == 0:
            return []
        q = samples // BUCKET_WIDTH
        keys = (q[:, 0] << 16) | (q[:, 1] << 8) | q[:, 2]
        _, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)
        # count desc, earlier-seen bucket first on ties
        order = np.lexsort((first_idx, -counts))[: self.top_n]
        colors = []
        for i in order:
            r, g, b = (int(v) for v in samples[first_idx[i]])
            colors.append(ColorData(
                hex=rgb_to_hex(r, g, b),
                percentage=round_half_up(counts[i] / total * 100),
                is_warm=r > b,
            ))
        return colors

    @staticmethod
    def luminance_stats(samples: np.ndarray) -> Tuple[int, int]:
        """Return (brightness 0-255, contrast 0-100) of the samples."""
        if len(samples) == 0:
            return 0, 0
        luma = samples @ LUMA_WEIGHTS
        brightness = round_half_up(float(luma.mean()))
        # empirical scaling: std 64 -> 100
        contrast = round_half_up(min(100.0, float(luma.std()) / 128 * 200))
        return brightness, max(0, min(100, contrast))

def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"
