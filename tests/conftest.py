from __future__ import annotations

from typing import List

import cv2
import numpy as np
import pytest

from domain.analysis import SemanticAnalysis
from domain.dtos import Asset
from domain.enums import ProcessingStatus
from services.asset_repository import AssetRepository


def encode_rgb(rgb: np.ndarray, ext: str = ".png") -> bytes:
    bgr = cv2.cvtColor(np.ascontiguousarray(rgb, dtype=np.uint8), cv2.COLOR_RGB2BGR)
    ok, buf = cv2.imencode(ext, bgr)
    assert ok
    return buf.tobytes()


def solid_rgb(color, width: int, height: int) -> np.ndarray:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = color
    return img


def make_asset(asset_id: str, embedding: List[float] | None = None,
               status: ProcessingStatus = ProcessingStatus.completed, **analysis) -> Asset:
    return Asset(
        id=asset_id,
        file_name=f"{asset_id}.png",
        status=status,
        embedding=embedding,
        analysis=SemanticAnalysis(**analysis) if analysis else None,
    )


@pytest.fixture
def repo(tmp_path) -> AssetRepository:
    return AssetRepository(f"sqlite:///{tmp_path / 'assets.db'}")
