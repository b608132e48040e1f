from __future__ import annotations
import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from domain.analysis import SemanticAnalysis
from domain.enums import AspectRatio, PerformanceLevel, ProcessingStatus

@dataclass(frozen=True)
class ColorData:
    hex: str  # "#rrggbb"
    percentage: int  # 0-100, share of sampled pixels
    is_warm: bool

@dataclass(frozen=True)
class ComputedMeta:
    width: int
    height: int
    aspect_ratio: AspectRatio
    dominant_colors: List[str]  # hex, most dominant first
    brightness: int  # 0-255
    contrast: int  # 0-100

@dataclass(frozen=True)
class VisualFeatures:
    meta: ComputedMeta
    palette: List[ColorData]

@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    media_type: str
    width: int
    height: int

    def as_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

@dataclass
class Asset:
    id: str
    file_name: str
    status: ProcessingStatus = ProcessingStatus.pending
    upload_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: Optional[str] = None  # file path or remote file id of the original
    computed_meta: Optional[ComputedMeta] = None
    palette: List[ColorData] = field(default_factory=list)
    analysis: Optional[SemanticAnalysis] = None
    embedding: Optional[List[float]] = None
    performance_level: PerformanceLevel = PerformanceLevel.unrated

@dataclass
class SimilarityResult:
    asset: Asset
    score: float

@dataclass
class Cluster:
    centroid: List[float]
    assets: List[Asset]
