from __future__ import annotations
import logging
import uuid
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from domain.dtos import Asset
from domain.enums import ProcessingStatus
from domain.errors import DecodeError, RasterUnavailable
from services.asset_repository import AssetRepository
from services.color_analyzer import ColorAnalyzer
from services.semantic import IDescriber, IEmbedder
from services.transcoder import ImageTranscoder

log = logging.getLogger(__name__)

class IngestionPipeline:
    """Turns uploaded bytes into a stored asset: visual meta, analysis, embedding."""

    def __init__(
        self,
        repo: AssetRepository,
        colors: ColorAnalyzer,
        transcoder: ImageTranscoder,
        describer: IDescriber,
        embedder: IEmbedder,
    ) -> None:
        self.repo = repo
        self.colors = colors
        self.transcoder = transcoder
        self.describer = describer
        self.embedder = embedder

    def ingest(
        self,
        file_name: str,
        data: bytes,
        hints: Optional[Mapping[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Asset:
        existing = self.repo.find_completed_by_name(file_name)
        if existing is not None:
            log.info("%s already ingested as %s", file_name, existing.id)
            return existing

        asset = Asset(id=uuid.uuid4().hex, file_name=file_name,
                      status=ProcessingStatus.processing, source=source)
        self.repo.add(asset)
        try:
            features = self.colors.analyze_bytes(data)
            asset.computed_meta = features.meta
            asset.palette = features.palette
            self.repo.update(asset)  # meta is visible before analysis finishes

            encoded = self.transcoder.compress(data)
            hints = dict(hints or {})
            hints.setdefault("title", file_name.rsplit(".", 1)[0])
            asset.analysis = self.describer.describe(encoded, hints)
        except RasterUnavailable:
            asset.status = ProcessingStatus.failed
            self.repo.update(asset)
            raise
        except DecodeError as exc:
            log.warning("Could not decode %s: %s", file_name, exc)
            asset.status = ProcessingStatus.failed
            self.repo.update(asset)
            return asset
        except Exception:
            log.exception("Analysis failed for %s", file_name)
            asset.status = ProcessingStatus.failed
            self.repo.update(asset)
            return asset

        asset.status = ProcessingStatus.completed
        asset.embedding = self._embed(asset)
        self.repo.update(asset)
        return asset

    def ingest_many(self, items: Iterable[Tuple[str, bytes, Optional[Mapping[str, Any]]]]) -> List[Asset]:
        return [self.ingest(name, data, hints) for name, data, hints in items]

    def _embed(self, asset: Asset) -> Optional[List[float]]:
        try:
            vector = self.embedder.embed(asset.analysis.embedding_text())
            if vector is None or len(vector) == 0:
                return None
            return [float(v) for v in vector]
        except Exception:
            log.exception("Embedding failed for %s", asset.file_name)
            return None
