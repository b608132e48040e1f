from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import Column, DateTime, String, Text, delete, select, create_engine
from sqlalchemy.orm import declarative_base, Session

from domain.analysis import SemanticAnalysis
from domain.dtos import Asset, ColorData, ComputedMeta
from domain.enums import AspectRatio, PerformanceLevel, ProcessingStatus

log = logging.getLogger(__name__)

Base = declarative_base()

class AssetRow(Base):
    __tablename__ = 'assets'
    id = Column(String, primary_key=True)
    file_name = Column(String, index=True)
    status = Column(String, index=True)
    upload_date = Column(DateTime(timezone=True))
    source = Column(String, nullable=True)
    meta_json = Column(Text, nullable=True)
    palette_json = Column(Text, nullable=True)
    analysis_json = Column(Text, nullable=True)
    embedding_json = Column(Text, nullable=True)
    performance_level = Column(String, default=PerformanceLevel.unrated.value)

class AssetRepository:
    """The asset library. Only the ingestion pipeline writes to it."""

    def __init__(self, db_url: str) -> None:
        self.engine = create_engine(db_url, future=True)
        Base.metadata.create_all(self.engine)

    def add(self, asset: Asset) -> bool:
        """Insert or replace *asset*; skip a new asset duplicating a completed file name."""
        with Session(self.engine) as s:
            if s.get(AssetRow, asset.id) is None:
                dup = s.scalars(select(AssetRow).where(
                    AssetRow.file_name == asset.file_name,
                    AssetRow.status == ProcessingStatus.completed.value,
                )).first()
                if dup is not None:
                    log.info("Skipping %s: already stored as %s", asset.file_name, dup.id)
                    return False
            s.merge(self._to_row(asset))
            s.commit()
            return True

    def update(self, asset: Asset) -> None:
        with Session(self.engine) as s:
            s.merge(self._to_row(asset))
            s.commit()

    def get(self, asset_id: str) -> Optional[Asset]:
        with Session(self.engine) as s:
            row = s.get(AssetRow, asset_id)
            return self._from_row(row) if row is not None else None

    def delete(self, asset_id: str) -> bool:
        with Session(self.engine) as s:
            result = s.execute(delete(AssetRow).where(AssetRow.id == asset_id))
            s.commit()
            return result.rowcount > 0

    def update_project(self, asset_id: str, project: str) -> Optional[Asset]:
        """Re-tag the game project of an analysed asset; unanalysed assets are left alone."""
        with Session(self.engine) as s:
            row = s.get(AssetRow, asset_id)
            if row is None or not row.analysis_json:
                return None
            data = json.loads(row.analysis_json)
            data['project'] = project
            row.analysis_json = SemanticAnalysis.model_validate(data).model_dump_json()
            s.commit()
            return self._from_row(row)

    def update_performance(self, asset_id: str, level: PerformanceLevel) -> Optional[Asset]:
        with Session(self.engine) as s:
            row = s.get(AssetRow, asset_id)
            if row is None:
                return None
            row.performance_level = PerformanceLevel.coerce(level).value
            s.commit()
            return self._from_row(row)

    def all(self) -> List[Asset]:
        with Session(self.engine) as s:
            rows = s.scalars(select(AssetRow).order_by(AssetRow.upload_date.desc())).all()
            return [self._from_row(r) for r in rows]

    def completed(self) -> List[Asset]:
        with Session(self.engine) as s:
            rows = s.scalars(select(AssetRow)
                             .where(AssetRow.status == ProcessingStatus.completed.value)
                             .order_by(AssetRow.upload_date.desc())).all()
            return [self._from_row(r) for r in rows]

    def find_completed_by_name(self, file_name: str) -> Optional[Asset]:
        with Session(self.engine) as s:
            row = s.scalars(select(AssetRow).where(
                AssetRow.file_name == file_name,
                AssetRow.status == ProcessingStatus.completed.value,
            )).first()
            return self._from_row(row) if row is not None else None

    def count_by_status(self) -> Dict[str, int]:
        with Session(self.engine) as s:
            out: Dict[str, int] = {}
            for status in [st.value for st in ProcessingStatus]:
                rows = s.scalars(select(AssetRow.id).where(AssetRow.status == status)).all()
                out[status] = len(rows)
            return out

    @staticmethod
    def _to_row(asset: Asset) -> AssetRow:
        meta = asset.computed_meta
        return AssetRow(
            id=asset.id,
            file_name=asset.file_name,
            status=asset.status.value,
            upload_date=asset.upload_date,
            source=asset.source,
            meta_json=json.dumps({
                'width': meta.width, 'height': meta.height,
                'aspect_ratio': meta.aspect_ratio.value,
                'dominant_colors': list(meta.dominant_colors),
                'brightness': meta.brightness, 'contrast': meta.contrast,
            }) if meta is not None else None,
            palette_json=json.dumps([{
                'hex': c.hex, 'percentage': c.percentage, 'is_warm': c.is_warm
            } for c in asset.palette]),
            analysis_json=asset.analysis.model_dump_json() if asset.analysis is not None else None,
            embedding_json=json.dumps(asset.embedding) if asset.embedding is not None else None,
            performance_level=asset.performance_level.value,
        )

    @staticmethod
    def _from_row(row: AssetRow) -> Asset:
        meta = None
        if row.meta_json:
            m = json.loads(row.meta_json)
            meta = ComputedMeta(
                width=m['width'], height=m['height'],
                aspect_ratio=AspectRatio(m['aspect_ratio']),
                dominant_colors=list(m['dominant_colors']),
                brightness=m['brightness'], contrast=m['contrast'],
            )
        palette = [ColorData(hex=c['hex'], percentage=c['percentage'], is_warm=c['is_warm'])
                   for c in json.loads(row.palette_json or '[]')]
        upload_date = row.upload_date
        if upload_date is not None and upload_date.tzinfo is None:
            # sqlite drops tzinfo
            upload_date = upload_date.replace(tzinfo=timezone.utc)
        return Asset(
            id=row.id,
            file_name=row.file_name,
            status=ProcessingStatus(row.status),
            upload_date=upload_date or datetime.now(timezone.utc),
            source=row.source,
            computed_meta=meta,
            palette=palette,
            analysis=SemanticAnalysis.model_validate_json(row.analysis_json) if row.analysis_json else None,
            embedding=[float(v) for v in json.loads(row.embedding_json)] if row.embedding_json else None,
            performance_level=PerformanceLevel.coerce(row.performance_level),
        )
