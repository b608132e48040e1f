# scripts/ingest_creatives.py

from __future__ import annotations

import logging
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Settings
from services.asset_repository import AssetRepository
from services.color_analyzer import ColorAnalyzer
from services.ingestion import IngestionPipeline
from services.semantic import HashingEmbedder, HintsDescriber, load_sidecar
from services.transcoder import ImageTranscoder

SUPPORTED_EXTS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp")

log = logging.getLogger("ingest")


def ingest_folder(base: Path, settings: Settings) -> int:
    repo = AssetRepository(settings.db_url)
    pipeline = IngestionPipeline(
        repo=repo,
        colors=ColorAnalyzer(max_side=settings.sample_max_side, stride=settings.sample_stride),
        transcoder=ImageTranscoder(settings.transcode_max_width, settings.transcode_quality),
        describer=HintsDescriber(),
        embedder=HashingEmbedder(settings.embedding_dim),
    )

    count = 0
    for file in sorted(base.rglob("*")):
        if not file.is_file() or file.suffix.lower() not in SUPPORTED_EXTS:
            continue
        # <stem>.json next to the image holds title/project/genre/hook/tags and friends
        try:
            hints = load_sidecar(file)
        except ValueError as exc:
            log.warning("%s", exc)
            hints = {}
        asset = pipeline.ingest(file.name, file.read_bytes(), hints, source=str(file))
        log.info("%s -> %s", file.name, asset.status.value)
        count += 1

    for status, n in repo.count_by_status().items():
        print(f"{status}: {n}")
    return count


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = Settings()
    folder = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(settings.creatives_dir)
    n = ingest_folder(folder, settings)
    print(f"Ingested {n} files.")
