import numpy as np
import pytest

from conftest import encode_rgb, solid_rgb
from domain.enums import AspectRatio, GameGenre, ProcessingStatus
from domain.errors import RasterUnavailable
from services.color_analyzer import ColorAnalyzer
from services.ingestion import IngestionPipeline
from services.semantic import HashingEmbedder, HintsDescriber
from services.similarity import find_similar
from services.transcoder import ImageTranscoder


class RecordingDescriber(HintsDescriber):
    def __init__(self):
        self.seen = []

    def describe(self, image, hints):
        self.seen.append(image)
        return super().describe(image, hints)


class FailingDescriber:
    def describe(self, image, hints):
        raise RuntimeError("model unavailable")


class FailingEmbedder:
    def embed(self, text):
        raise RuntimeError("quota exceeded")


class ArrayEmbedder:
    def __init__(self, vector):
        self.vector = vector

    def embed(self, text):
        return self.vector


class BrokenTranscoder:
    def compress(self, data):
        raise RasterUnavailable("no encoder")


def make_pipeline(repo, describer=None, embedder=None, transcoder=None):
    return IngestionPipeline(
        repo=repo,
        colors=ColorAnalyzer(),
        transcoder=transcoder or ImageTranscoder(max_width=256),
        describer=describer or HintsDescriber(),
        embedder=embedder or HashingEmbedder(64),
    )


def test_ingest_completes_and_persists(repo):
    describer = RecordingDescriber()
    pipeline = make_pipeline(repo, describer=describer)
    data = encode_rgb(solid_rgb((250, 120, 0), 1080, 1920))
    asset = pipeline.ingest("orange.png", data, {"genre": "Puzzle", "tags": "match3, orange"}, source="x/orange.png")

    assert asset.status == ProcessingStatus.completed
    assert asset.computed_meta.aspect_ratio == AspectRatio.portrait_9_16
    assert asset.computed_meta.dominant_colors == ["#fa7800"]
    assert asset.analysis.title == "orange"
    assert asset.analysis.genre == GameGenre.puzzle
    assert len(asset.embedding) == 64

    # the describer only ever sees the bounded re-encode
    assert describer.seen[0].width == 256
    assert describer.seen[0].media_type == "image/jpeg"

    stored = repo.get(asset.id)
    assert stored.status == ProcessingStatus.completed
    assert stored.embedding == pytest.approx(asset.embedding)


def test_bad_image_fails_without_blocking_batch(repo):
    pipeline = make_pipeline(repo)
    good = encode_rgb(solid_rgb((0, 0, 200), 64, 64))
    results = pipeline.ingest_many([
        ("broken.png", b"garbage", None),
        ("blue.png", good, {"tags": "blue"}),
    ])
    assert [a.status for a in results] == [ProcessingStatus.failed, ProcessingStatus.completed]
    assert repo.get(results[0].id).status == ProcessingStatus.failed
    assert repo.count_by_status()["completed"] == 1


def test_describer_failure_marks_failed_but_keeps_meta(repo):
    asset = make_pipeline(repo, describer=FailingDescriber()).ingest(
        "a.png", encode_rgb(solid_rgb((9, 9, 9), 10, 10)))
    assert asset.status == ProcessingStatus.failed
    stored = repo.get(asset.id)
    assert stored.computed_meta is not None
    assert stored.analysis is None


def test_embedding_failure_leaves_asset_completed(repo):
    asset = make_pipeline(repo, embedder=FailingEmbedder()).ingest(
        "a.png", encode_rgb(solid_rgb((9, 9, 9), 10, 10)))
    assert asset.status == ProcessingStatus.completed
    assert asset.embedding is None


def test_raster_failure_propagates(repo):
    pipeline = make_pipeline(repo, transcoder=BrokenTranscoder())
    with pytest.raises(RasterUnavailable):
        pipeline.ingest("a.png", encode_rgb(solid_rgb((9, 9, 9), 10, 10)))
    assert repo.count_by_status()["failed"] == 1


def test_reingest_returns_existing(repo):
    pipeline = make_pipeline(repo)
    data = encode_rgb(solid_rgb((1, 200, 1), 20, 20))
    first = pipeline.ingest("g.png", data)
    second = pipeline.ingest("g.png", data)
    assert second.id == first.id
    assert len(repo.all()) == 1


def test_ingested_assets_are_searchable(repo):
    pipeline = make_pipeline(repo)
    img = encode_rgb(solid_rgb((50, 50, 50), 32, 32))
    castle = pipeline.ingest("castle.png", img, {"title": "castle siege war", "genre": "slg"})
    pipeline.ingest("castle2.png", img, {"title": "castle siege battle", "genre": "slg"})
    pipeline.ingest("candy.png", img, {"title": "candy match puzzle", "genre": "puzzle"})
    results = find_similar(castle, repo.completed(), top_k=2)
    assert results[0].asset.file_name == "castle2.png"


def test_array_embeddings_are_stored_as_floats(repo):
    vector = np.ones(8, dtype=np.float32)
    asset = make_pipeline(repo, embedder=ArrayEmbedder(vector)).ingest(
        "a.png", encode_rgb(solid_rgb((9, 9, 9), 10, 10)))
    assert asset.status == ProcessingStatus.completed
    assert asset.embedding == [1.0] * 8
    assert all(type(v) is float for v in asset.embedding)
    assert repo.get(asset.id).embedding == [1.0] * 8


def test_empty_array_embedding_means_none(repo):
    asset = make_pipeline(repo, embedder=ArrayEmbedder(np.zeros(0))).ingest(
        "a.png", encode_rgb(solid_rgb((9, 9, 9), 10, 10)))
    assert asset.status == ProcessingStatus.completed
    assert asset.embedding is None
    assert repo.get(asset.id).embedding is None
