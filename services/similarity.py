from __future__ import annotations
from typing import List, Optional, Sequence

import numpy as np

from domain.dtos import Asset, SimilarityResult
from domain.enums import ProcessingStatus
from services.asset_repository import AssetRepository

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Vectors of different length, and zero vectors, have similarity 0.
    """
    if len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = float(np.dot(va, va))
    norm_b = float(np.dot(vb, vb))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb)) / (np.sqrt(norm_a) * np.sqrt(norm_b))

def find_similar(target: Asset, candidates: Sequence[Asset], top_k: int = 4) -> List[SimilarityResult]:
    if not target.embedding:
        return []
    scored = [
        SimilarityResult(asset=c, score=cosine_similarity(target.embedding, c.embedding))
        for c in candidates
        if c is not target
        and c.id != target.id
        and c.embedding
        and c.status == ProcessingStatus.completed
    ]
    # sorted() is stable: equal scores keep candidate order
    scored = sorted(scored, key=lambda r: r.score, reverse=True)
    return scored[: max(0, top_k)]

class SimilarAssetFinder:
    """Looks up similar creatives in a repository."""

    def __init__(self, repo: AssetRepository, top_k: int = 4) -> None:
        self.repo = repo
        self.top_k = top_k

    def similar_to(self, target: Asset, top_k: Optional[int] = None) -> List[SimilarityResult]:
        candidates = self.repo.completed()
        return find_similar(target, candidates, self.top_k if top_k is None else top_k)
