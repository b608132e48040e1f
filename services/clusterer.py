from __future__ import annotations
import logging
from typing import List, Sequence

import numpy as np
from sklearn.utils import check_random_state

from domain.dtos import Asset, Cluster
from services.similarity import cosine_similarity

log = logging.getLogger(__name__)

class CosineKMeans:
    """K-means that assigns each embedding to its most cosine-similar centroid.

    ``random_state`` follows the scikit-learn convention: None, an int seed
    or a ``RandomState``; it only drives the initial centroid draw.
    """

    def __init__(self, max_iterations: int = 20, random_state=None) -> None:
        self.max_iterations = max_iterations
        self.random_state = random_state

    def cluster(self, assets: Sequence[Asset], k: int) -> List[Cluster]:
        valid = [a for a in assets if a.embedding]
        if valid:
            # centroid means need one shared dimensionality
            dim = len(valid[0].embedding)
            skipped = sum(1 for a in valid if len(a.embedding) != dim)
            if skipped:
                log.warning("Skipping %d embeddings whose size differs from %d", skipped, dim)
                valid = [a for a in valid if len(a.embedding) == dim]
        if k <= 0 or len(valid) < k:
            return []

        vectors = [np.array(a.embedding, dtype=float) for a in valid]
        rng = check_random_state(self.random_state)
        order = rng.permutation(len(valid))
        centroids = [vectors[i].copy() for i in order[:k]]

        assignments = [-1] * len(valid)
        for _ in range(self.max_iterations):
            changed = False
            for idx, vec in enumerate(vectors):
                best = self._nearest(vec, centroids)
                if best != assignments[idx]:
                    assignments[idx] = best
                    changed = True
            if not changed:
                break
            for c_idx in range(k):
                members = [vectors[i] for i, a in enumerate(assignments) if a == c_idx]
                # an empty cluster keeps its previous centroid
                if members:
                    centroids[c_idx] = np.mean(members, axis=0)
        else:
            log.debug("CosineKMeans stopped at iteration cap %d", self.max_iterations)

        clusters = []
        for c_idx, centroid in enumerate(centroids):
            members = [valid[i] for i, a in enumerate(assignments) if a == c_idx]
            if members:
                clusters.append(Cluster(centroid=centroid.tolist(), assets=members))
        return clusters

    @staticmethod
    def _nearest(vec: np.ndarray, centroids: List[np.ndarray]) -> int:
        best, best_sim = 0, -np.inf
        for c_idx, centroid in enumerate(centroids):
            sim = cosine_similarity(vec, centroid)
            # strict > keeps the first centroid on ties
            if sim > best_sim:
                best, best_sim = c_idx, sim
        return best
