from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from domain.dtos import Asset, Cluster
from domain.enums import GameGenre, HookType, ProcessingStatus, VisualStyle
from services.image_utils import round_half_up
from services.clusterer import CosineKMeans
from services.similarity import cosine_similarity

@dataclass
class ClusterSummary:
    size: int
    representative: Asset
    top_genre: Optional[GameGenre] = None
    top_hook: Optional[HookType] = None
    top_tags: List[str] = field(default_factory=list)
    mean_brightness: Optional[float] = None
    warm_share: Optional[float] = None  # share of palette entries that are warm

class TrendReporter:
    def __init__(self, clusterer: CosineKMeans) -> None:
        self.clusterer = clusterer

    def clusters(self, assets: Sequence[Asset], k: int) -> List[Cluster]:
        return self.clusterer.cluster(assets, k)

    def report(self, assets: Sequence[Asset], k: int) -> List[ClusterSummary]:
        summaries = [self.summarize(c) for c in self.clusters(assets, k)]
        summaries.sort(key=lambda s: s.size, reverse=True)
        return summaries

    @staticmethod
    def summarize(cluster: Cluster, top_tags: int = 5) -> ClusterSummary:
        members = cluster.assets
        representative = max(members, key=lambda a: cosine_similarity(a.embedding or [], cluster.centroid))
        analysed = [a.analysis for a in members if a.analysis is not None]
        genres = Counter(a.genre for a in analysed)
        hooks = Counter(a.hook_type for a in analysed)
        tags = Counter(t for a in analysed for t in a.tags)
        metas = [a.computed_meta for a in members if a.computed_meta is not None]
        palette = [c for a in members for c in a.palette]
        return ClusterSummary(
            size=len(members),
            representative=representative,
            top_genre=genres.most_common(1)[0][0] if genres else None,
            top_hook=hooks.most_common(1)[0][0] if hooks else None,
            top_tags=[t for t, _ in tags.most_common(top_tags)],
            mean_brightness=sum(m.brightness for m in metas) / len(metas) if metas else None,
            warm_share=sum(1 for c in palette if c.is_warm) / len(palette) if palette else None,
        )

def hook_counts(assets: Sequence[Asset]) -> List[Tuple[HookType, int]]:
    c = Counter(a.analysis.hook_type for a in assets if a.analysis is not None)
    return c.most_common()

def genre_counts(assets: Sequence[Asset]) -> List[Tuple[GameGenre, int]]:
    c = Counter(a.analysis.genre for a in assets if a.analysis is not None)
    return c.most_common()

@dataclass
class GameProfile:
    project: str
    count: int = 0
    avg_hook_strength: int = 0
    top_hooks: List[Tuple[HookType, int]] = field(default_factory=list)
    top_styles: List[Tuple[VisualStyle, int]] = field(default_factory=list)

def game_profiles(assets: Sequence[Asset], top_n: int = 3) -> List[GameProfile]:
    """Per-project volume, mean hook strength and most used hooks/styles.

    Only completed, analysed assets count. Largest projects first.
    """
    by_project: dict = {}
    for asset in assets:
        if asset.analysis is None or asset.status != ProcessingStatus.completed:
            continue
        by_project.setdefault(asset.analysis.project, []).append(asset.analysis)
    profiles = []
    for project, analyses in by_project.items():
        profiles.append(GameProfile(
            project=project,
            count=len(analyses),
            avg_hook_strength=round_half_up(sum(a.hook_strength for a in analyses) / len(analyses)),
            top_hooks=Counter(a.hook_type for a in analyses).most_common(top_n),
            top_styles=Counter(a.style for a in analyses).most_common(top_n),
        ))
    # stable: equal counts keep first-seen project order
    profiles.sort(key=lambda p: p.count, reverse=True)
    return profiles
