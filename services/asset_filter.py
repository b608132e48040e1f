from __future__ import annotations
from collections import Counter
from typing import Collection, Dict, List, Sequence

from domain.dtos import Asset
from domain.enums import GameGenre, HookType, VisualStyle

def filter_assets(
    assets: Sequence[Asset],
    search: str = "",
    genres: Collection[GameGenre] = (),
    hooks: Collection[HookType] = (),
    styles: Collection[VisualStyle] = (),
) -> List[Asset]:
    """Library search: text over title and tags, then facet filters.

    Assets without an analysis never match.
    """
    needle = search.strip().lower()
    out = []
    for asset in assets:
        a = asset.analysis
        if a is None:
            continue
        if needle and needle not in a.title.lower() and not any(needle in t.lower() for t in a.tags):
            continue
        if genres and a.genre not in genres:
            continue
        if hooks and a.hook_type not in hooks:
            continue
        if styles and a.style not in styles:
            continue
        out.append(asset)
    return out

def facet_counts(assets: Sequence[Asset]) -> Dict[str, Counter]:
    analysed = [a.analysis for a in assets if a.analysis is not None]
    return {
        "genre": Counter(a.genre for a in analysed),
        "hook": Counter(a.hook_type for a in analysed),
        "style": Counter(a.style for a in analysed),
    }
