# scripts/report_trends.py

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Settings
from domain.enums import GameGenre, HookType
from services.asset_filter import filter_assets
from services.asset_repository import AssetRepository
from services.clusterer import CosineKMeans
from services.trends import TrendReporter, game_profiles, genre_counts, hook_counts


def main() -> None:
    settings = Settings()
    parser = argparse.ArgumentParser(description="Cluster the creative library and print trends.")
    parser.add_argument("-k", type=int, default=settings.trend_clusters, help="number of clusters")
    parser.add_argument("--seed", type=int, default=settings.cluster_seed, help="seed for centroid init")
    parser.add_argument("--search", default="", help="only report assets whose title or tags match")
    parser.add_argument("--genre", action="append", default=[], help="genre filter, repeatable")
    parser.add_argument("--hook", action="append", default=[], help="hook filter, repeatable")
    args = parser.parse_args()

    repo = AssetRepository(settings.db_url)
    assets = repo.completed()
    if args.search or args.genre or args.hook:
        assets = filter_assets(
            assets,
            search=args.search,
            genres={GameGenre.coerce(g) for g in args.genre},
            hooks={HookType.coerce(h) for h in args.hook},
        )
        for asset in assets:
            print(f"  match {asset.analysis.title} ({asset.file_name})")
    print(f"{len(assets)} completed assets")
    for hook, n in hook_counts(assets):
        print(f"  hook {hook.value}: {n}")
    for genre, n in genre_counts(assets):
        print(f"  genre {genre.value}: {n}")
    for p in game_profiles(assets):
        hooks = ", ".join(h.value for h, _ in p.top_hooks)
        print(f"  project {p.project}: {p.count} assets, hook strength {p.avg_hook_strength}, hooks {hooks}")

    reporter = TrendReporter(CosineKMeans(settings.cluster_max_iterations, args.seed))
    summaries = reporter.report(assets, args.k)
    if not summaries:
        print(f"Not enough embedded assets for k={args.k}.")
        return
    for i, s in enumerate(summaries, start=1):
        rep = s.representative
        title = rep.analysis.title if rep.analysis else rep.file_name
        print(f"cluster {i}: {s.size} assets, representative={title}")
        print(f"  genre={s.top_genre.value if s.top_genre else '-'} hook={s.top_hook.value if s.top_hook else '-'}")
        if s.top_tags:
            print(f"  tags: {', '.join(s.top_tags)}")
        if s.mean_brightness is not None:
            print(f"  brightness={s.mean_brightness:.0f} warm_share={s.warm_share or 0:.0%}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    main()
