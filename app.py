# app.py

import asyncio
import io
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)
from telegram.request import HTTPXRequest

from config import Settings
from domain.dtos import Asset
from domain.enums import ProcessingStatus
from domain.errors import RasterUnavailable
from services.asset_filter import filter_assets
from services.asset_repository import AssetRepository
from services.clusterer import CosineKMeans
from services.color_analyzer import ColorAnalyzer
from services.ingestion import IngestionPipeline
from services.semantic import HashingEmbedder, HintsDescriber, parse_caption
from services.similarity import SimilarAssetFinder
from services.transcoder import ImageTranscoder
from services.trends import TrendReporter

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("app")


def format_meta(asset: Asset) -> str:
    meta = asset.computed_meta
    if meta is None:
        return "No visual metadata."
    colors = ", ".join(f"{c.hex} {c.percentage}%" for c in asset.palette) or "-"
    return (
        f"{meta.width}x{meta.height} ({meta.aspect_ratio.value})\n"
        f"Colors: {colors}\n"
        f"Brightness: {meta.brightness}/255, contrast: {meta.contrast}/100"
    )


class BotApp:
    """Composition root. Wires services and Telegram handlers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.repo = AssetRepository(settings.db_url)
        self.pipeline = IngestionPipeline(
            repo=self.repo,
            colors=ColorAnalyzer(max_side=settings.sample_max_side, stride=settings.sample_stride),
            transcoder=ImageTranscoder(settings.transcode_max_width, settings.transcode_quality),
            describer=HintsDescriber(),
            embedder=HashingEmbedder(settings.embedding_dim),
        )
        self.finder = SimilarAssetFinder(self.repo, top_k=settings.similar_top_k)
        self.trends = TrendReporter(CosineKMeans(settings.cluster_max_iterations, settings.cluster_seed))
        self.pool = ThreadPoolExecutor(max_workers=min(4, os.cpu_count() or 2))

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_html(
            "<b>Creative library</b>. Send an ad creative as a photo; the caption may carry\n"
            "<code>genre: slg</code>, <code>hook: fail run</code>, <code>tags: a, b</code> lines.\n\n"
            "Commands: /help, /stats, /trends [k], /search &lt;text&gt;"
        )

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.message.reply_text(
            "Send a photo (jpg/png). I reply with its size, palette, brightness and contrast,\n"
            "then the most similar creatives already in the library.\n"
            "/trends [k] groups the library into k clusters; /search <text> looks up titles and tags."
        )

    async def stats(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        counts = self.repo.count_by_status()
        formatted = "\n".join(f"{status}: {n}" for status, n in counts.items()) or "empty"
        await update.message.reply_text(f"Assets:\n{formatted}")

    async def trends_cmd(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        k = self.settings.trend_clusters
        if context.args:
            try:
                k = int(context.args[0])
            except ValueError:
                await update.message.reply_text("Usage: /trends [k]")
                return
        assets = self.repo.completed()
        summaries = await asyncio.get_running_loop().run_in_executor(
            self.pool, self.trends.report, assets, k
        )
        if not summaries:
            await update.message.reply_text(f"Not enough embedded assets for {k} clusters.")
            return
        lines: List[str] = []
        for i, s in enumerate(summaries, start=1):
            genre = s.top_genre.value if s.top_genre else "-"
            hook = s.top_hook.value if s.top_hook else "-"
            title = s.representative.analysis.title if s.representative.analysis else s.representative.file_name
            lines.append(f"{i}. {s.size} assets, genre={genre}, hook={hook}, e.g. {title}")
            if s.top_tags:
                lines.append(f"   tags: {', '.join(s.top_tags)}")
        await update.message.reply_text("\n".join(lines))

    async def search(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = " ".join(context.args or [])
        if not query:
            await update.message.reply_text("Usage: /search <text>")
            return
        found = filter_assets(self.repo.completed(), search=query)
        if not found:
            await update.message.reply_text("Nothing found.")
            return
        lines = [f"{a.analysis.title} ({a.analysis.genre.value}, {a.analysis.hook_type.value})" for a in found[:10]]
        await update.message.reply_text(f"{len(found)} found:\n" + "\n".join(lines))

    async def on_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.message
        if not message or not message.photo:
            return
        photo = message.photo[-1]
        file = await context.bot.get_file(photo.file_id)

        bio = io.BytesIO()
        await file.download_to_memory(out=bio)
        img_bytes = bio.getvalue()
        hints = parse_caption(message.caption)

        # CPU-bound; keep it off the event loop
        try:
            asset = await asyncio.get_running_loop().run_in_executor(
                self.pool, self.pipeline.ingest, f"{photo.file_unique_id}.jpg", img_bytes, hints, photo.file_id
            )
        except RasterUnavailable:
            log.exception("Raster backend unavailable")
            await message.reply_text("Image backend unavailable, try again later.")
            return

        if asset.status != ProcessingStatus.completed:
            await message.reply_text("Could not process this image.")
            return
        await message.reply_text(format_meta(asset))

        similar = self.finder.similar_to(asset)
        if not similar:
            await message.reply_text("No similar creatives yet.")
            return
        lines = []
        for r in similar:
            title = r.asset.analysis.title if r.asset.analysis else r.asset.file_name
            lines.append(f"{r.score:.2f}  {title}")
        await message.reply_text("Similar:\n" + "\n".join(lines))
        best = similar[0].asset
        if best.source:
            await message.reply_photo(photo=best.source)

    def build_application(self) -> Application:
        request = HTTPXRequest(
            connect_timeout=20.0,
            read_timeout=40.0,
            write_timeout=20.0,
            pool_timeout=10.0,
            connection_pool_size=8,
        )

        app = (
            Application.builder()
            .token(self.settings.bot_token)
            .request(request)
            .concurrent_updates(True)
            .build()
        )
        app.add_handler(CommandHandler("start", self.start))
        app.add_handler(CommandHandler("help", self.help))
        app.add_handler(CommandHandler("stats", self.stats))
        app.add_handler(CommandHandler("trends", self.trends_cmd))
        app.add_handler(CommandHandler("search", self.search))
        app.add_handler(MessageHandler(filters.PHOTO, self.on_photo))
        return app


def main() -> None:
    settings = Settings()
    if not settings.bot_token:
        raise SystemExit("BOT_TOKEN is not set")
    bot = BotApp(settings)
    app = bot.build_application()
    log.info("Bot started")
    app.run_polling(close_loop=False)


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
