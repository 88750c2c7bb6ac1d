"""
Background loops
- activity sweep: every second, post aired episodes through the stored webhooks
- random stats: every day, refresh the last AniList page numbers used by /anilist_user random
- ping history: every 10 minutes, record the gateway latency per shard
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import math

import aiohttp
import discord
from discord.ext import commands, tasks

from kasukibot.core.activity import WEBHOOK_NAME_LIMIT
from kasukibot.core.errors import SendingError
from kasukibot.core.models import PingHistory, ScheduledActivity
from kasukibot.core.random_stats import update_random_stats
from kasukibot.core.utility import now_ts
from kasukibot.utils.anilist_embeds import activity_embed

logger = logging.getLogger(__name__)


def decode_avatar(image_b64: str) -> bytes | None:
    if not image_b64:
        return None
    try:
        return base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Stored activity image is not valid base64, skipping avatar")
        return None


class Background(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.last_swept: int | None = None
        self._tasks: set[asyncio.Task] = set()

        self.activity_loop.start()
        self.random_stats_loop.start()
        self.ping_loop.start()

    def cog_unload(self):
        self.activity_loop.cancel()
        self.random_stats_loop.cancel()
        self.ping_loop.cancel()
        for task in self._tasks:
            task.cancel()

    # -------------------------
    # Activities
    # -------------------------
    async def send_activity(self, activity: ScheduledActivity):
        try:
            webhook = discord.Webhook.from_url(activity.webhook, session=self.bot.web.session)
            await webhook.edit(
                name=activity.name[:WEBHOOK_NAME_LIMIT] or "Kasuki",
                avatar=decode_avatar(activity.image),
            )
            await webhook.send(embed=activity_embed(activity))
        except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            raise SendingError(f"Webhook delivery failed: {e}") from e

    @tasks.loop(seconds=1)
    async def activity_loop(self):
        now = now_ts()
        start = now if self.last_swept is None else self.last_swept + 1
        # visit every second since the last tick so a slow tick skips nothing
        for ts in range(start, now + 1):
            try:
                spawned = await self.bot.activities.sweep(ts, self.send_activity)
            except Exception:
                logger.exception("Activity sweep failed at %s", ts)
                continue
            for task in spawned:
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        self.last_swept = max(now, self.last_swept or now)

    @activity_loop.before_loop
    async def before_activity_loop(self):
        await self.bot.wait_until_ready()
        logger.info("Activity loop started")

    # -------------------------
    # Random stats
    # -------------------------
    @tasks.loop(hours=24)
    async def random_stats_loop(self):
        try:
            self.bot.random_stats = await update_random_stats(self.bot.anilist, self.bot.random_stats_path)
        except Exception:
            logger.exception("Random stats update failed")

    @random_stats_loop.before_loop
    async def before_random_stats_loop(self):
        await self.bot.wait_until_ready()
        logger.info("Random stats loop started")

    # -------------------------
    # Ping history
    # -------------------------
    @tasks.loop(seconds=600)
    async def ping_loop(self):
        now = now_ts()
        # only AutoShardedBot exposes per-shard latencies
        latencies = getattr(self.bot, "latencies", None) or [(0, self.bot.latency)]
        for shard_id, latency in latencies:
            if not math.isfinite(latency):
                continue
            try:
                await self.bot.data.add_ping_history(
                    PingHistory(shard_id=str(shard_id or 0), timestamp=now, ping=str(int(latency * 1000)))
                )
            except Exception:
                logger.exception("Could not record ping for shard %s", shard_id)

    @ping_loop.before_loop
    async def before_ping_loop(self):
        await self.bot.wait_until_ready()
        logger.info("Ping loop started")


async def setup(bot: commands.Bot):
    await bot.add_cog(Background(bot))
