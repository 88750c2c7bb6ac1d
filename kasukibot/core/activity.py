"""
Airing-episode activities: building new rows and rolling them over after they fire.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable

from kasukibot.core.dispatch import DataDispatcher
from kasukibot.core.errors import KasukiError, OptionError
from kasukibot.core.models import ScheduledActivity
from kasukibot.core.utility import media_name, trim_plain

logger = logging.getLogger(__name__)

NAME_LIMIT = 50
WEBHOOK_NAME_LIMIT = 100

Sender = Callable[[ScheduledActivity], Awaitable[None]]


def next_airing(media: dict) -> dict | None:
    nxt = media.get("nextAiringEpisode")
    if not nxt or nxt.get("airingAt") is None:
        return None
    return nxt


def activity_name(media: dict) -> str:
    return trim_plain(media_name(media.get("title")), NAME_LIMIT)


def build_activity(media: dict, server_id: str, webhook: str, image_b64: str, delay: int = 0) -> ScheduledActivity:
    nxt = next_airing(media)
    if nxt is None:
        raise OptionError("This anime has no next airing episode.")
    return ScheduledActivity(
        anime_id=str(media["id"]),
        server_id=server_id,
        timestamp=int(nxt["airingAt"]),
        webhook=webhook,
        episode=int(nxt.get("episode") or 0),
        name=activity_name(media),
        delays=int(delay or 0),
        image=image_b64,
    )


class ActivityService:
    def __init__(self, data: DataDispatcher, anilist):
        self.data = data
        self.anilist = anilist

    async def due(self, timestamp: int) -> list[ScheduledActivity]:
        rows = await self.data.get_activities_at(timestamp)
        return [r for r in rows if r.timestamp == timestamp]

    async def roll_over(self, activity: ScheduledActivity) -> ScheduledActivity | None:
        """Store the next episode for this activity, or drop the row when nothing else airs."""
        media = await self.anilist.minimal_anime(activity.anime_id, cache=False)
        nxt = next_airing(media)
        if nxt is None:
            await self.data.remove_activity(activity.server_id, activity.anime_id)
            logger.info("Activity %s/%s finished airing, removed", activity.server_id, activity.anime_id)
            return None
        updated = replace(
            activity,
            timestamp=int(nxt["airingAt"]),
            episode=int(nxt.get("episode") or activity.episode),
        )
        await self.data.set_activity(updated)
        return updated

    async def fire(self, activity: ScheduledActivity, send: Sender):
        if activity.delays:
            await asyncio.sleep(activity.delays)
        try:
            await send(activity)
        except KasukiError as e:
            logger.warning("Could not send activity %s/%s: %s", activity.server_id, activity.anime_id, e.message)
        except Exception:
            logger.exception("Unexpected error sending activity %s/%s", activity.server_id, activity.anime_id)
        # the row moves on even when this episode was not delivered
        await self.roll_over(activity)

    async def sweep(self, timestamp: int, send: Sender) -> list[asyncio.Task]:
        """Spawn one task per activity due at `timestamp`. Failures are logged per row."""
        spawned = []
        for activity in await self.due(timestamp):
            task = asyncio.create_task(self._fire_logged(activity, send))
            spawned.append(task)
        return spawned

    async def _fire_logged(self, activity: ScheduledActivity, send: Sender):
        try:
            await self.fire(activity, send)
        except Exception:
            logger.exception("Activity %s/%s failed", activity.server_id, activity.anime_id)
