from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass

from kasukibot.core.errors import FileError

logger = logging.getLogger(__name__)

DEFAULT_LAST_PAGE = 1796


@dataclass
class RandomStats:
    anime_last_page: int = DEFAULT_LAST_PAGE
    manga_last_page: int = DEFAULT_LAST_PAGE

    def last_page(self, kind: str) -> int:
        return self.anime_last_page if kind == "anime" else self.manga_last_page


def load_random_stats(path: str) -> RandomStats:
    if not os.path.exists(path):
        return RandomStats()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return RandomStats(
            anime_last_page=int(raw["anime_last_page"]),
            manga_last_page=int(raw["manga_last_page"]),
        )
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise FileError(f"There was an error reading the random stats: {e}") from e


def save_random_stats(path: str, stats: RandomStats):
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(stats), f)
    except OSError as e:
        raise FileError(f"There was an error writing the random stats: {e}") from e


async def walk_last_page(anilist, kind: str, start: int) -> int:
    """Advance while AniList reports another page, then step back once."""
    page = max(1, start)
    while await anilist.has_next_stats_page(kind, page):
        page += 1
    return max(1, page - 1)


async def update_random_stats(anilist, path: str) -> RandomStats:
    stats = load_random_stats(path)
    stats.anime_last_page = await walk_last_page(anilist, "anime", stats.anime_last_page)
    stats.manga_last_page = await walk_last_page(anilist, "manga", stats.manga_last_page)
    save_random_stats(path, stats)
    logger.info(
        "Random stats updated: anime=%s manga=%s", stats.anime_last_page, stats.manga_last_page
    )
    return stats
