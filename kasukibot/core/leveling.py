from __future__ import annotations

import sys
from dataclasses import dataclass, field

MAX_XP = sys.float_info.max
MAX_LEVEL = 100

STATUSES = ("CURRENT", "PLANNING", "COMPLETED", "DROPPED", "PAUSED", "REPEATING")

# (first level, exponent) for each band, level 100 shares the last band
LEVEL_BANDS = [
    (90, 11),
    (80, 10),
    (70, 9),
    (60, 8),
    (50, 7),
    (40, 6),
    (30, 5),
    (10, 4),
    (0, 3),
]

CLOSENESS_DENOMINATOR = 20.0


def xp_required_for_level(level: int) -> float:
    if level < 0 or level > MAX_LEVEL:
        return MAX_XP
    for first, exponent in LEVEL_BANDS:
        if level >= first:
            return float(level) ** exponent
    return MAX_XP


# (level, xp at level, xp at next level); 101 is a sentinel and never returned
LEVELS: list[tuple[int, float, float]] = [
    (lvl, xp_required_for_level(lvl), xp_required_for_level(lvl + 1)) for lvl in range(MAX_LEVEL + 2)
]


def get_level(xp: float) -> tuple[int, float, float]:
    """Return (level, progress within the level, xp span of the level)."""
    for level, required, next_required in reversed(LEVELS):
        if level > MAX_LEVEL:
            continue
        if xp >= required:
            return level, xp - required, next_required - required
    return 0, 0.0, 20.0


@dataclass
class MediaStats:
    count: int = 0
    mean_score: float = 0.0
    standard_deviation: float = 0.0
    minutes_watched: int = 0
    chapters_read: int = 0
    statuses: dict[str, int] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)

    @classmethod
    def from_anilist(cls, data: dict | None) -> "MediaStats":
        data = data or {}
        statuses = {}
        for s in data.get("statuses") or []:
            if s and s.get("status"):
                statuses[s["status"]] = int(s.get("count") or 0)
        tags = [t["tag"]["name"] for t in (data.get("tags") or []) if t and t.get("tag")]
        genres = [g["genre"] for g in (data.get("genres") or []) if g and g.get("genre")]
        return cls(
            count=int(data.get("count") or 0),
            mean_score=float(data.get("meanScore") or 0.0),
            standard_deviation=float(data.get("standardDeviation") or 0.0),
            minutes_watched=int(data.get("minutesWatched") or 0),
            chapters_read=int(data.get("chaptersRead") or 0),
            statuses=statuses,
            tags=tags,
            genres=genres,
        )

    def status(self, name: str) -> int:
        return self.statuses.get(name, 0)


@dataclass
class UserStats:
    anime: MediaStats
    manga: MediaStats

    @classmethod
    def from_anilist(cls, user: dict) -> "UserStats":
        stats = user.get("statistics") or {}
        return cls(
            anime=MediaStats.from_anilist(stats.get("anime")),
            manga=MediaStats.from_anilist(stats.get("manga")),
        )


def jaccard_index(a, b) -> float:
    a, b = set(a), set(b)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def closeness(s1: MediaStats, s2: MediaStats, kind: str) -> float:
    """Share of exactly-equal fields between two users, out of 20."""
    score = 0
    for status in STATUSES:
        if s1.status(status) == s2.status(status):
            score += 1
    if s1.count == s2.count:
        score += 1
    if kind == "anime":
        if s1.minutes_watched == s2.minutes_watched:
            score += 1
    elif s1.chapters_read == s2.chapters_read:
        score += 1
    if s1.standard_deviation == s2.standard_deviation:
        score += 1
    if s1.mean_score == s2.mean_score:
        score += 1
    return score / CLOSENESS_DENOMINATOR


def get_affinity(u1: UserStats, u2: UserStats) -> float:
    tag = jaccard_index(u1.anime.tags, u2.anime.tags)
    genre = jaccard_index(u1.anime.genres, u2.anime.genres)
    return (
        (tag + genre) / 2.0
        + closeness(u1.anime, u2.anime, "anime")
        + closeness(u1.manga, u2.manga, "manga")
    ) * 100.0


def user_xp(stats: UserStats) -> float:
    completed = stats.anime.status("COMPLETED") + stats.manga.status("COMPLETED")
    return 2.0 * completed + stats.manga.chapters_read + stats.anime.minutes_watched * 0.1
