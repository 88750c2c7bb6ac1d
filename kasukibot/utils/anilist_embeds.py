"""
Embed builders for AniList payloads.
Input is the raw `data` dict returned by AniListClient, output a discord.Embed.
"""
from __future__ import annotations

import discord

from kasukibot.core.leveling import UserStats, get_affinity, get_level, user_xp
from kasukibot.core.models import ScheduledActivity
from kasukibot.core.utility import anilist_to_discord_markdown, fmt, fuzzy_date, media_name
from kasukibot.utils.embed_utils import create_embed

ANILIST_ANIME_URL = "https://anilist.co/anime/{id}"


def _banner(media: dict) -> str:
    return f"https://img.anili.st/media/{media['id']}"


def _join(items, limit: int = 5) -> str:
    items = [i for i in items if i][:limit]
    return "\n".join(items) if items else "-"


def media_embed(media: dict) -> discord.Embed:
    title = media.get("title") or {}
    header = media_name(title)
    if title.get("native"):
        header = f"{header} / {title['native']}"

    info = []
    if media.get("format"):
        info.append(f"Format: {media['format'].replace('_', ' ').title()}")
    if media.get("status"):
        info.append(f"Status: {media['status'].replace('_', ' ').title()}")
    if media.get("episodes"):
        info.append(f"Episodes: {media['episodes']}")
    if media.get("chapters"):
        info.append(f"Chapters: {media['chapters']}")
    if media.get("volumes"):
        info.append(f"Volumes: {media['volumes']}")
    info.append(f"Start: {fuzzy_date(media.get('startDate'))}")
    info.append(f"End: {fuzzy_date(media.get('endDate'))}")
    if media.get("averageScore"):
        info.append(f"Score: {media['averageScore']}/100")

    studios = [s.get("name") for s in ((media.get("studios") or {}).get("nodes") or [])]
    staff = []
    for edge in (media.get("staff") or {}).get("edges") or []:
        node = edge.get("node") or {}
        name = (node.get("name") or {}).get("full")
        if name:
            staff.append(f"{name}: {edge.get('role') or '?'}")

    tags = [t["name"] for t in media.get("tags") or [] if not t.get("isMediaSpoiler")]
    description = anilist_to_discord_markdown(media.get("description"))
    description = f"{description}\n\n" + "\n".join(info) if description else "\n".join(info)

    fields = [
        {"name": "Genres", "value": _join(media.get("genres") or []), "inline": True},
        {"name": "Tags", "value": _join(tags), "inline": True},
    ]
    if studios:
        fields.append({"name": "Studio", "value": _join(studios), "inline": True})
    if staff:
        fields.append({"name": "Staff", "value": _join(staff), "inline": False})

    cover = (media.get("coverImage") or {})
    return create_embed(
        description=description,
        title=header,
        url=media.get("siteUrl"),
        thumbnail=cover.get("extraLarge") or cover.get("large"),
        image=_banner(media),
        fields=fields,
        color="anilist",
    )


def character_embed(char: dict) -> discord.Embed:
    name = char.get("name") or {}
    header = name.get("userPreferred") or name.get("full") or "?"
    if name.get("native"):
        header = f"{header} / {name['native']}"
    lines = []
    if char.get("gender"):
        lines.append(f"Gender: {char['gender']}")
    if char.get("age"):
        lines.append(f"Age: {char['age']}")
    if char.get("bloodType"):
        lines.append(f"Blood type: {char['bloodType']}")
    birthday = char.get("dateOfBirth")
    if birthday and (birthday.get("day") or birthday.get("month")):
        lines.append(f"Birthday: {fuzzy_date(birthday)}")
    if char.get("favourites") is not None:
        lines.append(f"Favourites: {fmt(int(char['favourites']))}")
    media = [media_name(m.get("title")) for m in ((char.get("media") or {}).get("nodes") or [])]
    desc = anilist_to_discord_markdown(char.get("description"))
    return create_embed(
        description="\n".join(lines) + (f"\n\n{desc}" if desc else ""),
        title=header,
        url=char.get("siteUrl"),
        thumbnail=(char.get("image") or {}).get("large"),
        fields=[{"name": "Appears in", "value": _join(media), "inline": False}] if media else None,
        color="anilist",
    )


def staff_embed(staff: dict) -> discord.Embed:
    name = staff.get("name") or {}
    lines = []
    for label, key in (("Gender", "gender"), ("Age", "age"), ("Hometown", "homeTown"), ("Language", "languageV2")):
        if staff.get(key):
            lines.append(f"{label}: {staff[key]}")
    if staff.get("primaryOccupations"):
        lines.append(f"Occupations: {', '.join(staff['primaryOccupations'])}")
    if staff.get("dateOfBirth") and staff["dateOfBirth"].get("year"):
        lines.append(f"Birth: {fuzzy_date(staff['dateOfBirth'])}")
    if staff.get("dateOfDeath") and staff["dateOfDeath"].get("year"):
        lines.append(f"Death: {fuzzy_date(staff['dateOfDeath'])}")

    media = []
    for edge in (staff.get("staffMedia") or {}).get("edges") or []:
        node = edge.get("node") or {}
        media.append(f"{media_name(node.get('title'))} ({edge.get('staffRole') or '?'})")
    chars = [(c.get("name") or {}).get("full") for c in ((staff.get("characters") or {}).get("nodes") or [])]

    fields = []
    if media:
        fields.append({"name": "Media", "value": _join(media), "inline": True})
    if chars:
        fields.append({"name": "Characters", "value": _join(chars), "inline": True})
    desc = anilist_to_discord_markdown(staff.get("description"))
    return create_embed(
        description="\n".join(lines) + (f"\n\n{desc}" if desc else ""),
        title=name.get("userPreferred") or name.get("full"),
        url=staff.get("siteUrl"),
        thumbnail=(staff.get("image") or {}).get("large"),
        fields=fields,
        color="anilist",
    )


def seiyuu_embed(staff: dict) -> discord.Embed:
    name = staff.get("name") or {}
    chars = (staff.get("characters") or {}).get("nodes") or []
    lines = [f"[{(c.get('name') or {}).get('full')}](https://anilist.co/character/{c['id']})" for c in chars]
    return create_embed(
        description="\n".join(lines) or "No characters.",
        title=f"Roles of {name.get('userPreferred') or name.get('full')}",
        url=staff.get("siteUrl"),
        thumbnail=(staff.get("image") or {}).get("large"),
        image=((chars[0].get("image") or {}).get("large") if chars else None),
        color="anilist",
    )


def studio_embed(studio: dict) -> discord.Embed:
    nodes = (studio.get("media") or {}).get("nodes") or []
    lines = [f"[{media_name(m.get('title'))}]({m.get('siteUrl')})" for m in nodes]
    kind = "Animation studio" if studio.get("isAnimationStudio") else "Studio"
    return create_embed(
        description=f"{kind}, {fmt(int(studio.get('favourites') or 0))} favourites\n\n" + "\n".join(lines),
        title=studio.get("name"),
        url=studio.get("siteUrl"),
        color="anilist",
    )


def _stats_block(stats, kind: str) -> str:
    lines = [
        f"Count: {fmt(stats.count)}",
        f"Mean score: {stats.mean_score:.2f}",
        f"Standard deviation: {stats.standard_deviation:.2f}",
    ]
    if kind == "anime":
        lines.append(f"Days watched: {stats.minutes_watched / 60 / 24:.2f}")
    else:
        lines.append(f"Chapters read: {fmt(stats.chapters_read)}")
    if stats.tags:
        lines.append(f"Top tags: {', '.join(stats.tags[:3])}")
    if stats.genres:
        lines.append(f"Top genres: {', '.join(stats.genres[:3])}")
    return "\n".join(lines)


def user_embed(user: dict) -> discord.Embed:
    stats = UserStats.from_anilist(user)
    color = (user.get("options") or {}).get("profileColor")
    fields = []
    if stats.anime.count:
        fields.append({"name": "Anime", "value": _stats_block(stats.anime, "anime"), "inline": True})
    if stats.manga.count:
        fields.append({"name": "Manga", "value": _stats_block(stats.manga, "manga"), "inline": True})
    return create_embed(
        title=user.get("name"),
        url=user.get("siteUrl"),
        thumbnail=(user.get("avatar") or {}).get("large"),
        image=user.get("bannerImage"),
        fields=fields,
        color=color or "anilist",
        description=None if fields else "This user has no statistics.",
    )


def level_embed(user: dict) -> discord.Embed:
    stats = UserStats.from_anilist(user)
    xp = user_xp(stats)
    level, progress, span = get_level(xp)
    return create_embed(
        title=user.get("name"),
        url=user.get("siteUrl"),
        thumbnail=(user.get("avatar") or {}).get("large"),
        description=(
            f"Level **{level}**\n"
            f"{fmt(int(xp))} XP total\n"
            f"Progress: {progress:,.1f} / {span:,.1f}"
        ),
        color=(user.get("options") or {}).get("profileColor") or "anilist",
    )


def _more(n1: str, v1, n2: str, v2, what: str) -> str:
    if v1 > v2:
        return f"{n1} {what} more ({fmt(v1)} vs {fmt(v2)})."
    if v2 > v1:
        return f"{n2} {what} more ({fmt(v2)} vs {fmt(v1)})."
    return f"{n1} and {n2} {what} the same amount ({fmt(v1)})."


def _top(items: list[str]) -> str:
    return items[0] if items else "nothing"


def compare_embed(user1: dict, user2: dict) -> discord.Embed:
    s1, s2 = UserStats.from_anilist(user1), UserStats.from_anilist(user2)
    n1, n2 = user1.get("name", "?"), user2.get("name", "?")
    affinity = get_affinity(s1, s2)
    lines = [
        f"Affinity between {n1} and {n2}: **{affinity:.2f}%**",
        "",
        _more(n1, s1.anime.count, n2, s2.anime.count, "watched anime"),
        _more(n1, s1.anime.minutes_watched, n2, s2.anime.minutes_watched, "spent minutes watching"),
        _more(n1, s1.manga.count, n2, s2.manga.count, "read manga"),
        _more(n1, s1.manga.chapters_read, n2, s2.manga.chapters_read, "read chapters"),
        "",
        f"{n1}'s top anime tag is {_top(s1.anime.tags)}, {n2}'s is {_top(s2.anime.tags)}.",
        f"{n1}'s top anime genre is {_top(s1.anime.genres)}, {n2}'s is {_top(s2.anime.genres)}.",
        f"{n1}'s top manga tag is {_top(s1.manga.tags)}, {n2}'s is {_top(s2.manga.tags)}.",
        f"{n1}'s top manga genre is {_top(s1.manga.genres)}, {n2}'s is {_top(s2.manga.genres)}.",
    ]
    return create_embed(description="\n".join(lines), title=f"{n1} vs {n2}", color="anilist")


def random_embed(media: dict, kind: str) -> discord.Embed:
    title = media.get("title") or {}
    genres = ", ".join(media.get("genres") or []) or "-"
    tags = ", ".join(t["name"] for t in (media.get("tags") or [])[:5]) or "-"
    desc = anilist_to_discord_markdown(media.get("description"))
    return create_embed(
        title=title.get("userPreferred") or title.get("native"),
        url=media.get("siteUrl") or f"https://anilist.co/{kind}/{media['id']}",
        description=(
            f"Genres: {genres}\nTags: {tags}\n"
            f"Format: {media.get('format') or '?'} | Status: {media.get('status') or '?'} | "
            f"Mean score: {media.get('meanScore') or '?'}\n\n{desc}"
        ),
        thumbnail=(media.get("coverImage") or {}).get("extraLarge"),
        color="anilist",
    )


def activity_embed(activity: ScheduledActivity) -> discord.Embed:
    return create_embed(
        title=activity.name,
        url=ANILIST_ANIME_URL.format(id=activity.anime_id),
        description=f"Episode {activity.episode} of {activity.name} just aired.",
        color="anilist",
    )
