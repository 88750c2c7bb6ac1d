from __future__ import annotations

import re

import discord

from kasukibot.core.utility import fmt
from kasukibot.core.vndb import image_is_safe
from kasukibot.utils.embed_utils import create_embed

VNDB_URL = "https://vndb.org/{id}"

_VNDB_LINK_RE = re.compile(r"\[url=([^\]]+)\]([^\[]+)\[/url\]")
_SPOILER_RE = re.compile(r"\[spoiler\](.*?)\[/spoiler\]", re.S)

SEX = {"m": "Male", "f": "Female", "b": "Both", "n": "Sexless"}
DEVSTATUS = {0: "Finished", 1: "In development", 2: "Cancelled"}


def vndb_markup(text: str | None) -> str:
    if not text:
        return ""
    text = _VNDB_LINK_RE.sub(r"[\2](\1)", text)
    return _SPOILER_RE.sub(r"||\1||", text)


def _safe_image(item: dict) -> str | None:
    image = item.get("image")
    return image.get("url") if image_is_safe(image) else None


def _list(items, limit: int = 10) -> str:
    items = [str(i) for i in items if i][:limit]
    return ", ".join(items) if items else "-"


def game_embed(vn: dict) -> discord.Embed:
    fields = [
        {"name": "Released", "value": vn.get("released") or "?", "inline": True},
        {"name": "Platforms", "value": _list(vn.get("platforms") or []), "inline": True},
        {"name": "Status", "value": DEVSTATUS.get(vn.get("devstatus"), "?"), "inline": True},
        {"name": "Developers", "value": _list(d.get("name") for d in vn.get("developers") or []), "inline": True},
        {"name": "Languages", "value": _list(vn.get("languages") or []), "inline": True},
    ]
    if vn.get("length_minutes"):
        fields.append({"name": "Length", "value": f"{int(vn['length_minutes']) // 60}h", "inline": True})
    if vn.get("rating"):
        fields.append({"name": "Rating", "value": f"{vn['rating']:.2f} ({fmt(int(vn.get('votecount') or 0))} votes)", "inline": True})
    tags = [t.get("name") for t in vn.get("tags") or [] if not t.get("spoiler")]
    fields.append({"name": "Tags", "value": _list(tags), "inline": False})
    fields.append({"name": "Staff", "value": _list(s.get("name") for s in vn.get("staff") or []), "inline": False})
    fields.append(
        {"name": "Characters", "value": _list((v.get("character") or {}).get("name") for v in vn.get("va") or []), "inline": False}
    )
    return create_embed(
        title=vn.get("title"),
        url=VNDB_URL.format(id=vn["id"]),
        description=vndb_markup(vn.get("description")),
        image=_safe_image(vn),
        fields=fields,
        color="vn",
    )


def character_embed(char: dict) -> discord.Embed:
    fields = []
    if char.get("blood_type"):
        fields.append({"name": "Blood type", "value": char["blood_type"].upper(), "inline": True})
    if char.get("height"):
        fields.append({"name": "Height", "value": f"{char['height']}cm", "inline": True})
    if char.get("weight"):
        fields.append({"name": "Weight", "value": f"{char['weight']}kg", "inline": True})
    if char.get("age"):
        fields.append({"name": "Age", "value": str(char["age"]), "inline": True})
    for label, key in (("Bust", "bust"), ("Waist", "waist"), ("Hips", "hips")):
        if char.get(key):
            fields.append({"name": label, "value": f"{char[key]}cm", "inline": True})
    if char.get("cup"):
        fields.append({"name": "Cup", "value": char["cup"], "inline": True})
    sex = char.get("sex") or []
    fields.append({"name": "Sex", "value": SEX.get(sex[0], "?") if sex else "?", "inline": True})
    birthday = char.get("birthday")
    if birthday:
        fields.append({"name": "Birthday", "value": f"{birthday[1]:02d}/{birthday[0]:02d}", "inline": True})
    fields.append({"name": "Visual novels", "value": _list(v.get("title") for v in char.get("vns") or []), "inline": True})
    traits = [t.get("name") for t in char.get("traits") or [] if not t.get("spoiler")]
    fields.append({"name": "Traits", "value": _list(traits), "inline": True})
    return create_embed(
        title=char.get("name"),
        url=VNDB_URL.format(id=char["id"]),
        description=vndb_markup(char.get("description")),
        image=_safe_image(char),
        fields=fields,
        color="vn",
    )


def producer_embed(producer: dict) -> discord.Embed:
    fields = [
        {"name": "Language", "value": producer.get("lang") or "?", "inline": True},
        {"name": "Type", "value": {"co": "Company", "in": "Individual", "ng": "Amateur group"}.get(producer.get("type"), "?"), "inline": True},
    ]
    if producer.get("original"):
        fields.append({"name": "Original name", "value": producer["original"], "inline": True})
    if producer.get("aliases"):
        fields.append({"name": "Aliases", "value": _list(producer["aliases"]), "inline": False})
    return create_embed(
        title=producer.get("name"),
        url=VNDB_URL.format(id=producer["id"]),
        description=vndb_markup(producer.get("description")),
        fields=fields,
        color="vn",
    )


def stats_embed(stats: dict) -> discord.Embed:
    labels = (
        ("Visual novels", "vn"), ("Characters", "chars"), ("Producers", "producers"),
        ("Releases", "releases"), ("Staff", "staff"), ("Tags", "tags"), ("Traits", "traits"),
    )
    fields = [{"name": label, "value": fmt(int(stats.get(key) or 0)), "inline": True} for label, key in labels]
    return create_embed(title="VNDB statistics", url="https://vndb.org", fields=fields, color="vn")


def user_embed(user: dict) -> discord.Embed:
    hours = int(user.get("lengthvotes_sum") or 0) // 60
    return create_embed(
        title=user.get("username"),
        url=VNDB_URL.format(id=user.get("id")),
        description=f"ID: {user.get('id')}\nLength votes: {fmt(int(user.get('lengthvotes') or 0))}\nPlay time voted: {fmt(hours)}h",
        color="vn",
    )
