"""
Centralized embed utility for Kasuki.
Every command response goes through create_embed so colors and footers stay uniform.
"""
from __future__ import annotations

import discord

from kasukibot.core.utility import DESCRIPTION_LIMIT, FIELD_LIMIT, trim

# Embed colors for different message types
COLORS = {
    "default": 0xFAB1ED,     # Pink - regular command output
    "info": 0x3498DB,        # Blue - informational messages
    "success": 0x2ECC71,     # Green - success/confirmation
    "warning": 0xF39C12,     # Orange - warnings
    "error": 0xE74C3C,       # Red - errors
    "anilist": 0x02A9FF,     # AniList blue
    "vn": 0x2A3F5F,          # VNDB navy
}

MAX_FIELDS = 25


def parse_color(color: str | int | None) -> int:
    """Color name, AniList profile color ('#3db4f2' or 'blue') or int."""
    if color is None:
        return COLORS["default"]
    if isinstance(color, int):
        return color
    if color in COLORS:
        return COLORS[color]
    if color.startswith("#"):
        try:
            return int(color[1:], 16)
        except ValueError:
            return COLORS["default"]
    return ANILIST_PROFILE_COLORS.get(color, COLORS["default"])


ANILIST_PROFILE_COLORS = {
    "blue": 0x3DB4F2,
    "purple": 0xC063FF,
    "pink": 0xFC9DD6,
    "orange": 0xEF881A,
    "red": 0xE13333,
    "green": 0x4CCA51,
    "gray": 0x677B94,
}


def create_embed(
    description: str | None = None,
    title: str | None = None,
    color: str | int | None = "default",
    url: str | None = None,
    thumbnail: str | None = None,
    image: str | None = None,
    fields: list[dict] | None = None,
    footer: str | None = None,
) -> discord.Embed:
    """
    Create a standardized Kasuki embed.

    Args:
        description: The embed description, trimmed to Discord's limit
        title: Optional embed title
        color: Color name (from COLORS), AniList profile color, or hex int
        url: Optional link for the title
        thumbnail: Optional thumbnail URL
        image: Optional large image URL (may be attachment://name)
        fields: List of field dicts with 'name', 'value', and optional 'inline'
        footer: Optional footer text

    Returns:
        discord.Embed ready to send
    """
    embed = discord.Embed(
        title=title[:256] if title else None,
        description=trim(description, DESCRIPTION_LIMIT) if description else None,
        color=parse_color(color),
        url=url,
    )

    if thumbnail:
        embed.set_thumbnail(url=thumbnail)
    if image:
        embed.set_image(url=image)

    for field in (fields or [])[:MAX_FIELDS]:
        value = str(field.get("value") or "-")
        embed.add_field(
            name=str(field.get("name", ""))[:256],
            value=trim(value, FIELD_LIMIT),
            inline=field.get("inline", False),
        )

    if footer:
        embed.set_footer(text=footer)

    return embed


def success_embed(desc: str, title: str | None = None) -> discord.Embed:
    """Create a success embed (green color)."""
    return create_embed(description=desc, title=title, color="success")


def error_embed(desc: str, title: str | None = "Error") -> discord.Embed:
    """Create an error embed (red color)."""
    return create_embed(description=desc, title=title, color="error")
