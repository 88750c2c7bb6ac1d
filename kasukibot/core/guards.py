from __future__ import annotations

import discord

from kasukibot.core.models import ModuleName
from kasukibot.utils.embed_utils import error_embed


def guild_key(interaction: discord.Interaction) -> str | None:
    return str(interaction.guild_id) if interaction.guild_id else None


async def ensure_module_on(bot, interaction: discord.Interaction, module: ModuleName) -> bool:
    """Guard: check guild flag + kill switch. Returns False if off (and sends message)."""
    if await bot.modules.is_on(guild_key(interaction), module):
        return True
    embed = error_embed(f"The {module.value} module is turned off.", title="Module off")
    if interaction.response.is_done():
        await interaction.followup.send(embed=embed, ephemeral=True)
    else:
        await interaction.response.send_message(embed=embed, ephemeral=True)
    return False


def is_admin(member) -> bool:
    perms = getattr(member, "guild_permissions", None)
    return bool(perms and (perms.administrator or perms.manage_guild))


def is_owner(bot, user) -> bool:
    return user.id in bot.cfg.owners
