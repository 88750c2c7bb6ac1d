"""
AniList server-wide listings (/anilist_server ...).
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.guards import ensure_module_on
from kasukibot.core.models import ModuleName
from kasukibot.core.utility import DESCRIPTION_LIMIT
from kasukibot.utils.embed_utils import create_embed

ANILIST_USER_URL = "https://anilist.co/user/{id}"


def paginate_lines(lines: list[str], limit: int = DESCRIPTION_LIMIT) -> list[str]:
    """Pack lines into chunks that each fit in an embed description."""
    pages, current = [], ""
    for line in lines:
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit and current:
            pages.append(current)
            current = line
        else:
            current = candidate
    if current:
        pages.append(current)
    return pages


class AnilistServerGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="anilist_server", description="AniList listings for this server", guild_only=True)
        self.bot = bot

    async def _send_pages(self, interaction: discord.Interaction, title: str, lines: list[str], empty: str):
        pages = paginate_lines(lines) or [empty]
        # discord caps a single message at 10 embeds
        embeds = [
            create_embed(description=page, title=title if i == 0 else None, color="anilist")
            for i, page in enumerate(pages[:10])
        ]
        await interaction.followup.send(embeds=embeds)

    @app_commands.command(name="list_activity", description="Airing activities registered in this server.")
    async def list_activity(self, interaction: discord.Interaction):
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANILIST):
            return
        await interaction.response.defer()
        rows = await self.bot.data.get_server_activities(str(interaction.guild_id))
        lines = [
            f"[{a.name}](https://anilist.co/anime/{a.anime_id}) ep. {a.episode} <t:{a.timestamp}:R>"
            for a in sorted(rows, key=lambda a: a.timestamp)
        ]
        await self._send_pages(interaction, "Activities", lines, "No activity in this server.")

    @app_commands.command(name="list_user", description="Members with a registered AniList account.")
    async def list_user(self, interaction: discord.Interaction):
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANILIST):
            return
        await interaction.response.defer()
        guild = interaction.guild
        members = {str(m.id): m for m in guild.members} if guild else {}
        registered = await self.bot.data.get_registered_users(list(members))
        lines = [
            f"{members[r.user_id].mention}: [{r.anilist_id}]({ANILIST_USER_URL.format(id=r.anilist_id)})"
            for r in registered
            if r.user_id in members
        ]
        await self._send_pages(interaction, "Registered users", lines, "No registered user in this server.")


class AnilistServer(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.anilist_server = AnilistServerGroup(bot)


async def setup(bot: commands.Bot):
    cog = AnilistServer(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.anilist_server, override=True)
