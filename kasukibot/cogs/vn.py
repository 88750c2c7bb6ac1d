"""
Visual novel Cog (VNDB)
/vn game, character, producer, stats, user
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.guards import ensure_module_on
from kasukibot.core.models import ModuleName
from kasukibot.utils import vn_embeds


class VNGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="vn", description="Visual novel lookups on VNDB")
        self.bot = bot

    async def _start(self, interaction: discord.Interaction) -> bool:
        if not await ensure_module_on(self.bot, interaction, ModuleName.VN):
            return False
        await interaction.response.defer()
        return True

    @app_commands.command(name="game", description="Info on a visual novel.")
    @app_commands.describe(name="Title or VNDB id (v17)")
    async def game(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        vn = await self.bot.vndb.vn(name)
        await interaction.followup.send(embed=vn_embeds.game_embed(vn))

    @app_commands.command(name="character", description="Info on a visual novel character.")
    @app_commands.describe(name="Name or VNDB id (c17)")
    async def character(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        char = await self.bot.vndb.character(name)
        await interaction.followup.send(embed=vn_embeds.character_embed(char))

    @app_commands.command(name="producer", description="Info on a visual novel producer.")
    @app_commands.describe(name="Name or VNDB id (p17)")
    async def producer(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        producer = await self.bot.vndb.producer(name)
        await interaction.followup.send(embed=vn_embeds.producer_embed(producer))

    @app_commands.command(name="stats", description="VNDB database statistics.")
    async def stats(self, interaction: discord.Interaction):
        if not await self._start(interaction):
            return
        await interaction.followup.send(embed=vn_embeds.stats_embed(await self.bot.vndb.stats()))

    @app_commands.command(name="user", description="Info on a VNDB user.")
    @app_commands.describe(username="VNDB username or id (u2)")
    async def user(self, interaction: discord.Interaction, username: str):
        if not await self._start(interaction):
            return
        user = await self.bot.vndb.user(username)
        await interaction.followup.send(embed=vn_embeds.user_embed(user))

    async def _choices(self, kind: str, current: str):
        if not current:
            return []
        results = await self.bot.vndb.autocomplete(kind, current)
        return [app_commands.Choice(name=label[:100], value=value) for label, value in results]

    @game.autocomplete("name")
    async def game_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("vn", current)

    @character.autocomplete("name")
    async def character_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("character", current)

    @producer.autocomplete("name")
    async def producer_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("producer", current)


class VN(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.vn = VNGroup(bot)


async def setup(bot: commands.Bot):
    cog = VN(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.vn, override=True)
