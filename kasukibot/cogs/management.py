"""
Management Cog
/kill_switch (bot owners only): turn a module off or on for every server.
"""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.guards import is_owner
from kasukibot.core.models import ModuleName
from kasukibot.utils.embed_utils import error_embed, success_embed

logger = logging.getLogger(__name__)


class Management(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="kill_switch", description="Turn a module on or off everywhere (owners only).")
    @app_commands.describe(name="Module", state="On or off")
    @app_commands.choices(name=[app_commands.Choice(name=m.name, value=m.value) for m in ModuleName])
    async def kill_switch(self, interaction: discord.Interaction, name: app_commands.Choice[str], state: bool):
        if not is_owner(self.bot, interaction.user):
            return await interaction.response.send_message(
                embed=error_embed("Only the bot owners can use this."), ephemeral=True
            )
        module = ModuleName(name.value)
        await self.bot.modules.set_global(module, state)
        logger.warning("Kill switch: %s set to %s by %s", module.value, state, interaction.user.id)
        verb = "enabled" if state else "disabled"
        await interaction.response.send_message(
            embed=success_embed(f"Module **{module.name}** {verb} globally.", title="Kill switch"), ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Management(bot))
