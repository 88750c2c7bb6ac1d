"""
Anime image Cog
/anime random_image
/anime_nsfw random_nsfw_image
"""

from __future__ import annotations

import io

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.errors import OptionError
from kasukibot.core.guards import ensure_module_on
from kasukibot.core.models import ModuleName
from kasukibot.core.waifu import NSFW_TYPES, SFW_TYPES
from kasukibot.utils.embed_utils import create_embed, error_embed


async def send_image(interaction: discord.Interaction, filename: str, content: bytes, image_type: str):
    embed = create_embed(title=image_type.title(), image=f"attachment://{filename}", color="default")
    await interaction.followup.send(embed=embed, file=discord.File(io.BytesIO(content), filename=filename))


class AnimeGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="anime", description="Anime images")
        self.bot = bot

    @app_commands.command(name="random_image", description="A random anime image.")
    @app_commands.describe(image_type="Kind of image")
    async def random_image(self, interaction: discord.Interaction, image_type: str = "waifu"):
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANIME):
            return
        if image_type not in SFW_TYPES:
            raise OptionError(f"Unknown image type `{image_type}`.")
        await interaction.response.defer()
        filename, content = await self.bot.waifu.random_image(image_type)
        await send_image(interaction, filename, content, image_type)

    # more than 25 types, so no static choices
    @random_image.autocomplete("image_type")
    async def image_type_autocomplete(self, interaction: discord.Interaction, current: str):
        current = current.lower()
        return [app_commands.Choice(name=t, value=t) for t in SFW_TYPES if current in t][:25]


class AnimeNsfwGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="anime_nsfw", description="NSFW anime images", nsfw=True)
        self.bot = bot

    @app_commands.command(name="random_nsfw_image", description="A random NSFW anime image.")
    @app_commands.describe(image_type="Kind of image")
    @app_commands.choices(image_type=[app_commands.Choice(name=t, value=t) for t in NSFW_TYPES])
    async def random_nsfw_image(self, interaction: discord.Interaction, image_type: app_commands.Choice[str]):
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANIME):
            return
        channel = interaction.channel
        if not (channel and hasattr(channel, "is_nsfw") and channel.is_nsfw()):
            return await interaction.response.send_message(
                embed=error_embed("This command only works in NSFW channels."), ephemeral=True
            )
        await interaction.response.defer()
        filename, content = await self.bot.waifu.random_image(image_type.value, nsfw=True)
        await send_image(interaction, filename, content, image_type.value)


class Anime(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.anime = AnimeGroup(bot)
        self.anime_nsfw = AnimeNsfwGroup(bot)


async def setup(bot: commands.Bot):
    cog = Anime(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.anime, override=True)
    bot.tree.add_command(cog.anime_nsfw, override=True)
