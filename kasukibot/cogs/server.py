"""
Server Cog
/server guild, image
"""

from __future__ import annotations

import base64
import logging

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.errors import OptionError
from kasukibot.core.models import ServerImage
from kasukibot.utils.embed_utils import create_embed

logger = logging.getLogger(__name__)

IMAGE_TYPES = {"icon": "Icon", "banner": "Banner", "splash": "Invite splash"}


def guild_asset(guild: discord.Guild, image_type: str) -> discord.Asset | None:
    return {"icon": guild.icon, "banner": guild.banner, "splash": guild.splash}.get(image_type)


class ServerGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="server", description="Server info", guild_only=True)
        self.bot = bot

    @app_commands.command(name="guild", description="Information about this server.")
    async def guild(self, interaction: discord.Interaction):
        guild = interaction.guild
        fields = [
            {"name": "Owner", "value": f"<@{guild.owner_id}>", "inline": True},
            {"name": "Members", "value": str(guild.member_count or len(guild.members)), "inline": True},
            {"name": "Channels", "value": str(len(guild.channels)), "inline": True},
            {"name": "Roles", "value": str(len(guild.roles)), "inline": True},
            {"name": "Boosts", "value": f"{guild.premium_subscription_count} (tier {guild.premium_tier})", "inline": True},
            {"name": "Created", "value": discord.utils.format_dt(guild.created_at, "D"), "inline": True},
        ]
        lang = await self.bot.data.get_guild_language(str(guild.id))
        fields.append({"name": "Bot language", "value": lang.lang if lang else "en", "inline": True})
        await interaction.response.send_message(
            embed=create_embed(
                title=guild.name,
                description=guild.description,
                thumbnail=guild.icon.url if guild.icon else None,
                image=guild.banner.url if guild.banner else None,
                fields=fields,
            )
        )

    @app_commands.command(name="image", description="Show one of this server's images.")
    @app_commands.describe(image_type="Which image")
    @app_commands.choices(image_type=[app_commands.Choice(name=v, value=k) for k, v in IMAGE_TYPES.items()])
    async def image(self, interaction: discord.Interaction, image_type: app_commands.Choice[str]):
        await interaction.response.defer()
        guild = interaction.guild
        server_id = str(guild.id)
        asset = guild_asset(guild, image_type.value)
        stored = await self.bot.data.get_server_image(server_id, image_type.value)

        if asset is None and stored is None:
            raise OptionError(f"This server has no {image_type.name.lower()}.")

        if asset is not None and (stored is None or stored.image_url != asset.url):
            content = await self.bot.web.get_bytes(asset.url)
            stored = ServerImage(
                server_id=server_id,
                image_type=image_type.value,
                image=base64.b64encode(content).decode("ascii"),
                image_url=asset.url,
            )
            await self.bot.data.set_server_image(stored)
            logger.info("Stored %s image for guild %s", image_type.value, server_id)

        await interaction.followup.send(
            embed=create_embed(title=f"{guild.name}: {image_type.name}", url=stored.image_url, image=stored.image_url)
        )


class Server(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.server = ServerGroup(bot)


async def setup(bot: commands.Bot):
    cog = Server(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.server, override=True)
