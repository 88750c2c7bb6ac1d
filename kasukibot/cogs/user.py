"""
User Cog
/user avatar, banner, profile
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.errors import OptionError
from kasukibot.core.models import UserApproximatedColor
from kasukibot.utils.embed_utils import create_embed


async def remember_color(bot, user: discord.User) -> UserApproximatedColor | None:
    """Stored colour for a user, refreshed when the avatar changed."""
    pfp_url = user.display_avatar.url
    stored = await bot.data.get_user_color(str(user.id))
    if stored and stored.pfp_url == pfp_url:
        return stored
    if user.accent_color is None:
        return stored
    color = UserApproximatedColor(
        user_id=str(user.id),
        color=f"#{user.accent_color.value:06x}",
        pfp_url=pfp_url,
        image="",
    )
    await bot.data.set_user_color(color)
    return color


class UserGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="user", description="Discord user info")
        self.bot = bot

    @app_commands.command(name="avatar", description="Show a user's avatar.")
    @app_commands.describe(user="Defaults to you")
    async def avatar(self, interaction: discord.Interaction, user: discord.User | None = None):
        target = user or interaction.user
        await interaction.response.send_message(
            embed=create_embed(
                title=f"{target.display_name}'s avatar",
                url=target.display_avatar.url,
                image=target.display_avatar.url,
            )
        )

    @app_commands.command(name="banner", description="Show a user's banner.")
    @app_commands.describe(user="Defaults to you")
    async def banner(self, interaction: discord.Interaction, user: discord.User | None = None):
        # banners are only present on fetched users
        target = await self.bot.fetch_user((user or interaction.user).id)
        if target.banner is None:
            raise OptionError(f"{target.display_name} has no banner.")
        await interaction.response.send_message(
            embed=create_embed(
                title=f"{target.display_name}'s banner",
                url=target.banner.url,
                image=target.banner.url,
            )
        )

    @app_commands.command(name="profile", description="Show a user's profile.")
    @app_commands.describe(user="Defaults to you")
    async def profile(self, interaction: discord.Interaction, user: discord.User | None = None):
        await interaction.response.defer()
        target = await self.bot.fetch_user((user or interaction.user).id)
        color = await remember_color(self.bot, target)

        fields = [
            {"name": "ID", "value": str(target.id), "inline": True},
            {"name": "Created", "value": discord.utils.format_dt(target.created_at, "D"), "inline": True},
            {"name": "Bot", "value": "Yes" if target.bot else "No", "inline": True},
        ]
        member = interaction.guild.get_member(target.id) if interaction.guild else None
        if member and member.joined_at:
            fields.append({"name": "Joined", "value": discord.utils.format_dt(member.joined_at, "D"), "inline": True})
        if member:
            roles = [r.mention for r in reversed(member.roles) if not r.is_default()][:10]
            if roles:
                fields.append({"name": "Roles", "value": " ".join(roles), "inline": False})
        registered = await self.bot.data.get_registered_user(str(target.id))
        if registered:
            fields.append({
                "name": "AniList",
                "value": f"https://anilist.co/user/{registered.anilist_id}",
                "inline": False,
            })

        await interaction.followup.send(
            embed=create_embed(
                title=target.display_name,
                thumbnail=target.display_avatar.url,
                image=target.banner.url if target.banner else None,
                fields=fields,
                color=color.color if color else "default",
            )
        )


class User(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.user = UserGroup(bot)


async def setup(bot: commands.Bot):
    cog = User(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.user, override=True)
