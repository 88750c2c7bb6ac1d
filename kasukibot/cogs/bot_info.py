"""
Bot Cog
/bot ping, info, credit
"""

from __future__ import annotations

import platform

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot import __version__
from kasukibot.core.utility import now_ts
from kasukibot.utils.embed_utils import create_embed

CREDITS = [
    ("AniList", "https://anilist.co", "anime, manga, character, staff and user data"),
    ("VNDB", "https://vndb.org", "visual novel data"),
    ("waifu.pics", "https://waifu.pics", "anime images"),
    ("discord.py", "https://github.com/Rapptz/discord.py", "Discord API wrapper"),
]


def format_uptime(seconds: int) -> str:
    days, rem = divmod(max(0, seconds), 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    return f"{days}d {hours}h {minutes}m" if days else f"{hours}h {minutes}m"


class BotGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="bot", description="About the bot")
        self.bot = bot

    # -------------------------
    # /bot ping
    # -------------------------
    @app_commands.command(name="ping", description="Bot latency and uptime.")
    async def ping(self, interaction: discord.Interaction):
        latency_ms = int(self.bot.latency * 1000)
        shard_id = interaction.guild.shard_id if interaction.guild else 0
        started_ts = getattr(self.bot, "started_ts", None)
        uptime_txt = format_uptime(now_ts() - started_ts) if started_ts else "-"
        await interaction.response.send_message(
            embed=create_embed(
                title="Ping",
                description=f"Latency: **{latency_ms}ms**\nShard: **{shard_id}**\nUptime: **{uptime_txt}**",
                color="info",
            )
        )

    @app_commands.command(name="info", description="Information about the bot.")
    async def info(self, interaction: discord.Interaction):
        app_user = self.bot.user
        fields = [
            {"name": "Servers", "value": str(len(self.bot.guilds)), "inline": True},
            {"name": "Shards", "value": str(self.bot.shard_count or 1), "inline": True},
            {"name": "Version", "value": __version__, "inline": True},
            {"name": "Python", "value": platform.python_version(), "inline": True},
            {"name": "discord.py", "value": discord.__version__, "inline": True},
        ]
        await interaction.response.send_message(
            embed=create_embed(
                title=app_user.name if app_user else "Kasuki",
                description="A Discord bot for AniList, VNDB and anime images.",
                thumbnail=app_user.display_avatar.url if app_user else None,
                fields=fields,
                color="info",
            )
        )

    @app_commands.command(name="credit", description="Services and projects the bot relies on.")
    async def credit(self, interaction: discord.Interaction):
        lines = [f"[{name}]({url}): {what}" for name, url, what in CREDITS]
        await interaction.response.send_message(
            embed=create_embed(title="Credits", description="\n".join(lines), color="info")
        )


class BotInfo(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.bot_group = BotGroup(bot)


async def setup(bot: commands.Bot):
    cog = BotInfo(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.bot_group, override=True)
