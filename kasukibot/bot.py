from __future__ import annotations

import asyncio
import logging
import os
import sys
import time

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.activity import ActivityService
from kasukibot.core.ai import AIClient
from kasukibot.core.anilist import AniListClient
from kasukibot.core.cache import CacheCell
from kasukibot.core.configurations import Config
from kasukibot.core.dispatch import DataDispatcher, ModuleService
from kasukibot.core.errors import FileError, KasukiError
from kasukibot.core.http import HttpClient
from kasukibot.core.random_stats import RandomStats, load_random_stats
from kasukibot.core.vndb import VndbClient
from kasukibot.core.waifu import WaifuClient
from kasukibot.utils.embed_utils import error_embed

logger = logging.getLogger(__name__)

COGS = [
    "kasukibot.cogs.admin",           # /admin general, /admin anilist
    "kasukibot.cogs.anilist_user",    # /anilist_user ...
    "kasukibot.cogs.anilist_server",  # /anilist_server list_activity, list_user
    "kasukibot.cogs.ai",              # /ai ...
    "kasukibot.cogs.anime",           # /anime, /anime_nsfw
    "kasukibot.cogs.vn",              # /vn ...
    "kasukibot.cogs.bot_info",        # /bot ping, info, credit
    "kasukibot.cogs.user",            # /user avatar, banner, profile
    "kasukibot.cogs.server",          # /server guild, image
    "kasukibot.cogs.management",      # /kill_switch
    "kasukibot.cogs.background",      # activity sweep, random stats, ping history
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_RANDOM_STATS_PATH = "data/random_stats.json"


class KasukiBot(commands.Bot):
    def __init__(self, cfg: Config, data: DataDispatcher):
        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            activity=discord.Game(cfg.get("bot", "bot_activity", default="Let you get info from anilist.")),
        )
        self.cfg = cfg
        self.data = data
        self.modules = ModuleService(data)
        self.started_ts = int(time.time())

        cache_type = cfg.get("bot", "config", "cache_type", default="in-memory")
        if cache_type != "in-memory":
            logger.warning("Unknown cache_type %r, using the in-memory cache", cache_type)
        ttl = cfg.get("bot", "config", "cache_ttl")
        self.cache = CacheCell(
            ttl=float(ttl) if ttl else None,
            max_size=int(cfg.get("bot", "config", "cache_max_size", default=1000)),
        )
        # discord.Client already owns `self.http`
        self.web = HttpClient()
        self.anilist = AniListClient(self.web, self.cache)
        self.vndb = VndbClient(self.web, self.cache)
        self.waifu = WaifuClient(self.web)
        self.ai = AIClient(self.web, cfg)
        self.activities = ActivityService(data, self.anilist)

        self.random_stats_path = cfg.get("bot", "config", "random_stats_path", default=DEFAULT_RANDOM_STATS_PATH)
        self.random_stats = None
        self._synced = False

    async def setup_hook(self):
        """Connect the database, then load every cog."""
        await self.data.connect()
        logger.info("Database connected and migrated")

        try:
            self.random_stats = load_random_stats(self.random_stats_path)
        except FileError as e:
            logger.warning("%s, using default page counts", e.message)
            self.random_stats = RandomStats()
        self.tree.on_error = self.on_app_command_error

        for ext in COGS:
            await self.load_extension(ext)
            logger.info("Loaded %s", ext)

    async def on_ready(self):
        logger.info("Logged in as %s (%s), %d guilds", self.user, self.user.id if self.user else "?", len(self.guilds))
        if self._synced:
            return
        try:
            synced = await self.tree.sync()
            self._synced = True
            logger.info("Synced %d commands", len(synced))
        except discord.HTTPException:
            logger.exception("Command sync failed")

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for app commands."""
        original = error.original if isinstance(error, app_commands.CommandInvokeError) else error

        if isinstance(original, KasukiError):
            logger.info("%s error in /%s: %s", original.kind, _command_name(interaction), original.message)
            embed = error_embed(original.message, title=f"Error ({original.kind})")
        elif isinstance(original, app_commands.CommandOnCooldown):
            embed = error_embed(f"This command is on cooldown. Try again in {original.retry_after:.1f} seconds.")
        elif isinstance(original, app_commands.MissingPermissions):
            embed = error_embed("You don't have permission to use this command.")
        elif isinstance(original, app_commands.BotMissingPermissions):
            embed = error_embed("I don't have the required permissions to execute this command.")
        else:
            logger.error("Unhandled error in /%s", _command_name(interaction), exc_info=original)
            embed = error_embed("An error occurred while executing this command.")

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.warning("Could not deliver the error message for /%s", _command_name(interaction))

    async def close(self):
        await super().close()
        await self.web.close()
        await self.data.close()
        logger.info("Shut down")


def _command_name(interaction: discord.Interaction) -> str:
    return interaction.command.qualified_name if interaction.command else "?"


def setup_logging(level: str):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # discord.py is chatty at DEBUG
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)


async def main():
    cfg = Config.load()
    setup_logging(cfg.log_level)

    token = cfg.token
    if not token:
        logger.error("Bot token not configured: set bot.discord_token in %s or DISCORD_TOKEN",
                     os.getenv("KASUKI_CONFIG", "config.yml"))
        sys.exit(1)

    data = DataDispatcher.from_config(cfg)
    bot = KasukiBot(cfg, data)
    async with bot:
        try:
            await bot.start(token)
        except discord.LoginFailure:
            logger.error("Discord rejected the bot token")
            sys.exit(1)


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
