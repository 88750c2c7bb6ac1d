"""
Admin Cog
/admin general: lang, module
/admin anilist: add_activity, delete_activity
"""

from __future__ import annotations

import base64
import logging

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.activity import build_activity, next_airing
from kasukibot.core.configurations import SUPPORTED_LANGUAGES
from kasukibot.core.errors import LanguageError, OptionError
from kasukibot.core.guards import ensure_module_on, is_admin
from kasukibot.core.models import GuildLanguage, ModuleName
from kasukibot.utils.embed_utils import create_embed, error_embed, success_embed

logger = logging.getLogger(__name__)

WEBHOOK_NAME = "Kasuki activity"


async def require_admin(interaction: discord.Interaction) -> bool:
    if not interaction.guild or not isinstance(interaction.user, discord.Member):
        await interaction.response.send_message(embed=error_embed("Server only."), ephemeral=True)
        return False
    if not is_admin(interaction.user):
        await interaction.response.send_message(embed=error_embed("You need Manage Server for this."), ephemeral=True)
        return False
    return True


# ---------- General Subgroup ----------
class GeneralGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="general", description="General server settings")
        self.bot = bot

    @app_commands.command(name="lang", description="Set the bot language for this server.")
    @app_commands.describe(lang="Language code")
    @app_commands.choices(lang=[app_commands.Choice(name=v, value=k) for k, v in SUPPORTED_LANGUAGES.items()])
    async def lang(self, interaction: discord.Interaction, lang: app_commands.Choice[str]):
        if not await require_admin(interaction):
            return
        if lang.value not in SUPPORTED_LANGUAGES:
            raise LanguageError(f"`{lang.value}` is not a supported language.")
        await self.bot.data.set_guild_language(GuildLanguage(guild_id=str(interaction.guild_id), lang=lang.value))
        await interaction.response.send_message(
            embed=success_embed(f"Language set to **{lang.name}**.", title="Language"), ephemeral=True
        )

    @app_commands.command(name="module", description="Turn a module on or off for this server.")
    @app_commands.describe(name="Module", state="On or off")
    @app_commands.choices(name=[app_commands.Choice(name=m.name, value=m.value) for m in ModuleName])
    async def module(self, interaction: discord.Interaction, name: app_commands.Choice[str], state: bool):
        if not await require_admin(interaction):
            return
        module = ModuleName(name.value)
        await self.bot.modules.set_guild(str(interaction.guild_id), module, state)
        verb = "enabled" if state else "disabled"
        await interaction.response.send_message(
            embed=success_embed(f"Module **{module.name}** {verb}.", title="Modules"), ephemeral=True
        )


# ---------- AniList Subgroup ----------
class AnilistAdminGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="anilist", description="AniList server settings")
        self.bot = bot

    async def _webhook_for(self, channel) -> discord.Webhook:
        if not hasattr(channel, "webhooks"):
            raise OptionError("Activities can only be added in a text channel.")
        for hook in await channel.webhooks():
            if hook.user and hook.user.id == self.bot.user.id and hook.token:
                return hook
        return await channel.create_webhook(name=WEBHOOK_NAME)

    @app_commands.command(name="add_activity", description="Post a message here when new episodes air.")
    @app_commands.describe(anime_name="Anime name or id", delay="Seconds to wait after airing")
    async def add_activity(self, interaction: discord.Interaction, anime_name: str, delay: app_commands.Range[int, 0] = 0):
        if not await require_admin(interaction):
            return
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANILIST):
            return
        await interaction.response.defer()

        media = await self.bot.anilist.minimal_anime(anime_name)
        server_id = str(interaction.guild_id)
        anime_id = str(media["id"])

        if await self.bot.data.get_activity(anime_id, server_id):
            return await interaction.followup.send(
                embed=error_embed("This anime already has an activity in this server.", title="Add activity")
            )
        if next_airing(media) is None:
            raise OptionError("This anime has no next airing episode.")

        cover_url = (media.get("coverImage") or {}).get("extraLarge")
        image_b64 = ""
        if cover_url:
            image_b64 = base64.b64encode(await self.bot.web.get_bytes(cover_url)).decode("ascii")

        webhook = await self._webhook_for(interaction.channel)
        activity = build_activity(media, server_id, webhook.url, image_b64, delay)
        await self.bot.data.set_activity(activity)
        logger.info("Activity added: %s in guild %s", activity.anime_id, activity.server_id)

        await interaction.followup.send(
            embed=create_embed(
                title=activity.name,
                url=f"https://anilist.co/anime/{activity.anime_id}",
                description=f"Activity added. Episode {activity.episode} airs <t:{activity.timestamp}:R>.",
                thumbnail=cover_url,
                color="success",
            )
        )

    @app_commands.command(name="delete_activity", description="Stop posting airing messages for an anime.")
    @app_commands.describe(anime_name="Anime name or id")
    async def delete_activity(self, interaction: discord.Interaction, anime_name: str):
        if not await require_admin(interaction):
            return
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANILIST):
            return
        await interaction.response.defer()

        anime_id = anime_name.strip()
        if not anime_id.isdigit():
            anime_id = str((await self.bot.anilist.minimal_anime(anime_name))["id"])
        server_id = str(interaction.guild_id)

        if not await self.bot.data.get_activity(anime_id, server_id):
            raise OptionError("There is no activity for this anime in this server.")
        await self.bot.data.remove_activity(server_id, anime_id)
        await interaction.followup.send(embed=success_embed("Activity removed.", title="Delete activity"))

    @add_activity.autocomplete("anime_name")
    async def add_activity_autocomplete(self, interaction: discord.Interaction, current: str):
        if not current:
            return []
        results = await self.bot.anilist.autocomplete("media", current, type="ANIME")
        return [app_commands.Choice(name=label[:100], value=value) for label, value in results]

    @delete_activity.autocomplete("anime_name")
    async def delete_activity_autocomplete(self, interaction: discord.Interaction, current: str):
        rows = await self.bot.data.get_server_activities(str(interaction.guild_id))
        current = current.lower()
        return [
            app_commands.Choice(name=r.name[:100], value=r.anime_id)
            for r in rows
            if current in r.name.lower()
        ][:25]


# ---------- Cog ----------
class Admin(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.admin = app_commands.Group(
            name="admin",
            description="Server administration",
            guild_only=True,
            default_permissions=discord.Permissions(manage_guild=True),
        )
        self.admin.add_command(GeneralGroup(bot))
        self.admin.add_command(AnilistAdminGroup(bot))


async def setup(bot: commands.Bot):
    cog = Admin(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.admin, override=True)
