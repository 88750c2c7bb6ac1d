"""
AniList user-facing commands (/anilist_user ...).
"""

from __future__ import annotations

import logging
import random

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.errors import OptionError
from kasukibot.core.guards import ensure_module_on
from kasukibot.core.models import ModuleName, RegisteredUser
from kasukibot.core.random_stats import load_random_stats
from kasukibot.utils import anilist_embeds
from kasukibot.utils.embed_utils import success_embed

logger = logging.getLogger(__name__)

MANGA_FORMATS = ["MANGA", "ONE_SHOT"]
LN_FORMATS = ["NOVEL"]

SEARCH_TYPES = ["anime", "manga", "ln", "character", "staff", "studio", "user"]


async def resolve_anilist_user(bot, interaction: discord.Interaction, username: str | None) -> str:
    """Given name or id, else the caller's registered AniList id."""
    if username:
        return username
    registered = await bot.data.get_registered_user(str(interaction.user.id))
    if registered is None:
        raise OptionError("There is no user selected")
    return registered.anilist_id


class AnilistUserGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="anilist_user", description="AniList lookups")
        self.bot = bot

    async def _start(self, interaction: discord.Interaction) -> bool:
        if not await ensure_module_on(self.bot, interaction, ModuleName.ANILIST):
            return False
        await interaction.response.defer()
        return True

    async def _media(self, interaction: discord.Interaction, value: str, media_type: str, formats=None):
        media = await self.bot.anilist.media(value, media_type, formats)
        await interaction.followup.send(embed=anilist_embeds.media_embed(media))

    # -------------------------
    # Media
    # -------------------------
    @app_commands.command(name="anime", description="Info on an anime.")
    @app_commands.describe(anime_name="Name or AniList id")
    async def anime(self, interaction: discord.Interaction, anime_name: str):
        if not await self._start(interaction):
            return
        await self._media(interaction, anime_name, "ANIME")

    @app_commands.command(name="manga", description="Info on a manga.")
    @app_commands.describe(manga_name="Name or AniList id")
    async def manga(self, interaction: discord.Interaction, manga_name: str):
        if not await self._start(interaction):
            return
        await self._media(interaction, manga_name, "MANGA", MANGA_FORMATS)

    @app_commands.command(name="ln", description="Info on a light novel.")
    @app_commands.describe(ln_name="Name or AniList id")
    async def ln(self, interaction: discord.Interaction, ln_name: str):
        if not await self._start(interaction):
            return
        await self._media(interaction, ln_name, "MANGA", LN_FORMATS)

    @app_commands.command(name="character", description="Info on a character.")
    @app_commands.describe(name="Name or AniList id")
    async def character(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        char = await self.bot.anilist.character(name)
        await interaction.followup.send(embed=anilist_embeds.character_embed(char))

    @app_commands.command(name="staff", description="Info on a staff member.")
    @app_commands.describe(name="Name or AniList id")
    async def staff(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        staff = await self.bot.anilist.staff(name)
        await interaction.followup.send(embed=anilist_embeds.staff_embed(staff))

    @app_commands.command(name="studio", description="Info on a studio.")
    @app_commands.describe(name="Name or AniList id")
    async def studio(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        studio = await self.bot.anilist.studio(name)
        await interaction.followup.send(embed=anilist_embeds.studio_embed(studio))

    @app_commands.command(name="seiyuu", description="Characters voiced by a voice actor.")
    @app_commands.describe(name="Name or AniList id")
    async def seiyuu(self, interaction: discord.Interaction, name: str):
        if not await self._start(interaction):
            return
        staff = await self.bot.anilist.seiyuu(name)
        await interaction.followup.send(embed=anilist_embeds.seiyuu_embed(staff))

    @app_commands.command(name="waifu", description="The best waifu.")
    async def waifu(self, interaction: discord.Interaction):
        if not await self._start(interaction):
            return
        char = await self.bot.anilist.waifu()
        await interaction.followup.send(embed=anilist_embeds.character_embed(char))

    @app_commands.command(name="random", description="A random anime or manga.")
    @app_commands.choices(type=[
        app_commands.Choice(name="Anime", value="anime"),
        app_commands.Choice(name="Manga", value="manga"),
    ])
    async def random(self, interaction: discord.Interaction, type: app_commands.Choice[str]):
        if not await self._start(interaction):
            return
        kind = type.value
        stats = self.bot.random_stats or load_random_stats(self.bot.random_stats_path)
        page = random.randint(1, max(1, stats.last_page(kind)))
        media = await self.bot.anilist.random_media(kind.upper(), page)
        await interaction.followup.send(embed=anilist_embeds.random_embed(media, kind))

    @app_commands.command(name="search", description="Search AniList.")
    @app_commands.describe(type="What to search", query="Name or id")
    @app_commands.choices(type=[app_commands.Choice(name=t, value=t) for t in SEARCH_TYPES])
    async def search(self, interaction: discord.Interaction, type: app_commands.Choice[str], query: str):
        if not await self._start(interaction):
            return
        kind = type.value
        client = self.bot.anilist
        if kind == "anime":
            embed = anilist_embeds.media_embed(await client.media(query, "ANIME"))
        elif kind == "manga":
            embed = anilist_embeds.media_embed(await client.media(query, "MANGA", MANGA_FORMATS))
        elif kind == "ln":
            embed = anilist_embeds.media_embed(await client.media(query, "MANGA", LN_FORMATS))
        elif kind == "character":
            embed = anilist_embeds.character_embed(await client.character(query))
        elif kind == "staff":
            embed = anilist_embeds.staff_embed(await client.staff(query))
        elif kind == "studio":
            embed = anilist_embeds.studio_embed(await client.studio(query))
        elif kind == "user":
            embed = anilist_embeds.user_embed(await client.user(query))
        else:
            raise OptionError(f"Unknown search type `{kind}`.")
        await interaction.followup.send(embed=embed)

    # -------------------------
    # Users
    # -------------------------
    @app_commands.command(name="user", description="AniList profile and stats.")
    @app_commands.describe(username="AniList name or id, defaults to your registered account")
    async def user(self, interaction: discord.Interaction, username: str | None = None):
        if not await self._start(interaction):
            return
        value = await resolve_anilist_user(self.bot, interaction, username)
        user = await self.bot.anilist.user(value)
        await interaction.followup.send(embed=anilist_embeds.user_embed(user))

    @app_commands.command(name="level", description="Weeb level of an AniList user.")
    @app_commands.describe(username="AniList name or id, defaults to your registered account")
    async def level(self, interaction: discord.Interaction, username: str | None = None):
        if not await self._start(interaction):
            return
        value = await resolve_anilist_user(self.bot, interaction, username)
        user = await self.bot.anilist.user(value)
        await interaction.followup.send(embed=anilist_embeds.level_embed(user))

    @app_commands.command(name="compare", description="Compare two AniList users.")
    @app_commands.describe(username="First user", username2="Second user")
    async def compare(self, interaction: discord.Interaction, username: str, username2: str):
        if not await self._start(interaction):
            return
        user1 = await self.bot.anilist.user(username)
        user2 = await self.bot.anilist.user(username2)
        await interaction.followup.send(embed=anilist_embeds.compare_embed(user1, user2))

    @app_commands.command(name="register", description="Link your Discord account to an AniList account.")
    @app_commands.describe(username="AniList name or id")
    async def register(self, interaction: discord.Interaction, username: str):
        if not await self._start(interaction):
            return
        user = await self.bot.anilist.user(username)
        await self.bot.data.set_registered_user(
            RegisteredUser(user_id=str(interaction.user.id), anilist_id=str(user["id"]))
        )
        logger.info("Registered %s as AniList user %s", interaction.user.id, user["id"])
        await interaction.followup.send(
            embed=success_embed(
                f"{interaction.user.mention} is now registered as [{user['name']}]({user.get('siteUrl')}).",
                title="Register",
            )
        )

    # -------------------------
    # Autocomplete
    # -------------------------
    async def _choices(self, kind: str, current: str, **extra) -> list[app_commands.Choice[str]]:
        if not current:
            return []
        results = await self.bot.anilist.autocomplete(kind, current, **extra)
        return [app_commands.Choice(name=label[:100], value=value) for label, value in results]

    @anime.autocomplete("anime_name")
    async def anime_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("media", current, type="ANIME")

    @manga.autocomplete("manga_name")
    async def manga_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("media", current, type="MANGA", format_in=MANGA_FORMATS)

    @ln.autocomplete("ln_name")
    async def ln_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("media", current, type="MANGA", format_in=LN_FORMATS)

    @character.autocomplete("name")
    async def character_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("character", current)

    @staff.autocomplete("name")
    async def staff_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("staff", current)

    @seiyuu.autocomplete("name")
    async def seiyuu_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("staff", current)

    @studio.autocomplete("name")
    async def studio_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("studio", current)

    @user.autocomplete("username")
    async def user_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("user", current)

    @level.autocomplete("username")
    async def level_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("user", current)

    @compare.autocomplete("username")
    async def compare_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("user", current)

    @compare.autocomplete("username2")
    async def compare2_autocomplete(self, interaction: discord.Interaction, current: str):
        return await self._choices("user", current)


class AnilistUser(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.anilist_user = AnilistUserGroup(bot)


async def setup(bot: commands.Bot):
    cog = AnilistUser(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.anilist_user, override=True)
