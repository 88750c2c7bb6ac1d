"""
AI Cog
/ai question, image, transcript, translation
Backed by any OpenAI-compatible endpoint set in the `ai` config section.
"""

from __future__ import annotations

import io
import logging
import uuid

import discord
from discord import app_commands
from discord.ext import commands

from kasukibot.core.ai import check_audio_attachment
from kasukibot.core.guards import ensure_module_on
from kasukibot.core.models import ModuleName
from kasukibot.core.utility import trim_plain
from kasukibot.utils.embed_utils import create_embed

logger = logging.getLogger(__name__)

TRANSCRIPT_LANGUAGES = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "ja": "Japanese",
    "es": "Spanish",
}


class AIGroup(app_commands.Group):
    def __init__(self, bot: commands.Bot):
        super().__init__(name="ai", description="Ask an AI model")
        self.bot = bot

    async def _start(self, interaction: discord.Interaction) -> bool:
        if not await ensure_module_on(self.bot, interaction, ModuleName.AI):
            return False
        await interaction.response.defer()
        return True

    async def _read_audio(self, attachment: discord.Attachment) -> tuple[str, bytes]:
        ext = check_audio_attachment(attachment.filename, attachment.content_type)
        content = await attachment.read()
        logger.info("Received %s (%d bytes) for /ai", attachment.filename, len(content))
        return f"{uuid.uuid4()}.{ext}", content

    @app_commands.command(name="question", description="Ask a question.")
    @app_commands.describe(prompt="Your question")
    async def question(self, interaction: discord.Interaction, prompt: str):
        if not await self._start(interaction):
            return
        answer = await self.bot.ai.question(prompt)
        await interaction.followup.send(
            embed=create_embed(title=trim_plain(prompt, 256), description=trim_plain(answer), color="info")
        )

    @app_commands.command(name="image", description="Generate an image from a prompt.")
    @app_commands.describe(prompt="What to draw")
    async def image(self, interaction: discord.Interaction, prompt: str):
        if not await self._start(interaction):
            return
        content = await self.bot.ai.image(prompt)
        filename = f"{uuid.uuid4()}.png"
        embed = create_embed(title=trim_plain(prompt, 256), image=f"attachment://{filename}", color="info")
        await interaction.followup.send(embed=embed, file=discord.File(io.BytesIO(content), filename=filename))

    @app_commands.command(name="transcript", description="Transcribe an audio or video file.")
    @app_commands.describe(attachment="Audio or video file", prompt="Context for the model", lang="Spoken language")
    @app_commands.choices(lang=[app_commands.Choice(name=v, value=k) for k, v in TRANSCRIPT_LANGUAGES.items()])
    async def transcript(
        self,
        interaction: discord.Interaction,
        attachment: discord.Attachment,
        prompt: str = "",
        lang: app_commands.Choice[str] | None = None,
    ):
        if not await self._start(interaction):
            return
        filename, content = await self._read_audio(attachment)
        text = await self.bot.ai.transcript(filename, content, prompt, lang.value if lang else None)
        await interaction.followup.send(
            embed=create_embed(title="Transcript", description=trim_plain(text) or "-", color="info")
        )

    @app_commands.command(name="translation", description="Translate an audio or video file to English.")
    @app_commands.describe(attachment="Audio or video file", prompt="Context for the model")
    async def translation(self, interaction: discord.Interaction, attachment: discord.Attachment, prompt: str = ""):
        if not await self._start(interaction):
            return
        filename, content = await self._read_audio(attachment)
        text = await self.bot.ai.translation(filename, content, prompt)
        await interaction.followup.send(
            embed=create_embed(title="Translation", description=trim_plain(text) or "-", color="info")
        )


class AI(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.ai = AIGroup(bot)


async def setup(bot: commands.Bot):
    cog = AI(bot)
    await bot.add_cog(cog)
    bot.tree.add_command(cog.ai, override=True)
