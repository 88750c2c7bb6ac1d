from __future__ import annotations

import logging
from dataclasses import dataclass

import aiohttp

from kasukibot.core.configurations import ALLOWED_AUDIO_EXTENSIONS
from kasukibot.core.errors import DecodeError, OptionError
from kasukibot.core.http import HttpClient, decode_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_IMAGE_SIZE = "1024x1024"


def normalize_url(base_url: str, path: str) -> str:
    """Join an OpenAI-compatible base url and an operation path, adding /v1 when missing."""
    if base_url.endswith("v1/"):
        return base_url + path
    if base_url.endswith("v1"):
        return f"{base_url}/{path}"
    return f"{base_url.rstrip('/')}/v1/{path}"


def check_audio_attachment(filename: str, content_type: str | None) -> str:
    """Return the lowercased extension, or raise OptionError when the file is not audio/video."""
    ctype = content_type or ""
    if not (ctype.startswith("audio/") or ctype.startswith("video/")):
        raise OptionError("Unsupported file type, send an audio or video file.")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_AUDIO_EXTENSIONS:
        raise OptionError(f"Unsupported file extension. Allowed: {', '.join(ALLOWED_AUDIO_EXTENSIONS)}")
    return ext


@dataclass
class Endpoint:
    token: str
    base_url: str
    model: str

    @classmethod
    def from_config(cls, cfg, section: str) -> "Endpoint":
        return cls(
            token=str(cfg.ai(section, "api_token", default="") or ""),
            base_url=str(cfg.ai(section, "base_url", default="https://api.openai.com/v1/") or ""),
            model=str(cfg.ai(section, "model", default="") or ""),
        )

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


class AIClient:
    def __init__(self, http: HttpClient, cfg):
        self.http = http
        self.question_ep = Endpoint.from_config(cfg, "question")
        self.image_ep = Endpoint.from_config(cfg, "image")
        self.transcription_ep = Endpoint.from_config(cfg, "transcription")
        self.image_quality = cfg.ai("image", "quality")
        self.image_style = cfg.ai("image", "style")
        self.image_size = cfg.ai("image", "size", default=DEFAULT_IMAGE_SIZE) or DEFAULT_IMAGE_SIZE

    async def question(self, text: str) -> str:
        ep = self.question_ep
        payload = {
            "model": ep.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
        }
        data = await self.http.post_json(normalize_url(ep.base_url, "chat/completions"), payload, headers=ep.headers)
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError("The AI answer had no content.") from e

    def image_payload(self, prompt: str, n: int = 1) -> dict:
        payload = {
            "prompt": prompt,
            "n": n,
            "size": self.image_size,
            "model": self.image_ep.model,
            "response_format": "url",
        }
        if self.image_quality:
            payload["quality"] = self.image_quality
        if self.image_style:
            payload["style"] = self.image_style
        return payload

    async def image(self, prompt: str) -> bytes:
        ep = self.image_ep
        data = await self.http.post_json(
            normalize_url(ep.base_url, "images/generations"), self.image_payload(prompt), headers=ep.headers
        )
        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError("The image endpoint returned no url.") from e
        logger.debug("Fetching generated image from %s", url)
        return await self.http.get_bytes(url)

    async def _audio(self, path: str, filename: str, content: bytes, prompt: str, language: str | None) -> str:
        ep = self.transcription_ep
        form = aiohttp.FormData()
        form.add_field("file", content, filename=filename)
        form.add_field("model", ep.model)
        form.add_field("prompt", prompt)
        form.add_field("response_format", "json")
        if language:
            form.add_field("language", language)
        body = await self.http.request_text("POST", normalize_url(ep.base_url, path), data=form, headers=ep.headers)
        text = decode_json(body).get("text")
        if text is None:
            raise DecodeError("The transcription endpoint returned no text.")
        return text

    async def transcript(self, filename: str, content: bytes, prompt: str = "", language: str | None = None) -> str:
        return await self._audio("audio/transcriptions", filename, content, prompt, language)

    async def translation(self, filename: str, content: bytes, prompt: str = "") -> str:
        return await self._audio("audio/translations", filename, content, prompt, None)
