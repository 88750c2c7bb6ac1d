from __future__ import annotations

import uuid

from kasukibot.core.errors import DecodeError
from kasukibot.core.http import HttpClient

WAIFU_URL = "https://api.waifu.pics"

SFW_TYPES = (
    "waifu", "neko", "shinobu", "megumin", "bully", "cuddle", "cry", "hug", "awoo", "kiss",
    "lick", "pat", "smug", "bonk", "yeet", "blush", "smile", "wave", "highfive", "handhold",
    "nom", "bite", "glomp", "slap", "kill", "kick", "happy", "wink", "poke", "dance", "cringe",
)
NSFW_TYPES = ("waifu", "neko", "trap", "blowjob")


class WaifuClient:
    def __init__(self, http: HttpClient, url: str = WAIFU_URL):
        self.http = http
        self.url = url

    async def random_image(self, image_type: str, nsfw: bool = False) -> tuple[str, bytes]:
        """Return (filename, bytes) for one random image of `image_type`."""
        category = "nsfw" if nsfw else "sfw"
        data = await self.http.get_json(f"{self.url}/{category}/{image_type}")
        url = data.get("url")
        if not url:
            raise DecodeError("waifu.pics returned no image url.")
        content = await self.http.get_bytes(url)
        return f"{uuid.uuid4()}.gif", content
