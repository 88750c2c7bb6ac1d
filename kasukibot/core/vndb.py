from __future__ import annotations

import re
from urllib.parse import quote

from kasukibot.core.cache import CacheCell, fingerprint
from kasukibot.core.errors import OptionError
from kasukibot.core.http import JSON_HEADERS, HttpClient, decode_json

VNDB_URL = "https://api.vndb.org/kana"

VN_FIELDS = (
    "id,title,alttitle,titles.lang,titles.title,titles.latin,titles.official,titles.main,"
    "aliases,olang,devstatus,released,languages,platforms,image.url,image.sexual,image.violence,"
    "length_minutes,description,average,rating,votecount,tags.rating,tags.spoiler,tags.name,"
    "developers.name,staff.name,staff.role,va.character.name"
)
CHARACTER_FIELDS = (
    "id,description,name,image.url,image.sexual,image.violence,blood_type,height,weight,"
    "bust,waist,hips,cup,age,sex,birthday,vns.title,traits.spoiler,traits.name"
)
PRODUCER_FIELDS = "id,name,original,aliases,lang,type,description"

# image shown only at or below these VNDB flag levels
MAX_SEXUAL = 1.5
MAX_VIOLENCE = 1.0

_ID_RE = {
    "vn": re.compile(r"^v\d+$"),
    "character": re.compile(r"^c\d+$"),
    "producer": re.compile(r"^p\d+$"),
}


def build_filter(kind: str, value: str) -> list:
    value = value.strip()
    if _ID_RE[kind].match(value.lower()):
        return ["id", "=", value.lower()]
    return ["search", "=", value]


def image_is_safe(image: dict | None) -> bool:
    if not image:
        return False
    return float(image.get("sexual") or 0) <= MAX_SEXUAL and float(image.get("violence") or 0) <= MAX_VIOLENCE


class VndbClient:
    def __init__(self, http: HttpClient, cache: CacheCell, url: str = VNDB_URL):
        self.http = http
        self.cache = cache
        self.url = url

    async def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.url}/{path}"

        async def fetch() -> str:
            return await self.http.request_text("POST", url, json=payload, headers=JSON_HEADERS)

        body = await self.cache.get_or_fetch(fingerprint({"path": path, **payload}), fetch)
        return decode_json(body)

    async def _get(self, path: str) -> dict:
        url = f"{self.url}/{path}"

        async def fetch() -> str:
            return await self.http.request_text("GET", url, headers=JSON_HEADERS)

        return decode_json(await self.cache.get_or_fetch(url, fetch))

    async def _first(self, kind: str, value: str, fields: str) -> dict:
        data = await self._post(kind, {"filters": build_filter(kind, value), "fields": fields})
        results = data.get("results") or []
        if not results:
            raise OptionError(f"Nothing found on VNDB for `{value}`.")
        return results[0]

    async def vn(self, value: str) -> dict:
        return await self._first("vn", value, VN_FIELDS)

    async def character(self, value: str) -> dict:
        return await self._first("character", value, CHARACTER_FIELDS)

    async def producer(self, value: str) -> dict:
        return await self._first("producer", value, PRODUCER_FIELDS)

    async def stats(self) -> dict:
        return await self._get("stats")

    async def user(self, username: str) -> dict:
        data = await self._get(f"user?q={quote(username)}&fields=lengthvotes,lengthvotes_sum")
        user = data.get(username)
        if not user:
            raise OptionError(f"No VNDB user named `{username}`.")
        return user

    async def autocomplete(self, kind: str, search: str) -> list[tuple[str, str]]:
        name_field = "title" if kind == "vn" else "name"
        data = await self._post(kind, {"filters": ["search", "=", search], "fields": name_field, "results": 25})
        return [(r.get(name_field) or r["id"], r["id"]) for r in data.get("results") or []][:25]
