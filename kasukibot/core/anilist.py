"""
AniList GraphQL client.

Every query goes through the shared CacheCell unless `cache=False` is passed
(the activity sweep and the random-stats walker need fresh answers).
"""

from __future__ import annotations

import logging

from kasukibot.core.cache import CacheCell, fingerprint
from kasukibot.core.errors import DecodeError, OptionError
from kasukibot.core.http import JSON_HEADERS, HttpClient, decode_json

logger = logging.getLogger(__name__)

ANILIST_URL = "https://graphql.anilist.co"
WAIFU_CHARACTER_ID = 156323

MEDIA_FIELDS = """
    id
    siteUrl
    type
    format
    status
    episodes
    chapters
    volumes
    duration
    source
    season
    seasonYear
    averageScore
    meanScore
    popularity
    favourites
    isAdult
    genres
    synonyms
    description
    bannerImage
    title { romaji english native userPreferred }
    coverImage { extraLarge large color }
    startDate { year month day }
    endDate { year month day }
    tags { name isMediaSpoiler }
    studios(isMain: true) { nodes { name } }
    staff(perPage: 5) { edges { role node { id name { full native userPreferred } } } }
    nextAiringEpisode { airingAt timeUntilAiring episode }
"""

MEDIA_BY_ID = f"""
query ($id: Int, $type: MediaType, $format_in: [MediaFormat]) {{
  Media(id: $id, type: $type, format_in: $format_in) {{ {MEDIA_FIELDS} }}
}}
"""

MEDIA_BY_SEARCH = f"""
query ($search: String, $type: MediaType, $format_in: [MediaFormat]) {{
  Media(search: $search, type: $type, format_in: $format_in) {{ {MEDIA_FIELDS} }}
}}
"""

MINIMAL_ANIME_BY_ID = """
query ($id: Int) {
  Media(type: ANIME, id: $id) {
    id
    coverImage { extraLarge }
    title { romaji english }
    nextAiringEpisode { airingAt timeUntilAiring episode }
  }
}
"""

MINIMAL_ANIME_BY_SEARCH = """
query ($search: String) {
  Media(type: ANIME, search: $search) {
    id
    coverImage { extraLarge }
    title { romaji english }
    nextAiringEpisode { airingAt timeUntilAiring episode }
  }
}
"""

CHARACTER_FIELDS = """
    id
    siteUrl
    name { full native userPreferred }
    image { large }
    description
    gender
    age
    bloodType
    favourites
    dateOfBirth { year month day }
    media(perPage: 5) { nodes { id title { romaji english } } }
"""

CHARACTER_BY_ID = f"query ($id: Int) {{ Character(id: $id) {{ {CHARACTER_FIELDS} }} }}"
CHARACTER_BY_SEARCH = f"query ($search: String) {{ Character(search: $search) {{ {CHARACTER_FIELDS} }} }}"

STAFF_FIELDS = """
    id
    siteUrl
    name { full native userPreferred }
    image { large }
    description
    gender
    age
    homeTown
    languageV2
    primaryOccupations
    dateOfBirth { year month day }
    dateOfDeath { year month day }
    yearsActive
    staffMedia(perPage: 5, sort: POPULARITY_DESC) { edges { staffRole node { id title { romaji english } } } }
    characters(perPage: 5, sort: FAVOURITES_DESC) { nodes { id name { full } image { large } } }
"""

STAFF_BY_ID = f"query ($id: Int) {{ Staff(id: $id) {{ {STAFF_FIELDS} }} }}"
STAFF_BY_SEARCH = f"query ($search: String) {{ Staff(search: $search) {{ {STAFF_FIELDS} }} }}"

STUDIO_FIELDS = """
    id
    name
    siteUrl
    isAnimationStudio
    favourites
    media(perPage: 15, sort: POPULARITY_DESC) { nodes { id siteUrl title { romaji english } } }
"""

STUDIO_BY_ID = f"query ($id: Int) {{ Studio(id: $id) {{ {STUDIO_FIELDS} }} }}"
STUDIO_BY_SEARCH = f"query ($search: String) {{ Studio(search: $search) {{ {STUDIO_FIELDS} }} }}"

USER_STATS_FIELDS = """
    count
    meanScore
    standardDeviation
    tags(limit: 5, sort: MEAN_SCORE_DESC) { tag { name } }
    genres(limit: 5, sort: MEAN_SCORE_DESC) { genre }
    statuses(sort: COUNT_DESC) { count status }
"""

USER_FIELDS = f"""
    id
    name
    siteUrl
    bannerImage
    avatar {{ large }}
    options {{ profileColor }}
    statistics {{
      anime {{ minutesWatched {USER_STATS_FIELDS} }}
      manga {{ chaptersRead volumesRead {USER_STATS_FIELDS} }}
    }}
"""

USER_BY_ID = f"query ($id: Int) {{ User(id: $id) {{ {USER_FIELDS} }} }}"
USER_BY_SEARCH = f"query ($search: String) {{ User(search: $search) {{ {USER_FIELDS} }} }}"

RANDOM_PAGE = """
query ($page: Int, $type: MediaType) {
  Page(page: $page, perPage: 1) {
    media(type: $type) {
      id
      siteUrl
      title { native userPreferred romaji english }
      meanScore
      description
      tags { name }
      genres
      format
      status
      coverImage { extraLarge }
    }
  }
}
"""

SITE_STATISTICS = {
    "anime": """
query ($page: Int) {
  SiteStatistics { anime(perPage: 1, page: $page) { pageInfo { currentPage lastPage total hasNextPage } } }
}
""",
    "manga": """
query ($page: Int) {
  SiteStatistics { manga(perPage: 1, page: $page) { pageInfo { currentPage lastPage total hasNextPage } } }
}
""",
}

SEIYUU = """
query ($search: String, $id: Int) {
  Staff(search: $search, id: $id) {
    id
    siteUrl
    name { full native userPreferred }
    image { large }
    characters(perPage: 4, sort: FAVOURITES_DESC) { nodes { id name { full native userPreferred } image { large } } }
  }
}
"""

AUTOCOMPLETE = {
    "media": """
query ($search: String, $type: MediaType, $format_in: [MediaFormat]) {
  Page(perPage: 25) { media(search: $search, type: $type, format_in: $format_in) { id title { romaji english } } }
}
""",
    "character": "query ($search: String) { Page(perPage: 25) { characters(search: $search) { id name { full } } } }",
    "staff": "query ($search: String) { Page(perPage: 25) { staff(search: $search) { id name { full } } } }",
    "studio": "query ($search: String) { Page(perPage: 25) { studios(search: $search) { id name } } }",
    "user": "query ($search: String) { Page(perPage: 25) { users(search: $search) { id name } } }",
}


def id_or_search(value: str) -> tuple[bool, dict]:
    """A plain integer is an id, anything else a search string."""
    value = str(value).strip()
    if value.isdigit():
        return True, {"id": int(value)}
    return False, {"search": value}


class AniListClient:
    def __init__(self, http: HttpClient, cache: CacheCell, url: str = ANILIST_URL):
        self.http = http
        self.cache = cache
        self.url = url

    async def request(self, query: str, variables: dict | None = None, cache: bool = True) -> dict:
        """POST a query and return its `data` object."""
        payload = {"query": query, "variables": variables or {}}

        async def fetch() -> str:
            return await self.http.request_text("POST", self.url, json=payload, headers=JSON_HEADERS)

        if cache:
            body = await self.cache.get_or_fetch(fingerprint(payload), fetch)
        else:
            body = await fetch()
        resp = decode_json(body)
        data = resp.get("data")
        if data is None:
            errors = resp.get("errors") or []
            msg = errors[0].get("message") if errors and isinstance(errors[0], dict) else "no data"
            if cache:
                await self.cache.invalidate(fingerprint(payload))
            logger.warning("AniList error response: %s", msg)
            raise DecodeError(f"AniList returned no data: {msg}")
        return data

    async def _single(self, key: str, by_id: str, by_search: str, value: str, cache: bool = True, **extra) -> dict:
        is_id, variables = id_or_search(value)
        data = await self.request(by_id if is_id else by_search, {**variables, **extra}, cache=cache)
        item = data.get(key)
        if not item:
            raise OptionError(f"Nothing found on AniList for `{value}`.")
        return item

    async def media(self, value: str, media_type: str, formats: list[str] | None = None) -> dict:
        extra: dict = {"type": media_type}
        if formats:
            extra["format_in"] = formats
        return await self._single("Media", MEDIA_BY_ID, MEDIA_BY_SEARCH, value, **extra)

    async def minimal_anime(self, value: str, cache: bool = True) -> dict:
        return await self._single("Media", MINIMAL_ANIME_BY_ID, MINIMAL_ANIME_BY_SEARCH, value, cache=cache)

    async def character(self, value: str) -> dict:
        return await self._single("Character", CHARACTER_BY_ID, CHARACTER_BY_SEARCH, value)

    async def waifu(self) -> dict:
        return await self.character(str(WAIFU_CHARACTER_ID))

    async def staff(self, value: str) -> dict:
        return await self._single("Staff", STAFF_BY_ID, STAFF_BY_SEARCH, value)

    async def seiyuu(self, value: str) -> dict:
        _, variables = id_or_search(value)
        data = await self.request(SEIYUU, variables)
        if not data.get("Staff"):
            raise OptionError(f"Nothing found on AniList for `{value}`.")
        return data["Staff"]

    async def studio(self, value: str) -> dict:
        return await self._single("Studio", STUDIO_BY_ID, STUDIO_BY_SEARCH, value)

    async def user(self, value: str) -> dict:
        return await self._single("User", USER_BY_ID, USER_BY_SEARCH, value)

    async def random_media(self, media_type: str, page: int) -> dict:
        data = await self.request(RANDOM_PAGE, {"page": page, "type": media_type})
        media = ((data.get("Page") or {}).get("media")) or []
        if not media:
            raise OptionError(f"No {media_type.lower()} on page {page}.")
        return media[0]

    async def has_next_stats_page(self, kind: str, page: int) -> bool:
        data = await self.request(SITE_STATISTICS[kind], {"page": page}, cache=False)
        stats = (data.get("SiteStatistics") or {}).get(kind) or {}
        return bool((stats.get("pageInfo") or {}).get("hasNextPage"))

    async def autocomplete(self, kind: str, search: str, **extra) -> list[tuple[str, str]]:
        """(label, id) pairs for an autocomplete list."""
        data = await self.request(AUTOCOMPLETE[kind], {"search": search, **extra})
        page = data.get("Page") or {}
        out: list[tuple[str, str]] = []
        if kind == "media":
            for m in page.get("media") or []:
                t = m.get("title") or {}
                out.append((t.get("english") or t.get("romaji") or str(m["id"]), str(m["id"])))
        elif kind in ("character", "staff"):
            for c in page.get("characters" if kind == "character" else "staff") or []:
                out.append(((c.get("name") or {}).get("full") or str(c["id"]), str(c["id"])))
        elif kind == "studio":
            out = [(s["name"], str(s["id"])) for s in page.get("studios") or []]
        elif kind == "user":
            out = [(u["name"], str(u["id"])) for u in page.get("users") or []]
        return out[:25]
