import json

import pytest

from kasukibot.core.anilist import AniListClient, id_or_search
from kasukibot.core.cache import CacheCell
from kasukibot.core.errors import DecodeError, OptionError


class FakeHttp:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.payloads = []

    async def request_text(self, method, url, **kwargs):
        self.payloads.append(kwargs["json"])
        return json.dumps(self.responses.pop(0))


def test_id_or_search():
    assert id_or_search("154587") == (True, {"id": 154587})
    assert id_or_search(" Frieren ") == (False, {"search": "Frieren"})


async def test_media_by_id_is_cached():
    http = FakeHttp({"data": {"Media": {"id": 1, "title": {"romaji": "Cowboy Bebop"}}}})
    client = AniListClient(http, CacheCell())

    first = await client.media("1", "ANIME")
    second = await client.media("1", "ANIME")

    assert first == second
    assert len(http.payloads) == 1
    assert http.payloads[0]["variables"] == {"id": 1, "type": "ANIME"}


async def test_uncached_request_always_hits_the_api():
    http = FakeHttp(
        {"data": {"Media": {"id": 1, "nextAiringEpisode": {"airingAt": 10, "episode": 2}}}},
        {"data": {"Media": {"id": 1, "nextAiringEpisode": None}}},
    )
    client = AniListClient(http, CacheCell())

    assert (await client.minimal_anime("1", cache=False))["nextAiringEpisode"]["episode"] == 2
    assert (await client.minimal_anime("1", cache=False))["nextAiringEpisode"] is None


async def test_format_filter_is_sent_for_manga():
    http = FakeHttp({"data": {"Media": {"id": 2}}})
    client = AniListClient(http, CacheCell())
    await client.media("Berserk", "MANGA", ["MANGA", "ONE_SHOT"])
    assert http.payloads[0]["variables"] == {"search": "Berserk", "type": "MANGA", "format_in": ["MANGA", "ONE_SHOT"]}


async def test_missing_item_is_an_option_error():
    client = AniListClient(FakeHttp({"data": {"Character": None}}), CacheCell())
    with pytest.raises(OptionError):
        await client.character("nobody at all")


async def test_errors_without_data_are_a_decode_error():
    client = AniListClient(FakeHttp({"data": None, "errors": [{"message": "Not Found."}]}), CacheCell())
    with pytest.raises(DecodeError, match="Not Found"):
        await client.user("ghost")


async def test_error_responses_are_not_cached():
    http = FakeHttp(
        {"data": None, "errors": [{"message": "Too Many Requests."}]},
        {"data": {"User": {"id": 5, "name": "ghost"}}},
    )
    client = AniListClient(http, CacheCell())

    with pytest.raises(DecodeError):
        await client.user("ghost")
    assert (await client.user("ghost"))["id"] == 5
    assert len(http.payloads) == 2


async def test_has_next_stats_page():
    http = FakeHttp(
        {"data": {"SiteStatistics": {"anime": {"pageInfo": {"hasNextPage": True}}}}},
        {"data": {"SiteStatistics": {"manga": {"pageInfo": {"hasNextPage": False}}}}},
    )
    client = AniListClient(http, CacheCell())
    assert await client.has_next_stats_page("anime", 5) is True
    assert await client.has_next_stats_page("manga", 5) is False


async def test_autocomplete_labels():
    http = FakeHttp({"data": {"Page": {"media": [
        {"id": 1, "title": {"english": "Cowboy Bebop", "romaji": "Cowboy Bebop"}},
        {"id": 2, "title": {"english": None, "romaji": "Mushishi"}},
    ]}}})
    client = AniListClient(http, CacheCell())
    assert await client.autocomplete("media", "b", type="ANIME") == [("Cowboy Bebop", "1"), ("Mushishi", "2")]
