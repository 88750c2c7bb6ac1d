import json

import pytest

from kasukibot.core.cache import CacheCell
from kasukibot.core.errors import OptionError
from kasukibot.core.vndb import VndbClient, build_filter, image_is_safe
from kasukibot.utils.vn_embeds import character_embed, vndb_markup


@pytest.mark.parametrize(
    "kind, value, expected",
    [
        ("vn", "v17", ["id", "=", "v17"]),
        ("vn", "V17", ["id", "=", "v17"]),
        ("vn", "Steins;Gate", ["search", "=", "Steins;Gate"]),
        ("character", "c1234", ["id", "=", "c1234"]),
        ("character", "v17", ["search", "=", "v17"]),
        ("producer", "p24", ["id", "=", "p24"]),
    ],
)
def test_build_filter(kind, value, expected):
    assert build_filter(kind, value) == expected


@pytest.mark.parametrize(
    "image, safe",
    [
        ({"url": "x", "sexual": 0, "violence": 0}, True),
        ({"url": "x", "sexual": 1.5, "violence": 1.0}, True),
        ({"url": "x", "sexual": 1.6, "violence": 0}, False),
        ({"url": "x", "sexual": 0, "violence": 1.2}, False),
        (None, False),
    ],
)
def test_image_is_safe(image, safe):
    assert image_is_safe(image) is safe


def test_character_embed_hides_unsafe_image():
    char = {"id": "c1", "name": "Kurisu", "image": {"url": "https://img/c1.jpg", "sexual": 2.0, "violence": 0}}
    assert character_embed(char).image.url is None

    char["image"]["sexual"] = 0.0
    assert character_embed(char).image.url == "https://img/c1.jpg"


def test_vndb_markup():
    text = "See [url=https://vndb.org/v17]this[/url] and [spoiler]twist[/spoiler]."
    assert vndb_markup(text) == "See [this](https://vndb.org/v17) and ||twist||."


class FakeHttp:
    def __init__(self, bodies):
        self.bodies = bodies
        self.calls = []

    async def request_text(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs.get("json")))
        return json.dumps(self.bodies[url.rsplit("/", 1)[-1].split("?")[0]])


async def test_vn_lookup_is_cached():
    http = FakeHttp({"vn": {"results": [{"id": "v17", "title": "Steins;Gate"}]}})
    client = VndbClient(http, CacheCell(), url="https://vndb.test/kana")

    first = await client.vn("v17")
    second = await client.vn("v17")

    assert first == second == {"id": "v17", "title": "Steins;Gate"}
    assert len(http.calls) == 1
    method, url, payload = http.calls[0]
    assert (method, url) == ("POST", "https://vndb.test/kana/vn")
    assert payload["filters"] == ["id", "=", "v17"]


async def test_empty_result_is_an_option_error():
    client = VndbClient(FakeHttp({"producer": {"results": []}}), CacheCell(), url="https://vndb.test/kana")
    with pytest.raises(OptionError):
        await client.producer("nobody")


async def test_user_lookup():
    http = FakeHttp({"user": {"yorhel": {"id": "u2", "username": "yorhel", "lengthvotes": 10}}})
    client = VndbClient(http, CacheCell(), url="https://vndb.test/kana")
    assert (await client.user("yorhel"))["id"] == "u2"
    with pytest.raises(OptionError):
        await client.user("someone-else")
