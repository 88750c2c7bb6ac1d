from types import SimpleNamespace

import pytest

from kasukibot.cogs.anilist_server import paginate_lines
from kasukibot.cogs.anilist_user import resolve_anilist_user
from kasukibot.cogs.background import Background, decode_avatar
from kasukibot.cogs.bot_info import format_uptime
from kasukibot.core.errors import OptionError, SendingError
from kasukibot.core.models import RegisteredUser, ScheduledActivity


def test_paginate_lines_respects_limit():
    lines = [f"line {i:03d}" for i in range(100)]
    pages = paginate_lines(lines, limit=100)
    assert all(len(p) <= 100 for p in pages)
    assert "\n".join(pages).split("\n") == lines
    assert paginate_lines([]) == []


def test_format_uptime():
    assert format_uptime(59) == "0h 0m"
    assert format_uptime(3 * 3600 + 120) == "3h 2m"
    assert format_uptime(2 * 86400 + 3600) == "2d 1h 0m"


def test_decode_avatar():
    assert decode_avatar("aW1n") == b"img"
    assert decode_avatar("") is None
    assert decode_avatar("not base64!") is None


async def test_bad_webhook_url_is_a_sending_error():
    cog = SimpleNamespace(bot=SimpleNamespace(web=SimpleNamespace(session=None)))
    activity = ScheduledActivity(
        anime_id="1", server_id="42", timestamp=1000, webhook="not a webhook", episode=1, name="Frieren", delays=0
    )
    with pytest.raises(SendingError):
        await Background.send_activity(cog, activity)


class FakeData:
    def __init__(self, registered):
        self.registered = registered

    async def get_registered_user(self, user_id):
        return self.registered.get(user_id)


def interaction_for(user_id):
    return SimpleNamespace(user=SimpleNamespace(id=user_id))


async def test_explicit_username_wins():
    bot = SimpleNamespace(data=FakeData({}))
    assert await resolve_anilist_user(bot, interaction_for(1), "someone") == "someone"


async def test_falls_back_to_registered_account():
    bot = SimpleNamespace(data=FakeData({"1": RegisteredUser("1", "5123")}))
    assert await resolve_anilist_user(bot, interaction_for(1), None) == "5123"


async def test_unregistered_user_without_name():
    bot = SimpleNamespace(data=FakeData({}))
    with pytest.raises(OptionError, match="There is no user selected"):
        await resolve_anilist_user(bot, interaction_for(1), None)


class RecordingChannel:
    def __init__(self):
        self.created = []

    async def webhooks(self):
        return []

    async def create_webhook(self, name):
        self.created.append(name)
        return SimpleNamespace(url="https://discord.com/api/webhooks/1/token")


async def test_add_activity_refuses_finished_anime_before_side_effects(monkeypatch):
    from kasukibot.cogs.admin import AnilistAdminGroup

    async def allow(interaction):
        return True

    async def yes(*args):
        return True

    async def finished(value, cache=True):
        return {"id": 1, "title": {"romaji": "Cowboy Bebop"}, "nextAiringEpisode": None,
                "coverImage": {"extraLarge": "https://img.anili.st/1.jpg"}}

    async def no_activity(anime_id, server_id):
        return None

    downloads = []

    async def get_bytes(url):
        downloads.append(url)
        return b"img"

    async def defer():
        return None

    monkeypatch.setattr("kasukibot.cogs.admin.require_admin", allow)
    bot = SimpleNamespace(
        modules=SimpleNamespace(is_on=yes),
        anilist=SimpleNamespace(minimal_anime=finished),
        data=SimpleNamespace(get_activity=no_activity),
        web=SimpleNamespace(get_bytes=get_bytes),
    )
    channel = RecordingChannel()
    interaction = SimpleNamespace(guild_id=42, channel=channel, response=SimpleNamespace(defer=defer))

    group = AnilistAdminGroup(bot)
    with pytest.raises(OptionError):
        await AnilistAdminGroup.add_activity.callback(group, interaction, "Cowboy Bebop", 0)
    assert channel.created == []
    assert downloads == []
