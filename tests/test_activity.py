import asyncio

import pytest

from kasukibot.core.activity import ActivityService, activity_name, build_activity
from kasukibot.core.errors import OptionError, SendingError
from kasukibot.core.models import ScheduledActivity


class FakeAniList:
    """minimal_anime answers from a dict of anime_id -> nextAiringEpisode (or None)."""

    def __init__(self, airing):
        self.airing = airing
        self.calls = []

    async def minimal_anime(self, value, cache=True):
        self.calls.append((value, cache))
        return {"id": int(value), "title": {"romaji": "Sousou no Frieren"}, "nextAiringEpisode": self.airing.get(value)}


def media(next_airing, english="Frieren: Beyond Journey's End", romaji="Sousou no Frieren"):
    return {"id": 154587, "title": {"english": english, "romaji": romaji}, "nextAiringEpisode": next_airing}


def stored(anime_id="154587", timestamp=1000, delays=0):
    return ScheduledActivity(
        anime_id=anime_id,
        server_id="42",
        timestamp=timestamp,
        webhook="https://discord.com/api/webhooks/1/token",
        episode=5,
        name="Frieren",
        delays=delays,
    )


def test_build_activity():
    act = build_activity(media({"airingAt": 1234, "episode": 7}), "42", "https://hook", "aW1n", delay=30)
    assert act.anime_id == "154587"
    assert act.timestamp == 1234
    assert act.episode == 7
    assert act.delays == 30
    assert act.image == "aW1n"


def test_build_activity_requires_next_airing():
    with pytest.raises(OptionError):
        build_activity(media(None), "42", "https://hook", "")


def test_activity_name_is_trimmed_to_50():
    name = activity_name(media(None, english="E" * 40, romaji="R" * 40))
    assert len(name) == 50
    assert name.startswith("E" * 40 + " / ")


async def test_roll_over_rewrites_row(data):
    await data.set_activity(stored())
    anilist = FakeAniList({"154587": {"airingAt": 2000, "episode": 6}})
    service = ActivityService(data, anilist)

    updated = await service.roll_over(stored())

    assert updated.timestamp == 2000
    assert updated.episode == 6
    row = await data.get_activity("154587", "42")
    assert (row.timestamp, row.episode) == (2000, 6)
    assert anilist.calls == [("154587", False)]


async def test_roll_over_deletes_finished_anime(data):
    await data.set_activity(stored())
    service = ActivityService(data, FakeAniList({}))

    assert await service.roll_over(stored()) is None
    assert await data.get_activity("154587", "42") is None


async def test_sweep_fires_due_rows_only(data):
    await data.set_activity(stored("1", timestamp=1000))
    await data.set_activity(stored("2", timestamp=1001))
    sent = []

    async def send(act):
        sent.append(act.anime_id)

    service = ActivityService(data, FakeAniList({"1": {"airingAt": 5000, "episode": 6}}))
    tasks = await service.sweep(1000, send)
    await asyncio.gather(*tasks)

    assert sent == ["1"]
    assert (await data.get_activity("1", "42")).timestamp == 5000
    assert (await data.get_activity("2", "42")).timestamp == 1001


async def test_send_failure_still_rolls_over(data):
    await data.set_activity(stored("1", timestamp=1000))

    async def send(act):
        raise SendingError("webhook gone")

    service = ActivityService(data, FakeAniList({}))
    tasks = await service.sweep(1000, send)
    await asyncio.gather(*tasks)

    assert await data.get_activity("1", "42") is None


async def test_transport_error_still_rolls_over(data):
    await data.set_activity(stored("1", timestamp=1000))

    async def send(act):
        raise OSError("connection reset")

    service = ActivityService(data, FakeAniList({"1": {"airingAt": 5000, "episode": 6}}))
    tasks = await service.sweep(1000, send)
    await asyncio.gather(*tasks)

    row = await data.get_activity("1", "42")
    assert (row.timestamp, row.episode) == (5000, 6)


async def test_one_failing_row_does_not_stop_others(data):
    await data.set_activity(stored("1", timestamp=1000))
    await data.set_activity(stored("2", timestamp=1000))
    sent = []

    async def send(act):
        if act.anime_id == "1":
            raise RuntimeError("unexpected")
        sent.append(act.anime_id)

    service = ActivityService(data, FakeAniList({}))
    tasks = await service.sweep(1000, send)
    await asyncio.gather(*tasks)

    assert sent == ["2"]


async def test_delay_is_waited_before_sending(data, monkeypatch):
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr("kasukibot.core.activity.asyncio.sleep", fake_sleep)
    service = ActivityService(data, FakeAniList({}))
    sent = []

    async def send(act):
        sent.append(act.anime_id)

    await service.fire(stored(delays=90), send)
    assert slept == [90]
    assert sent == ["154587"]
