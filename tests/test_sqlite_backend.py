import aiosqlite
import pytest

from kasukibot.core.db import SqliteBackend
from kasukibot.core.dispatch import DataDispatcher, ModuleService
from kasukibot.core.errors import DatabaseError
from kasukibot.core.models import (
    GuildLanguage,
    ModuleActivation,
    ModuleName,
    PingHistory,
    RegisteredUser,
    ScheduledActivity,
    ServerImage,
    UserApproximatedColor,
)


def activity(anime_id="1", server_id="42", timestamp=1_700_000_000, **kw):
    return ScheduledActivity(
        anime_id=anime_id,
        server_id=server_id,
        timestamp=timestamp,
        webhook="https://discord.com/api/webhooks/1/token",
        episode=kw.pop("episode", 3),
        name=kw.pop("name", "Frieren"),
        **kw,
    )


async def test_module_toggle_round_trip(modules):
    assert await modules.is_on("42", ModuleName.ANIME)

    await modules.set_guild("42", ModuleName.ANIME, False)
    assert not await modules.is_on("42", ModuleName.ANIME)

    status = await modules.guild_status("42")
    assert status.ai and status.anilist and status.game and status.vn
    assert not status.new_member

    await modules.set_guild("42", ModuleName.ANIME, True)
    assert await modules.is_on("42", ModuleName.ANIME)


async def test_new_member_is_off_by_default(modules):
    assert not await modules.is_on("42", ModuleName.NEW_MEMBER)
    assert not await modules.is_on(None, ModuleName.NEW_MEMBER)
    assert await modules.is_on(None, ModuleName.AI)


async def test_kill_switch_overrides_guild(modules):
    await modules.set_guild("42", ModuleName.AI, True)
    await modules.set_global(ModuleName.AI, False)
    assert not await modules.is_on("42", ModuleName.AI)
    assert not await modules.is_on(None, ModuleName.AI)
    assert await modules.is_on("42", ModuleName.VN)

    await modules.set_global(ModuleName.AI, True)
    assert await modules.is_on("42", ModuleName.AI)


async def test_kill_switch_is_seeded_all_on(data):
    status = await data.get_kill_switch()
    assert status is not None
    assert all(status.is_on(m) for m in ModuleName)


async def test_registration_last_write_wins(data):
    await data.set_registered_user(RegisteredUser("100", "5"))
    await data.set_registered_user(RegisteredUser("100", "6"))
    assert (await data.get_registered_user("100")).anilist_id == "6"
    assert await data.get_registered_user("101") is None

    users = await data.get_registered_users(["100", "101", "102"])
    assert [u.anilist_id for u in users] == ["6"]
    assert await data.get_registered_users([]) == []


async def test_guild_language(data):
    assert await data.get_guild_language("42") is None
    await data.set_guild_language(GuildLanguage("42", "fr"))
    await data.set_guild_language(GuildLanguage("42", "ja"))
    assert (await data.get_guild_language("42")).lang == "ja"


async def test_activity_rows(data):
    await data.set_activity(activity("1", timestamp=100, delays=5, image="aW1n"))
    await data.set_activity(activity("2", timestamp=50))
    await data.set_activity(activity("1", server_id="43", timestamp=100))

    due = await data.get_activities_at(100)
    assert sorted((a.anime_id, a.server_id) for a in due) == [("1", "42"), ("1", "43")]

    stored = await data.get_activity("1", "42")
    assert stored == activity("1", timestamp=100, delays=5, image="aW1n")

    assert [a.anime_id for a in await data.get_server_activities("42")] == ["2", "1"]

    await data.remove_activity("42", "1")
    assert await data.get_activity("1", "42") is None
    assert await data.get_activity("1", "43") is not None


async def test_user_color_server_image_and_ping(data):
    color = UserApproximatedColor("7", "#3db4f2", "https://cdn/pfp.png", "")
    await data.set_user_color(color)
    assert await data.get_user_color("7") == color
    assert await data.get_all_user_colors() == [color]

    image = ServerImage("42", "icon", "aW1n", "https://cdn/icon.png")
    await data.set_server_image(image)
    assert await data.get_server_image("42", "icon") == image
    assert await data.get_server_image("42", "banner") is None

    await data.add_ping_history(PingHistory("0", 1_700_000_000, "42"))


async def test_migration_adds_columns_to_old_schema(tmp_path):
    path = str(tmp_path / "old.sqlite3")
    async with aiosqlite.connect(path) as conn:
        await conn.executescript(
            """
            CREATE TABLE module_activation (
              guild_id TEXT PRIMARY KEY, ai_module INTEGER, anilist_module INTEGER, game_module INTEGER
            );
            CREATE TABLE global_kill_switch (
              id TEXT PRIMARY KEY, ai_module INTEGER, anilist_module INTEGER, game_module INTEGER
            );
            CREATE TABLE activity_data (
              anime_id TEXT, timestamp TEXT, server_id TEXT, webhook TEXT, episode TEXT, name TEXT,
              delays INTEGER DEFAULT 0, PRIMARY KEY (anime_id, server_id)
            );
            INSERT INTO module_activation VALUES ('7', 1, 0, 1);
            INSERT INTO global_kill_switch VALUES ('1', 1, 1, 1);
            INSERT INTO activity_data VALUES ('9', '100', '7', 'https://hook', '2', 'Old', 0);
            """
        )
        await conn.commit()

    backend = SqliteBackend(path)
    await backend.connect()
    try:
        await backend.migrate()
        # running it twice must be harmless
        await backend.migrate()
        data = DataDispatcher(backend)
        modules = ModuleService(data)

        status = await data.get_module_activation("7")
        assert status.ai and not status.anilist and status.game
        assert status.anime and status.vn and not status.new_member

        kill = await data.get_kill_switch()
        assert all(kill.is_on(m) for m in ModuleName)
        assert not await modules.is_on("7", ModuleName.ANILIST)

        old = await data.get_activity("9", "7")
        assert old.image == ""
        assert old.episode == 2
    finally:
        await backend.close()


async def test_module_activation_is_read_back_as_written(data):
    await data.set_module_activation(ModuleActivation("42", anime=False))
    status = await data.get_module_activation("42")
    assert status == ModuleActivation("42", anime=False)
    assert not status.is_on(ModuleName.ANIME)
    assert status.is_on(ModuleName.AI)


async def test_driver_errors_become_database_errors(backend):
    with pytest.raises(DatabaseError):
        await backend.fetchone("SELECT * FROM no_such_table")
    with pytest.raises(DatabaseError):
        await backend.fetchall("SELECT * FROM no_such_table")
    with pytest.raises(DatabaseError):
        await backend.execute("INSERT INTO no_such_table VALUES (1)")


async def test_dispatcher_surfaces_database_errors(backend, data):
    await backend.execute("DROP TABLE guild_lang")
    with pytest.raises(DatabaseError):
        await data.get_guild_language("42")
