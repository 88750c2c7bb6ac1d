from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import aiosqlite

from kasukibot.core.errors import DatabaseError
from kasukibot.core.models import (
    KILL_SWITCH_ID,
    GuildLanguage,
    ModuleActivation,
    PingHistory,
    RegisteredUser,
    ScheduledActivity,
    ServerImage,
    UserApproximatedColor,
)

logger = logging.getLogger(__name__)

MODULE_COLUMNS = ("ai_module", "anilist_module", "game_module", "new_member", "anime", "vn")


def module_row_values(status: ModuleActivation) -> tuple:
    return (status.ai, status.anilist, status.game, status.new_member, status.anime, status.vn)


def module_from_row(guild_id: str, row) -> ModuleActivation:
    return ModuleActivation.from_row(
        guild_id,
        {
            "ai": row["ai_module"],
            "anilist": row["anilist_module"],
            "game": row["game_module"],
            "new_member": row["new_member"],
            "anime": row["anime"],
            "vn": row["vn"],
        },
    )


def activity_from_row(row) -> ScheduledActivity:
    return ScheduledActivity(
        anime_id=str(row["anime_id"]),
        server_id=str(row["server_id"]),
        timestamp=int(row["timestamp"]),
        webhook=row["webhook"],
        episode=int(row["episode"] or 0),
        name=row["name"],
        delays=int(row["delays"] or 0),
        image=row["image"] or "",
    )


class SqliteBackend:
    def __init__(self, path: str):
        self.path = path
        self.conn: aiosqlite.Connection | None = None
        self._in_tx: bool = False

    async def connect(self):
        try:
            self.conn = await aiosqlite.connect(self.path)
        except (aiosqlite.Error, OSError) as e:
            raise DatabaseError(f"Could not open sqlite database {self.path}: {e}") from e
        self.conn.row_factory = aiosqlite.Row
        await self.conn.execute("PRAGMA journal_mode=WAL;")
        await self.conn.execute("PRAGMA synchronous=NORMAL;")
        await self.conn.commit()

    async def close(self):
        if self.conn:
            await self.conn.close()
            self.conn = None

    async def execute(self, sql: str, params=(), commit: bool = True):
        """Execute SQL statement. If commit=False, don't commit (for use in transactions)."""
        assert self.conn
        try:
            await self.conn.execute(sql, params)
            if commit and not self._in_tx:
                await self.conn.commit()
        except aiosqlite.Error as e:
            raise DatabaseError(f"Database error: {e}") from e

    @asynccontextmanager
    async def transaction(self):
        """BEGIN on enter, COMMIT on success, ROLLBACK on exception."""
        assert self.conn
        self._in_tx = True
        try:
            await self.conn.execute("BEGIN")
            yield self
            await self.conn.commit()
        except Exception:
            await self.conn.rollback()
            raise
        finally:
            self._in_tx = False

    async def fetchone(self, sql: str, params=()):
        assert self.conn
        try:
            cur = await self.conn.execute(sql, params)
            row = await cur.fetchone()
            await cur.close()
        except aiosqlite.Error as e:
            raise DatabaseError(f"Database error: {e}") from e
        return row

    async def fetchall(self, sql: str, params=()):
        assert self.conn
        try:
            cur = await self.conn.execute(sql, params)
            rows = await cur.fetchall()
            await cur.close()
        except aiosqlite.Error as e:
            raise DatabaseError(f"Database error: {e}") from e
        return rows

    async def _ensure_column(self, table: str, col: str, ddl: str) -> bool:
        """Add column if missing. Returns True when the column had to be added."""
        row = await self.fetchone(
            "SELECT COUNT(*) AS n FROM pragma_table_info(?) WHERE name=?",
            (table, col),
        )
        if row and row["n"]:
            return False
        await self.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl};", commit=False)
        logger.info("Added column %s.%s", table, col)
        return True

    async def migrate(self):
        async with self.transaction():
            await self._migrate_tables()
        logger.info("SQLite migrations completed (%s)", self.path)

    async def _migrate_tables(self):
        await self.execute("""
        CREATE TABLE IF NOT EXISTS guild_lang (
          guild TEXT PRIMARY KEY,
          lang  TEXT NOT NULL
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS activity_data (
          anime_id  TEXT,
          timestamp TEXT,
          server_id TEXT,
          webhook   TEXT,
          episode   TEXT,
          name      TEXT,
          delays    INTEGER DEFAULT 0,
          PRIMARY KEY (anime_id, server_id)
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS module_activation (
          guild_id       TEXT PRIMARY KEY,
          ai_module      INTEGER,
          anilist_module INTEGER,
          game_module    INTEGER
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS registered_user (
          user_id    TEXT PRIMARY KEY,
          anilist_id TEXT
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS global_kill_switch (
          id             TEXT PRIMARY KEY,
          ai_module      INTEGER,
          anilist_module INTEGER,
          game_module    INTEGER
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS user_color (
          user_id TEXT PRIMARY KEY,
          color   TEXT NOT NULL,
          pfp_url TEXT NOT NULL,
          image   TEXT NOT NULL
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS server_image (
          server_id TEXT,
          type      TEXT,
          image     TEXT,
          image_url TEXT,
          PRIMARY KEY (server_id, type)
        );
        """, commit=False)

        await self.execute("""
        CREATE TABLE IF NOT EXISTS ping_history (
          shard_id  TEXT,
          timestamp TEXT,
          ping      TEXT NOT NULL,
          PRIMARY KEY (shard_id, timestamp)
        );
        """, commit=False)

        # Columns added after the first release
        await self._ensure_column("activity_data", "image", "TEXT")
        for table in ("module_activation", "global_kill_switch"):
            await self._ensure_column(table, "new_member", "INTEGER")
            await self._ensure_column(table, "anime", "INTEGER")
            await self._ensure_column(table, "vn", "INTEGER")

        await self.execute(
            """INSERT OR IGNORE INTO global_kill_switch
               (id, ai_module, anilist_module, game_module, new_member, anime, vn)
               VALUES (?, 1, 1, 1, 1, 1, 1)""",
            (KILL_SWITCH_ID,),
            commit=False,
        )
        # kill switch columns added by a migration start out on
        await self.execute(
            """UPDATE global_kill_switch
               SET new_member = COALESCE(new_member, 1),
                   anime = COALESCE(anime, 1),
                   vn = COALESCE(vn, 1)""",
            commit=False,
        )

    # ========================================================================
    # GUILD LANGUAGE
    # ========================================================================

    async def get_guild_language(self, guild_id: str) -> GuildLanguage | None:
        row = await self.fetchone("SELECT guild, lang FROM guild_lang WHERE guild=?", (guild_id,))
        return GuildLanguage(guild_id=row["guild"], lang=row["lang"]) if row else None

    async def set_guild_language(self, data: GuildLanguage):
        await self.execute(
            "INSERT OR REPLACE INTO guild_lang (guild, lang) VALUES (?, ?)",
            (data.guild_id, data.lang),
        )

    # ========================================================================
    # ACTIVITIES
    # ========================================================================

    async def get_activities_at(self, timestamp: int) -> list[ScheduledActivity]:
        rows = await self.fetchall(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE timestamp=?""",
            (str(timestamp),),
        )
        return [activity_from_row(r) for r in rows]

    async def set_activity(self, activity: ScheduledActivity):
        await self.execute(
            """INSERT OR REPLACE INTO activity_data
               (anime_id, timestamp, server_id, webhook, episode, name, delays, image)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                activity.anime_id,
                str(activity.timestamp),
                activity.server_id,
                activity.webhook,
                str(activity.episode),
                activity.name,
                activity.delays,
                activity.image,
            ),
        )

    async def get_activity(self, anime_id: str, server_id: str) -> ScheduledActivity | None:
        row = await self.fetchone(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE anime_id=? AND server_id=?""",
            (anime_id, server_id),
        )
        return activity_from_row(row) if row else None

    async def remove_activity(self, server_id: str, anime_id: str):
        await self.execute(
            "DELETE FROM activity_data WHERE anime_id=? AND server_id=?",
            (anime_id, server_id),
        )

    async def get_server_activities(self, server_id: str) -> list[ScheduledActivity]:
        rows = await self.fetchall(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE server_id=? ORDER BY CAST(timestamp AS INTEGER)""",
            (server_id,),
        )
        return [activity_from_row(r) for r in rows]

    # ========================================================================
    # MODULE ACTIVATION
    # ========================================================================

    async def get_module_activation(self, guild_id: str) -> ModuleActivation | None:
        row = await self.fetchone(
            f"SELECT {', '.join(MODULE_COLUMNS)} FROM module_activation WHERE guild_id=?",
            (guild_id,),
        )
        return module_from_row(guild_id, row) if row else None

    async def set_module_activation(self, status: ModuleActivation):
        await self.execute(
            f"""INSERT OR REPLACE INTO module_activation (guild_id, {', '.join(MODULE_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (status.guild_id, *module_row_values(status)),
        )

    async def get_kill_switch(self) -> ModuleActivation | None:
        row = await self.fetchone(
            f"SELECT {', '.join(MODULE_COLUMNS)} FROM global_kill_switch WHERE id=?",
            (KILL_SWITCH_ID,),
        )
        return module_from_row(KILL_SWITCH_ID, row) if row else None

    async def set_kill_switch(self, status: ModuleActivation):
        await self.execute(
            f"""INSERT OR REPLACE INTO global_kill_switch (id, {', '.join(MODULE_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (KILL_SWITCH_ID, *module_row_values(status)),
        )

    # ========================================================================
    # REGISTERED USERS
    # ========================================================================

    async def get_registered_user(self, user_id: str) -> RegisteredUser | None:
        row = await self.fetchone(
            "SELECT user_id, anilist_id FROM registered_user WHERE user_id=?", (user_id,)
        )
        return RegisteredUser(user_id=row["user_id"], anilist_id=row["anilist_id"]) if row else None

    async def set_registered_user(self, user: RegisteredUser):
        await self.execute(
            "INSERT OR REPLACE INTO registered_user (user_id, anilist_id) VALUES (?, ?)",
            (user.user_id, user.anilist_id),
        )

    async def get_registered_users(self, user_ids: list[str]) -> list[RegisteredUser]:
        found = []
        # stay under SQLite's bound-parameter limit on large guilds
        for i in range(0, len(user_ids), 500):
            chunk = user_ids[i:i + 500]
            marks = ",".join("?" for _ in chunk)
            rows = await self.fetchall(
                f"SELECT user_id, anilist_id FROM registered_user WHERE user_id IN ({marks})",
                tuple(chunk),
            )
            found.extend(RegisteredUser(user_id=r["user_id"], anilist_id=r["anilist_id"]) for r in rows)
        return found

    # ========================================================================
    # USER COLOR / SERVER IMAGE / PING
    # ========================================================================

    async def get_user_color(self, user_id: str) -> UserApproximatedColor | None:
        row = await self.fetchone(
            "SELECT user_id, color, pfp_url, image FROM user_color WHERE user_id=?", (user_id,)
        )
        if not row:
            return None
        return UserApproximatedColor(row["user_id"], row["color"], row["pfp_url"], row["image"])

    async def set_user_color(self, color: UserApproximatedColor):
        await self.execute(
            "INSERT OR REPLACE INTO user_color (user_id, color, pfp_url, image) VALUES (?, ?, ?, ?)",
            (color.user_id, color.color, color.pfp_url, color.image),
        )

    async def get_all_user_colors(self) -> list[UserApproximatedColor]:
        rows = await self.fetchall("SELECT user_id, color, pfp_url, image FROM user_color")
        return [UserApproximatedColor(r["user_id"], r["color"], r["pfp_url"], r["image"]) for r in rows]

    async def get_server_image(self, server_id: str, image_type: str) -> ServerImage | None:
        row = await self.fetchone(
            "SELECT server_id, type, image, image_url FROM server_image WHERE server_id=? AND type=?",
            (server_id, image_type),
        )
        if not row:
            return None
        return ServerImage(row["server_id"], row["type"], row["image"], row["image_url"])

    async def set_server_image(self, image: ServerImage):
        await self.execute(
            "INSERT OR REPLACE INTO server_image (server_id, type, image, image_url) VALUES (?, ?, ?, ?)",
            (image.server_id, image.image_type, image.image, image.image_url),
        )

    async def add_ping_history(self, ping: PingHistory):
        await self.execute(
            "INSERT OR REPLACE INTO ping_history (shard_id, timestamp, ping) VALUES (?, ?, ?)",
            (ping.shard_id, str(ping.timestamp), ping.ping),
        )
