from __future__ import annotations

import asyncio
import logging

import asyncpg

from kasukibot.core.db import MODULE_COLUMNS, activity_from_row, module_from_row, module_row_values
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

# command_timeout surfaces as asyncio.TimeoutError, a closed pool as InterfaceError
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)


def _module_upsert(table: str, key: str) -> str:
    cols = ", ".join(MODULE_COLUMNS)
    updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in MODULE_COLUMNS)
    return (
        f"INSERT INTO {table} ({key}, {cols}) VALUES ($1, $2, $3, $4, $5, $6, $7) "
        f"ON CONFLICT ({key}) DO UPDATE SET {updates}"
    )


class PostgresBackend:
    def __init__(
        self,
        dsn: str,
        *,
        min_pool_size: int = 1,
        max_pool_size: int = 6,
        command_timeout: float = 30.0,
    ):
        self.dsn = dsn
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout = command_timeout
        self.pool: asyncpg.Pool | None = None

    async def connect(self):
        if self.pool is not None:
            return
        try:
            self.pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout,
            )
        except DRIVER_ERRORS as e:
            raise DatabaseError(f"Could not connect to postgres: {e}") from e

    async def close(self):
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def execute(self, sql: str, *args):
        assert self.pool
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(sql, *args)
        except DRIVER_ERRORS as e:
            raise DatabaseError(f"Database error: {e}") from e

    async def fetchone(self, sql: str, *args):
        assert self.pool
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchrow(sql, *args)
        except DRIVER_ERRORS as e:
            raise DatabaseError(f"Database error: {e}") from e

    async def fetchall(self, sql: str, *args):
        assert self.pool
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetch(sql, *args)
        except DRIVER_ERRORS as e:
            raise DatabaseError(f"Database error: {e}") from e

    async def migrate(self):
        assert self.pool
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await self._migrate_tables(conn)
        except DRIVER_ERRORS as e:
            raise DatabaseError(f"Migration failed: {e}") from e
        logger.info("PostgreSQL migrations completed")

    async def _ensure_column(self, conn: asyncpg.Connection, table: str, col: str, ddl: str) -> bool:
        exists = await conn.fetchval(
            """SELECT COUNT(*) FROM information_schema.columns
               WHERE table_schema = current_schema() AND table_name = $1 AND column_name = $2""",
            table,
            col,
        )
        if exists:
            return False
        await conn.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl}")
        logger.info("Added column %s.%s", table, col)
        return True

    async def _migrate_tables(self, conn: asyncpg.Connection):
        await conn.execute("""
        CREATE TABLE IF NOT EXISTS guild_lang (
          guild TEXT PRIMARY KEY,
          lang  TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activity_data (
          anime_id  TEXT,
          timestamp TEXT,
          server_id TEXT,
          webhook   TEXT,
          episode   TEXT,
          name      TEXT,
          delays    BIGINT DEFAULT 0,
          PRIMARY KEY (anime_id, server_id)
        );

        CREATE TABLE IF NOT EXISTS module_activation (
          guild_id       TEXT PRIMARY KEY,
          ai_module      BOOLEAN,
          anilist_module BOOLEAN,
          game_module    BOOLEAN
        );

        CREATE TABLE IF NOT EXISTS registered_user (
          user_id    TEXT PRIMARY KEY,
          anilist_id TEXT
        );

        CREATE TABLE IF NOT EXISTS global_kill_switch (
          id             TEXT PRIMARY KEY,
          ai_module      BOOLEAN,
          anilist_module BOOLEAN,
          game_module    BOOLEAN
        );

        CREATE TABLE IF NOT EXISTS user_color (
          user_id TEXT PRIMARY KEY,
          color   TEXT NOT NULL,
          pfp_url TEXT NOT NULL,
          image   TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS server_image (
          server_id TEXT,
          type      TEXT,
          image     TEXT,
          image_url TEXT,
          PRIMARY KEY (server_id, type)
        );

        CREATE TABLE IF NOT EXISTS ping_history (
          shard_id  TEXT,
          timestamp TEXT,
          ping      TEXT NOT NULL,
          PRIMARY KEY (shard_id, timestamp)
        );
        """)

        await self._ensure_column(conn, "activity_data", "image", "TEXT")
        for table in ("module_activation", "global_kill_switch"):
            await self._ensure_column(conn, table, "new_member", "BOOLEAN")
            await self._ensure_column(conn, table, "anime", "BOOLEAN")
            await self._ensure_column(conn, table, "vn", "BOOLEAN")

        await conn.execute(
            """INSERT INTO global_kill_switch
               (id, ai_module, anilist_module, game_module, new_member, anime, vn)
               VALUES ($1, TRUE, TRUE, TRUE, TRUE, TRUE, TRUE)
               ON CONFLICT (id) DO NOTHING""",
            KILL_SWITCH_ID,
        )
        # kill switch columns added by a migration start out on
        await conn.execute(
            """UPDATE global_kill_switch
               SET new_member = COALESCE(new_member, TRUE),
                   anime = COALESCE(anime, TRUE),
                   vn = COALESCE(vn, TRUE)"""
        )

    # ========================================================================
    # GUILD LANGUAGE
    # ========================================================================

    async def get_guild_language(self, guild_id: str) -> GuildLanguage | None:
        row = await self.fetchone("SELECT guild, lang FROM guild_lang WHERE guild = $1", guild_id)
        return GuildLanguage(guild_id=row["guild"], lang=row["lang"]) if row else None

    async def set_guild_language(self, data: GuildLanguage):
        await self.execute(
            """INSERT INTO guild_lang (guild, lang) VALUES ($1, $2)
               ON CONFLICT (guild) DO UPDATE SET lang = EXCLUDED.lang""",
            data.guild_id,
            data.lang,
        )

    # ========================================================================
    # ACTIVITIES
    # ========================================================================

    async def get_activities_at(self, timestamp: int) -> list[ScheduledActivity]:
        rows = await self.fetchall(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE timestamp = $1""",
            str(timestamp),
        )
        return [activity_from_row(r) for r in rows]

    async def set_activity(self, activity: ScheduledActivity):
        await self.execute(
            """INSERT INTO activity_data
               (anime_id, timestamp, server_id, webhook, episode, name, delays, image)
               VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
               ON CONFLICT (anime_id, server_id) DO UPDATE SET
                 timestamp = EXCLUDED.timestamp,
                 webhook = EXCLUDED.webhook,
                 episode = EXCLUDED.episode,
                 name = EXCLUDED.name,
                 delays = EXCLUDED.delays,
                 image = EXCLUDED.image""",
            activity.anime_id,
            str(activity.timestamp),
            activity.server_id,
            activity.webhook,
            str(activity.episode),
            activity.name,
            activity.delays,
            activity.image,
        )

    async def get_activity(self, anime_id: str, server_id: str) -> ScheduledActivity | None:
        row = await self.fetchone(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE anime_id = $1 AND server_id = $2""",
            anime_id,
            server_id,
        )
        return activity_from_row(row) if row else None

    async def remove_activity(self, server_id: str, anime_id: str):
        await self.execute(
            "DELETE FROM activity_data WHERE anime_id = $1 AND server_id = $2",
            anime_id,
            server_id,
        )

    async def get_server_activities(self, server_id: str) -> list[ScheduledActivity]:
        rows = await self.fetchall(
            """SELECT anime_id, timestamp, server_id, webhook, episode, name, delays, image
               FROM activity_data WHERE server_id = $1 ORDER BY CAST(timestamp AS BIGINT)""",
            server_id,
        )
        return [activity_from_row(r) for r in rows]

    # ========================================================================
    # MODULE ACTIVATION
    # ========================================================================

    async def get_module_activation(self, guild_id: str) -> ModuleActivation | None:
        row = await self.fetchone(
            f"SELECT {', '.join(MODULE_COLUMNS)} FROM module_activation WHERE guild_id = $1",
            guild_id,
        )
        return module_from_row(guild_id, row) if row else None

    async def set_module_activation(self, status: ModuleActivation):
        await self.execute(
            _module_upsert("module_activation", "guild_id"),
            status.guild_id,
            *module_row_values(status),
        )

    async def get_kill_switch(self) -> ModuleActivation | None:
        row = await self.fetchone(
            f"SELECT {', '.join(MODULE_COLUMNS)} FROM global_kill_switch WHERE id = $1",
            KILL_SWITCH_ID,
        )
        return module_from_row(KILL_SWITCH_ID, row) if row else None

    async def set_kill_switch(self, status: ModuleActivation):
        await self.execute(
            _module_upsert("global_kill_switch", "id"),
            KILL_SWITCH_ID,
            *module_row_values(status),
        )

    # ========================================================================
    # REGISTERED USERS
    # ========================================================================

    async def get_registered_user(self, user_id: str) -> RegisteredUser | None:
        row = await self.fetchone(
            "SELECT user_id, anilist_id FROM registered_user WHERE user_id = $1", user_id
        )
        return RegisteredUser(user_id=row["user_id"], anilist_id=row["anilist_id"]) if row else None

    async def set_registered_user(self, user: RegisteredUser):
        await self.execute(
            """INSERT INTO registered_user (user_id, anilist_id) VALUES ($1, $2)
               ON CONFLICT (user_id) DO UPDATE SET anilist_id = EXCLUDED.anilist_id""",
            user.user_id,
            user.anilist_id,
        )

    async def get_registered_users(self, user_ids: list[str]) -> list[RegisteredUser]:
        if not user_ids:
            return []
        rows = await self.fetchall(
            "SELECT user_id, anilist_id FROM registered_user WHERE user_id = ANY($1::text[])",
            list(user_ids),
        )
        return [RegisteredUser(user_id=r["user_id"], anilist_id=r["anilist_id"]) for r in rows]

    # ========================================================================
    # USER COLOR / SERVER IMAGE / PING
    # ========================================================================

    async def get_user_color(self, user_id: str) -> UserApproximatedColor | None:
        row = await self.fetchone(
            "SELECT user_id, color, pfp_url, image FROM user_color WHERE user_id = $1", user_id
        )
        if not row:
            return None
        return UserApproximatedColor(row["user_id"], row["color"], row["pfp_url"], row["image"])

    async def set_user_color(self, color: UserApproximatedColor):
        await self.execute(
            """INSERT INTO user_color (user_id, color, pfp_url, image) VALUES ($1, $2, $3, $4)
               ON CONFLICT (user_id) DO UPDATE SET
                 color = EXCLUDED.color, pfp_url = EXCLUDED.pfp_url, image = EXCLUDED.image""",
            color.user_id,
            color.color,
            color.pfp_url,
            color.image,
        )

    async def get_all_user_colors(self) -> list[UserApproximatedColor]:
        rows = await self.fetchall("SELECT user_id, color, pfp_url, image FROM user_color")
        return [UserApproximatedColor(r["user_id"], r["color"], r["pfp_url"], r["image"]) for r in rows]

    async def get_server_image(self, server_id: str, image_type: str) -> ServerImage | None:
        row = await self.fetchone(
            "SELECT server_id, type, image, image_url FROM server_image WHERE server_id = $1 AND type = $2",
            server_id,
            image_type,
        )
        if not row:
            return None
        return ServerImage(row["server_id"], row["type"], row["image"], row["image_url"])

    async def set_server_image(self, image: ServerImage):
        await self.execute(
            """INSERT INTO server_image (server_id, type, image, image_url) VALUES ($1, $2, $3, $4)
               ON CONFLICT (server_id, type) DO UPDATE SET
                 image = EXCLUDED.image, image_url = EXCLUDED.image_url""",
            image.server_id,
            image.image_type,
            image.image,
            image.image_url,
        )

    async def add_ping_history(self, ping: PingHistory):
        await self.execute(
            """INSERT INTO ping_history (shard_id, timestamp, ping) VALUES ($1, $2, $3)
               ON CONFLICT (shard_id, timestamp) DO UPDATE SET ping = EXCLUDED.ping""",
            ping.shard_id,
            str(ping.timestamp),
            ping.ping,
        )
