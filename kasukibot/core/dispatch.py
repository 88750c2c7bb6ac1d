"""
Data access dispatcher.

The backend (SQLite or PostgreSQL) is picked once from config and every call is
forwarded to it. Both backends expose the same coroutine signatures.
"""

from __future__ import annotations

import logging
from typing import Callable

from kasukibot.core.db import SqliteBackend
from kasukibot.core.models import (
    MODULE_DEFAULTS,
    GuildLanguage,
    ModuleActivation,
    ModuleName,
    PingHistory,
    RegisteredUser,
    ScheduledActivity,
    ServerImage,
    UserApproximatedColor,
)
from kasukibot.core.pg import PostgresBackend

logger = logging.getLogger(__name__)

SQLITE = "sqlite"
POSTGRESQL = "postgresql"


def resolve_db_type(value: str | None) -> str:
    """Map a configured db_type to a backend name. Unknown values fall back to sqlite."""
    v = (value or "").strip().lower()
    if v in (SQLITE, POSTGRESQL):
        return v
    logger.warning("Unknown db_type %r, falling back to %s", value, SQLITE)
    return SQLITE


def _sqlite_from_config(cfg) -> SqliteBackend:
    return SqliteBackend(cfg.get("bot", "config", "sqlite_path", default="data/kasuki.sqlite3"))


def _postgres_from_config(cfg) -> PostgresBackend:
    return PostgresBackend(
        cfg.get("bot", "config", "postgres_dsn", default=""),
        max_pool_size=int(cfg.get("bot", "config", "postgres_pool_size", default=6)),
    )


BACKENDS: dict[str, Callable] = {
    SQLITE: _sqlite_from_config,
    POSTGRESQL: _postgres_from_config,
}


def create_backend(cfg):
    db_type = resolve_db_type(cfg.get("bot", "config", "db_type", default=SQLITE))
    logger.info("Using %s database backend", db_type)
    return BACKENDS[db_type](cfg)


class DataDispatcher:
    def __init__(self, backend):
        self.backend = backend

    @classmethod
    def from_config(cls, cfg) -> "DataDispatcher":
        return cls(create_backend(cfg))

    async def connect(self):
        await self.backend.connect()
        await self.backend.migrate()

    async def close(self):
        await self.backend.close()

    # -------------------------
    # Guild language
    # -------------------------
    async def get_guild_language(self, guild_id: str) -> GuildLanguage | None:
        return await self.backend.get_guild_language(guild_id)

    async def set_guild_language(self, data: GuildLanguage):
        await self.backend.set_guild_language(data)

    # -------------------------
    # Activities
    # -------------------------
    async def get_activities_at(self, timestamp: int) -> list[ScheduledActivity]:
        return await self.backend.get_activities_at(timestamp)

    async def set_activity(self, activity: ScheduledActivity):
        await self.backend.set_activity(activity)

    async def get_activity(self, anime_id: str, server_id: str) -> ScheduledActivity | None:
        return await self.backend.get_activity(anime_id, server_id)

    async def remove_activity(self, server_id: str, anime_id: str):
        await self.backend.remove_activity(server_id, anime_id)

    async def get_server_activities(self, server_id: str) -> list[ScheduledActivity]:
        return await self.backend.get_server_activities(server_id)

    # -------------------------
    # Module activation
    # -------------------------
    async def get_module_activation(self, guild_id: str) -> ModuleActivation | None:
        return await self.backend.get_module_activation(guild_id)

    async def set_module_activation(self, status: ModuleActivation):
        await self.backend.set_module_activation(status)

    async def get_kill_switch(self) -> ModuleActivation | None:
        return await self.backend.get_kill_switch()

    async def set_kill_switch(self, status: ModuleActivation):
        await self.backend.set_kill_switch(status)

    # -------------------------
    # Registered users
    # -------------------------
    async def get_registered_user(self, user_id: str) -> RegisteredUser | None:
        return await self.backend.get_registered_user(user_id)

    async def set_registered_user(self, user: RegisteredUser):
        await self.backend.set_registered_user(user)

    async def get_registered_users(self, user_ids: list[str]) -> list[RegisteredUser]:
        return await self.backend.get_registered_users(user_ids)

    # -------------------------
    # Color / image / ping
    # -------------------------
    async def get_user_color(self, user_id: str) -> UserApproximatedColor | None:
        return await self.backend.get_user_color(user_id)

    async def set_user_color(self, color: UserApproximatedColor):
        await self.backend.set_user_color(color)

    async def get_all_user_colors(self) -> list[UserApproximatedColor]:
        return await self.backend.get_all_user_colors()

    async def get_server_image(self, server_id: str, image_type: str) -> ServerImage | None:
        return await self.backend.get_server_image(server_id, image_type)

    async def set_server_image(self, image: ServerImage):
        await self.backend.set_server_image(image)

    async def add_ping_history(self, ping: PingHistory):
        await self.backend.add_ping_history(ping)


class ModuleService:
    """Guild module flags combined with the global kill switch."""

    def __init__(self, data: DataDispatcher):
        self.data = data

    async def guild_status(self, guild_id: str) -> ModuleActivation:
        row = await self.data.get_module_activation(guild_id)
        return row or ModuleActivation.default(guild_id)

    async def kill_switch_status(self) -> ModuleActivation:
        row = await self.data.get_kill_switch()
        if row is None:
            return ModuleActivation(guild_id="1", **{m.value: True for m in ModuleName})
        return row

    async def is_on(self, guild_id: str | None, module: ModuleName) -> bool:
        if not (await self.kill_switch_status()).is_on(module):
            return False
        if guild_id is None:
            return MODULE_DEFAULTS[module]
        return (await self.guild_status(guild_id)).is_on(module)

    async def set_guild(self, guild_id: str, module: ModuleName, state: bool) -> ModuleActivation:
        status = (await self.guild_status(guild_id)).with_module(module, state)
        await self.data.set_module_activation(status)
        return status

    async def set_global(self, module: ModuleName, state: bool) -> ModuleActivation:
        status = (await self.kill_switch_status()).with_module(module, state)
        await self.data.set_kill_switch(status)
        return status
