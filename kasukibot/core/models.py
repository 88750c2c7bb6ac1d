"""
Persisted records shared by both database backends.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class ModuleName(str, Enum):
    AI = "ai"
    ANILIST = "anilist"
    GAME = "game"
    NEW_MEMBER = "new_member"
    ANIME = "anime"
    VN = "vn"


# new_member is opt-in, everything else is on until a guild turns it off
MODULE_DEFAULTS: dict[ModuleName, bool] = {
    ModuleName.AI: True,
    ModuleName.ANILIST: True,
    ModuleName.GAME: True,
    ModuleName.NEW_MEMBER: False,
    ModuleName.ANIME: True,
    ModuleName.VN: True,
}

KILL_SWITCH_ID = "1"


@dataclass
class GuildLanguage:
    guild_id: str
    lang: str


@dataclass
class ModuleActivation:
    guild_id: str
    ai: bool = True
    anilist: bool = True
    game: bool = True
    new_member: bool = False
    anime: bool = True
    vn: bool = True

    @classmethod
    def default(cls, guild_id: str) -> "ModuleActivation":
        return cls(guild_id=guild_id, **{m.value: v for m, v in MODULE_DEFAULTS.items()})

    @classmethod
    def from_row(cls, guild_id: str, values: dict) -> "ModuleActivation":
        """Build from a row where any flag may be NULL (columns added by later migrations)."""
        flags = {}
        for module, default in MODULE_DEFAULTS.items():
            v = values.get(module.value)
            flags[module.value] = default if v is None else bool(v)
        return cls(guild_id=guild_id, **flags)

    def is_on(self, module: ModuleName) -> bool:
        return bool(getattr(self, module.value))

    def with_module(self, module: ModuleName, state: bool) -> "ModuleActivation":
        return replace(self, **{module.value: state})


@dataclass
class RegisteredUser:
    user_id: str
    anilist_id: str


@dataclass
class ScheduledActivity:
    anime_id: str
    server_id: str
    timestamp: int
    webhook: str
    episode: int
    name: str
    delays: int = 0
    image: str = ""


@dataclass
class UserApproximatedColor:
    user_id: str
    color: str
    pfp_url: str
    image: str


@dataclass
class ServerImage:
    server_id: str
    image_type: str
    image: str
    image_url: str


@dataclass
class PingHistory:
    shard_id: str
    timestamp: int
    ping: str
