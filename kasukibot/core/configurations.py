"""
Configuration loading.
YAML file first, then environment (and .env) overrides on top.
"""

from __future__ import annotations

import os
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config.yml"

# env var -> config path
ENV_OVERRIDES = {
    "DISCORD_TOKEN": ("bot", "discord_token"),
    "DB_TYPE": ("bot", "config", "db_type"),
    "POSTGRES_DSN": ("bot", "config", "postgres_dsn"),
    "LOG_LEVEL": ("logging", "log_level"),
}

SUPPORTED_LANGUAGES = {
    "en": "English",
    "fr": "Français",
    "de": "Deutsch",
    "ja": "日本語",
    "es-ES": "Español",
}

ALLOWED_AUDIO_EXTENSIONS = ("mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "ogg")


class Config(dict):
    @staticmethod
    def load(path: str | None = None, *, use_env: bool = True) -> "Config":
        if use_env:
            load_dotenv()
        path = path or os.getenv("KASUKI_CONFIG", DEFAULT_CONFIG_PATH)
        data: dict = {}
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        cfg = Config(data)
        if use_env:
            cfg.apply_env(os.environ)
        return cfg

    def get(self, *keys, default=None):
        cur: Any = self
        for k in keys:
            if isinstance(cur, dict) and k in cur:
                cur = cur[k]
            else:
                return default
        return cur

    def set(self, *keys_and_value):
        *keys, value = keys_and_value
        cur: dict = self
        for k in keys[:-1]:
            nxt = cur.get(k)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[k] = nxt
            cur = nxt
        cur[keys[-1]] = value

    def apply_env(self, environ) -> None:
        for var, keys in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                self.set(*keys, value)

    @property
    def token(self) -> str:
        return str(self.get("bot", "discord_token", default="") or "")

    @property
    def log_level(self) -> str:
        return str(self.get("logging", "log_level", default="info") or "info").upper()

    @property
    def owners(self) -> set[int]:
        return {int(x) for x in (self.get("bot", "owners", default=[]) or [])}

    def ai(self, section: str, key: str, default=None):
        return self.get("ai", section, key, default=default)
