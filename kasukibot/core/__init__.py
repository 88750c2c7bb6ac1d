# Core package
# - configurations.py: Config, SUPPORTED_LANGUAGES
# - dispatch.py: DataDispatcher over db.py (SQLite) / pg.py (PostgreSQL), ModuleService
# - cache.py: CacheCell
# - anilist.py, vndb.py, waifu.py, ai.py: HTTP API clients on top of http.py
# - leveling.py: XP levels and affinity
# - activity.py, random_stats.py: state used by the background loops

from .configurations import Config
from .dispatch import DataDispatcher, ModuleService
from .errors import KasukiError

__all__ = ["Config", "DataDispatcher", "ModuleService", "KasukiError"]
