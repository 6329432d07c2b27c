# bot/settings.py
from __future__ import annotations
import os

def env_flag(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1","true","yes","y","on"}

# "sql" keeps state in DB_URL, "memory" keeps it in-process (lost on restart)
STORAGE_BACKEND: str = os.getenv("PROFILE_BOT_STORAGE", "sql").strip().lower()
DB_URL: str = os.getenv("DB_URL", "sqlite:///./profile_bot.db")

BOT_LANG: str = os.getenv("BOT_LANG", "en")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
AUDIT_ENABLE: bool = env_flag("AUDIT_ENABLE", True)
