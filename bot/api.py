# bot/api.py
# HTTP adapter in front of the profile bot:
#  - POST /api/messages : run one turn for the posted activity, return the replies
#  - GET  /api/profiles/{channel_id}/{user_id} : stored user profile (debug/testing)
#
# Turns for the same conversation are serialized with a per-conversation lock;
# different conversations run independently.

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

import db
from dialogs.state import ConversationState, UserState, user_storage_key
from dialogs.storage import MemoryStorage, SqlStorage, Storage
from dialogs.turn import Activity, TurnContext
from .accessors import BotAccessors, UserProfile
from .profile_bot import ProfileBot
from .settings import STORAGE_BACKEND

logger = logging.getLogger(__name__)

router = APIRouter()


class TurnOut(BaseModel):
    replies: List[str]
    status: str  # empty | waiting | complete | none (non-message activity)


def make_storage(backend: str = STORAGE_BACKEND) -> Storage:
    if backend == "memory":
        return MemoryStorage()
    if backend == "sql":
        return SqlStorage(db.engine)
    raise ValueError(f"unknown storage backend '{backend}' (expected 'memory' or 'sql')")


def build_bot(storage: Storage) -> ProfileBot:
    return ProfileBot(BotAccessors(ConversationState(storage), UserState(storage)))


STORAGE: Storage = make_storage()
BOT: ProfileBot = build_bot(STORAGE)

_LOCKS: Dict[str, asyncio.Lock] = {}
_WAITERS: Dict[str, int] = {}


@asynccontextmanager
async def conversation_lock(key: str):
    """Serialize turns for one conversation; the lock is dropped once nobody holds or awaits it."""
    lock = _LOCKS.setdefault(key, asyncio.Lock())
    _WAITERS[key] = _WAITERS.get(key, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _WAITERS[key] -= 1
        if not _WAITERS[key]:
            del _WAITERS[key]
            del _LOCKS[key]


def get_bot() -> ProfileBot:
    return BOT


@router.post("/messages", response_model=TurnOut)
async def post_activity(activity: Activity, bot: ProfileBot = Depends(get_bot)):
    turn = TurnContext(activity)
    async with conversation_lock(f"{activity.channel_id}/{activity.conversation_id}"):
        result = await bot.on_turn(turn)
    return TurnOut(
        replies=turn.responses,
        status=result.status.value if result is not None else "none",
    )


@router.get("/profiles/{channel_id}/{user_id}", response_model=UserProfile)
async def get_profile(channel_id: str, user_id: str, bot: ProfileBot = Depends(get_bot)):
    storage = bot.accessors.user_state.storage
    key = user_storage_key(channel_id, user_id)
    doc = (await storage.read([key])).get(key) or {}
    if "UserProfile" not in doc:
        raise HTTPException(404, f"No profile for {key}")
    return UserProfile.model_validate(doc["UserProfile"])
