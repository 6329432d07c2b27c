# dialogs/state.py
# Conversation- and user-scoped state on top of a Storage backend.
#
# A BotState loads its document once per turn (cached in TurnContext.turn_state),
# property accessors read/write named entries of that document, and
# save_changes() writes the whole document back. The write is unconditional:
# even a turn that changed nothing persists the latest snapshot.
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel

from .errors import require
from .storage import Storage
from .turn import TurnContext

logger = logging.getLogger(__name__)


def conversation_storage_key(channel_id: str, conversation_id: str) -> str:
    return f"{channel_id}/conversations/{conversation_id}"


def user_storage_key(channel_id: str, user_id: str) -> str:
    return f"{channel_id}/users/{user_id}"


class BotState:
    def __init__(self, storage: Storage, cache_key: str):
        self.storage = require(storage, "storage")
        self._cache_key = cache_key

    def get_storage_key(self, turn: TurnContext) -> str:
        raise NotImplementedError

    def create_property(self, name: str, model: Optional[Type[BaseModel]] = None) -> "StatePropertyAccessor":
        return StatePropertyAccessor(self, name, model)

    async def load(self, turn: TurnContext, force: bool = False) -> Dict[str, Any]:
        doc = turn.turn_state.get(self._cache_key)
        if doc is None or force:
            key = self.get_storage_key(turn)
            items = await self.storage.read([key])
            doc = items.get(key, {})
            turn.turn_state[self._cache_key] = doc
        return doc

    async def save_changes(self, turn: TurnContext) -> None:
        doc = await self.load(turn)
        key = self.get_storage_key(turn)
        await self.storage.write({key: _to_document(doc)})
        logger.debug("[STATE] saved %s (%s)", key, ", ".join(sorted(doc)) or "empty")

    def clear_state(self, turn: TurnContext) -> None:
        """Drop everything for this scope; takes effect on the next save."""
        turn.turn_state[self._cache_key] = {}


class ConversationState(BotState):
    def __init__(self, storage: Storage):
        super().__init__(storage, "ConversationState")

    def get_storage_key(self, turn: TurnContext) -> str:
        a = turn.activity
        return conversation_storage_key(a.channel_id, a.conversation_id)


class UserState(BotState):
    def __init__(self, storage: Storage):
        super().__init__(storage, "UserState")

    def get_storage_key(self, turn: TurnContext) -> str:
        a = turn.activity
        return user_storage_key(a.channel_id, a.user_id)


class StatePropertyAccessor:
    """Typed view of one named entry inside a BotState document."""

    def __init__(self, state: BotState, name: str, model: Optional[Type[BaseModel]] = None):
        self.state = require(state, "state")
        self.name = name
        self.model = model

    async def get(self, turn: TurnContext, default_factory: Optional[Callable[[], Any]] = None) -> Any:
        doc = await self.state.load(turn)
        if self.name not in doc:
            if default_factory is None:
                return None
            doc[self.name] = default_factory()
        value = doc[self.name]
        if self.model is not None and not isinstance(value, self.model):
            value = self.model.model_validate(value)
            doc[self.name] = value
        return value

    async def set(self, turn: TurnContext, value: Any) -> None:
        doc = await self.state.load(turn)
        doc[self.name] = value

    async def delete(self, turn: TurnContext) -> None:
        doc = await self.state.load(turn)
        doc.pop(self.name, None)


def _to_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        name: value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        for name, value in doc.items()
    }
