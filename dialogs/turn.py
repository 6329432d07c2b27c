# dialogs/turn.py
# Inbound activity model and the per-turn context handed to the bot and dialogs.
#  - Activity mirrors the JSON the channel adapter posts (camelCase aliases)
#  - TurnContext buffers outbound replies in order and caches loaded state
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import require

logger = logging.getLogger(__name__)


class ActivityTypes:
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"


class ChannelAccount(BaseModel):
    id: str
    name: Optional[str] = None


class ConversationAccount(BaseModel):
    id: str


class Activity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    text: Optional[str] = None
    channel_id: str = Field(default="default", alias="channelId")
    conversation: ConversationAccount
    from_: ChannelAccount = Field(alias="from")
    recipient: Optional[ChannelAccount] = None
    members_added: List[ChannelAccount] = Field(default_factory=list, alias="membersAdded")

    @property
    def conversation_id(self) -> str:
        return self.conversation.id

    @property
    def user_id(self) -> str:
        return self.from_.id


class TurnContext:
    """
    One request/response cycle.

    `responses` is the ordered list of texts sent during the turn; the HTTP
    adapter returns it to the channel. `turn_state` is where BotState caches
    the documents it loaded so every accessor in the turn sees the same copy.
    """

    def __init__(self, activity: Activity):
        self.activity = require(activity, "activity")
        self.responses: List[str] = []
        self.turn_state: Dict[str, Any] = {}

    async def send_activity(self, text: str) -> None:
        logger.debug("[TURN] %s -> %r", self.activity.conversation_id, text)
        self.responses.append(text)

    async def send_activities(self, texts: Iterable[str]) -> None:
        for text in texts:
            await self.send_activity(text)
