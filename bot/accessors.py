# bot/accessors.py
# State collaborators the profile bot is built with.
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from dialogs.base import DialogState
from dialogs.errors import require
from dialogs.state import ConversationState, StatePropertyAccessor, UserState

DECLINED_AGE = -1  # user said no to "May I ask your age?"


class UserProfile(BaseModel):
    """Per-user, outlives any single conversation. Only ProfileBot writes it."""
    handle_name: Optional[str] = None
    age: Optional[int] = None


class BotAccessors:
    def __init__(self, conversation_state: ConversationState, user_state: UserState):
        self.conversation_state = require(conversation_state, "conversation_state")
        self.user_state = require(user_state, "user_state")
        self.conversation_dialog_state: StatePropertyAccessor = conversation_state.create_property(
            "DialogState", DialogState
        )
        self.user_profile: StatePropertyAccessor = user_state.create_property("UserProfile", UserProfile)
