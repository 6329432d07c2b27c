"""Shared fixtures: an in-memory bot and helpers to post activities to it."""
import os

# must be set before any project module reads bot.settings
os.environ.setdefault("PROFILE_BOT_STORAGE", "memory")
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("AUDIT_ENABLE", "0")

import pytest

from bot.accessors import BotAccessors
from bot.profile_bot import ProfileBot
from dialogs.state import ConversationState, UserState
from dialogs.storage import MemoryStorage
from dialogs.turn import Activity, ChannelAccount, ConversationAccount, TurnContext

BOT_ID = "bot"
CHANNEL = "test"


def make_activity(type="message", text=None, user="user-1", conversation="conv-1", members_added=None):
    return Activity(
        type=type,
        text=text,
        channel_id=CHANNEL,
        conversation=ConversationAccount(id=conversation),
        from_=ChannelAccount(id=user),
        recipient=ChannelAccount(id=BOT_ID),
        members_added=[ChannelAccount(id=m) for m in (members_added or [])],
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def profile_bot(storage):
    return ProfileBot(BotAccessors(ConversationState(storage), UserState(storage)))


@pytest.fixture
def say(profile_bot):
    """Send one message turn and return the replies it produced."""

    async def _say(text, user="user-1", conversation="conv-1"):
        turn = TurnContext(make_activity(text=text, user=user, conversation=conversation))
        await profile_bot.on_turn(turn)
        return turn.responses

    return _say
