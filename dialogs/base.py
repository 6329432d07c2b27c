# dialogs/base.py
# Shared types for the dialog engine: turn results, persisted stack entries and
# the options a caller hands to a prompt.
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DialogTurnStatus(str, Enum):
    EMPTY = "empty"        # nothing was on the stack
    WAITING = "waiting"    # the active dialog needs another turn
    COMPLETE = "complete"  # the outermost dialog finished this turn


@dataclass(frozen=True)
class DialogTurnResult:
    """Transient outcome of driving the stack for one turn. Never persisted."""
    status: DialogTurnStatus
    result: Any = None

    @classmethod
    def empty(cls) -> "DialogTurnResult":
        return cls(DialogTurnStatus.EMPTY)

    @classmethod
    def waiting(cls) -> "DialogTurnResult":
        return cls(DialogTurnStatus.WAITING)

    @classmethod
    def complete(cls, result: Any = None) -> "DialogTurnResult":
        return cls(DialogTurnStatus.COMPLETE, result)


class PromptOptions(BaseModel):
    """
    Per-use text for a prompt. Overrides the prompt's defaults and is stored
    in the stack entry so the retry text survives between turns.
    """
    prompt: Optional[str] = None
    retry_prompt: Optional[str] = None


class DialogStackEntry(BaseModel):
    dialog_id: str
    state: Dict[str, Any] = Field(default_factory=dict)


class DialogState(BaseModel):
    """Persisted per conversation. Innermost (active) dialog is the last entry."""
    dialog_stack: List[DialogStackEntry] = Field(default_factory=list)
