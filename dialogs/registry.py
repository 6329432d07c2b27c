# dialogs/registry.py
# Dialog id -> definition. Filled once at bot construction, read-only afterwards.
from __future__ import annotations

from typing import Dict, Iterator, Union

from .base import DialogState
from .context import DialogContext
from .errors import DuplicateDialogError, UnknownDialogError, require
from .prompts import PromptDialog
from .state import StatePropertyAccessor
from .turn import TurnContext
from .waterfall import WaterfallDialog

DialogDefinition = Union[PromptDialog, WaterfallDialog]


class DialogRegistry:
    """
    Holds the dialog definitions of one bot and the accessor for the
    conversation's persisted DialogState, so it can build a DialogContext
    for each turn.
    """

    def __init__(self, dialog_state: StatePropertyAccessor):
        self.dialog_state = require(dialog_state, "dialog_state accessor")
        self._dialogs: Dict[str, DialogDefinition] = {}

    def add(self, dialog: DialogDefinition) -> "DialogRegistry":
        require(dialog, "dialog")
        if dialog.id in self._dialogs:
            raise DuplicateDialogError(f"dialog id '{dialog.id}' is already registered")
        self._dialogs[dialog.id] = dialog
        return self

    def find(self, dialog_id: str) -> DialogDefinition:
        try:
            return self._dialogs[dialog_id]
        except KeyError:
            raise UnknownDialogError(dialog_id) from None

    def __contains__(self, dialog_id: str) -> bool:
        return dialog_id in self._dialogs

    def __iter__(self) -> Iterator[str]:
        return iter(self._dialogs)

    def __len__(self) -> int:
        return len(self._dialogs)

    async def create_context(self, turn: TurnContext) -> DialogContext:
        state = await self.dialog_state.get(turn, DialogState)
        return DialogContext(self, turn, state)
