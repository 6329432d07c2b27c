# dialogs/context.py
# The per-conversation dialog stack. Only the top entry ever runs; a finished
# entry is popped and its result handed to the entry below it, until a dialog
# waits for input or the stack runs empty.
#
# The DialogState passed in is the snapshot loaded for this turn. Every
# operation leaves it describing where to resume next turn, and that is what
# ConversationState saves at the end of the turn.
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from .base import DialogStackEntry, DialogState, DialogTurnResult, PromptOptions
from .errors import DialogError, require
from .prompts import begin_prompt, resume_prompt
from .turn import TurnContext
from .waterfall import begin_waterfall, resume_waterfall

if TYPE_CHECKING:
    from .registry import DialogRegistry

logger = logging.getLogger(__name__)


def _prompt_options(options: Any) -> Optional[PromptOptions]:
    if options is None or isinstance(options, PromptOptions):
        return options
    return PromptOptions.model_validate(options)


class DialogContext:
    def __init__(self, registry: "DialogRegistry", turn: TurnContext, state: DialogState):
        self.registry = require(registry, "registry")
        self.turn = require(turn, "turn")
        self.state = require(state, "dialog state")

    @property
    def stack(self) -> List[DialogStackEntry]:
        return self.state.dialog_stack

    @property
    def active_dialog(self) -> Optional[DialogStackEntry]:
        return self.stack[-1] if self.stack else None

    def snapshot(self) -> DialogState:
        return self.state.model_copy(deep=True)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        dialog = self.registry.find(dialog_id)
        entry = DialogStackEntry(dialog_id=dialog_id)
        self.stack.append(entry)
        logger.debug("[DIALOG] begin %s (depth %d)", dialog_id, len(self.stack))

        if dialog.kind == "prompt":
            return await begin_prompt(self, dialog, entry, _prompt_options(options))
        if dialog.kind == "waterfall":
            return await begin_waterfall(self, dialog, entry, options)
        raise DialogError(f"dialog '{dialog_id}' has unsupported kind '{dialog.kind}'")

    async def prompt(self, dialog_id: str, options: Optional[PromptOptions] = None) -> DialogTurnResult:
        return await self.begin_dialog(dialog_id, options)

    async def continue_dialog(self, text: Optional[str] = None) -> DialogTurnResult:
        entry = self.active_dialog
        if entry is None:
            return DialogTurnResult.empty()

        dialog = self.registry.find(entry.dialog_id)
        if dialog.kind == "prompt":
            return await resume_prompt(self, dialog, entry, text)
        if dialog.kind == "waterfall":
            # no nested prompt is waiting: the raw text is the step's result
            return await resume_waterfall(self, dialog, entry, text)
        raise DialogError(f"dialog '{entry.dialog_id}' has unsupported kind '{dialog.kind}'")

    async def end_active_dialog(self, result: Any = None) -> DialogTurnResult:
        """Pop the top entry and hand `result` to the entry below it."""
        finished = self.stack.pop()
        logger.debug("[DIALOG] end %s (depth %d)", finished.dialog_id, len(self.stack))

        parent = self.active_dialog
        if parent is None:
            return DialogTurnResult.complete(result)

        dialog = self.registry.find(parent.dialog_id)
        if dialog.kind == "waterfall":
            return await resume_waterfall(self, dialog, parent, result)
        if dialog.kind == "prompt":
            # a prompt never starts children; if one sits below, ask again
            opts = PromptOptions.model_validate(parent.state.get("options") or {})
            if opts.prompt:
                await self.turn.send_activity(opts.prompt)
            return DialogTurnResult.waiting()
        raise DialogError(f"dialog '{parent.dialog_id}' has unsupported kind '{dialog.kind}'")

    async def end_dialog(self) -> Optional[DialogStackEntry]:
        """Pop the top entry without resuming anything; the caller decides what comes next."""
        if not self.stack:
            return None
        entry = self.stack.pop()
        logger.debug("[DIALOG] drop %s (depth %d)", entry.dialog_id, len(self.stack))
        return entry

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        await self.end_dialog()
        return await self.begin_dialog(dialog_id, options)

    async def cancel_all_dialogs(self) -> DialogTurnResult:
        if not self.stack:
            return DialogTurnResult.empty()
        logger.info("[DIALOG] cancel %d dialog(s)", len(self.stack))
        self.stack.clear()
        return DialogTurnResult.complete(None)
