# dialogs/prompts.py
# Single-question dialogs: ask, recognize the reply, validate, retry until valid.
#
# Entry state layout: {"options": {"prompt": ..., "retry_prompt": ...}, "attempts": n}
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from .base import DialogStackEntry, DialogTurnResult, PromptOptions

if TYPE_CHECKING:
    from .context import DialogContext

logger = logging.getLogger(__name__)

TEXT = "text"
CONFIRM = "confirm"
NUMBER = "number"

_YES = {"yes", "y", "yeah", "yep", "ok", "okay", "sure", "true", "1"}
_NO = {"no", "n", "nope", "false", "0"}
_NUMBER_TOKEN = re.compile(r"[-+]?\d+(?:[.,]\d+)?")
_INTEGER = re.compile(r"[-+]?\d+")


@dataclass(frozen=True)
class Recognized:
    succeeded: bool
    value: Any = None


# Validators get what the recognizer produced and return the final outcome.
# They may replace the value (normalization) or reject it.
Validator = Callable[[Recognized], Recognized]


def recognize_text(text: Optional[str]) -> Recognized:
    if text is None:
        return Recognized(False)
    return Recognized(True, text)


def recognize_confirm(text: Optional[str]) -> Recognized:
    t = (text or "").strip().strip(".!?,").strip().lower()
    if t in _YES:
        return Recognized(True, True)
    if t in _NO:
        return Recognized(True, False)
    return Recognized(False)


def recognize_number(text: Optional[str]) -> Recognized:
    tokens = _NUMBER_TOKEN.findall(text or "")
    if len(tokens) != 1 or not _INTEGER.fullmatch(tokens[0]):
        return Recognized(False)
    return Recognized(True, int(tokens[0]))


RECOGNIZERS: Dict[str, Callable[[Optional[str]], Recognized]] = {
    TEXT: recognize_text,
    CONFIRM: recognize_confirm,
    NUMBER: recognize_number,
}


@dataclass(frozen=True)
class PromptDialog:
    id: str
    input_kind: str
    validator: Optional[Validator] = None
    prompt: Optional[str] = None
    retry_prompt: Optional[str] = None
    kind: str = field(default="prompt", init=False)

    def __post_init__(self):
        if self.input_kind not in RECOGNIZERS:
            raise ValueError(f"unknown prompt input kind '{self.input_kind}' for dialog '{self.id}'")

    def recognize(self, text: Optional[str]) -> Recognized:
        outcome = RECOGNIZERS[self.input_kind](text)
        if outcome.succeeded and self.validator is not None:
            outcome = self.validator(outcome)
        return outcome


def text_prompt(dialog_id: str, validator: Optional[Validator] = None, **kw) -> PromptDialog:
    return PromptDialog(dialog_id, TEXT, validator, **kw)


def confirm_prompt(dialog_id: str, validator: Optional[Validator] = None, **kw) -> PromptDialog:
    return PromptDialog(dialog_id, CONFIRM, validator, **kw)


def number_prompt(dialog_id: str, validator: Optional[Validator] = None, **kw) -> PromptDialog:
    return PromptDialog(dialog_id, NUMBER, validator, **kw)


async def begin_prompt(
    dc: "DialogContext", dialog: PromptDialog, entry: DialogStackEntry, options: Optional[PromptOptions]
) -> DialogTurnResult:
    options = options or PromptOptions()
    resolved = PromptOptions(
        prompt=options.prompt or dialog.prompt,
        retry_prompt=options.retry_prompt or dialog.retry_prompt,
    )
    entry.state = {"options": resolved.model_dump(), "attempts": 0}
    if resolved.prompt:
        await dc.turn.send_activity(resolved.prompt)
    return DialogTurnResult.waiting()


async def resume_prompt(
    dc: "DialogContext", dialog: PromptDialog, entry: DialogStackEntry, text: Optional[str]
) -> DialogTurnResult:
    outcome = dialog.recognize(text)
    if outcome.succeeded:
        return await dc.end_active_dialog(outcome.value)

    entry.state["attempts"] = int(entry.state.get("attempts", 0)) + 1
    opts = PromptOptions.model_validate(entry.state.get("options") or {})
    logger.info("[PROMPT] %s rejected input (attempt %d)", dialog.id, entry.state["attempts"])
    retry = opts.retry_prompt or opts.prompt
    if retry:
        await dc.turn.send_activity(retry)
    return DialogTurnResult.waiting()
