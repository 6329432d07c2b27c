# dialogs/waterfall.py
# A waterfall is a fixed list of async steps. Each step sees the previous
# step's result and says what happens next by returning one of:
#   Prompt(dialog_id, options)  -> push a nested dialog, stay on this step
#   Next(value)                 -> run the following step now with `value`
#   End(value)                  -> pop the waterfall, hand `value` to the parent
#   Replace(dialog_id, options) -> pop the waterfall, begin `dialog_id` instead
#
# Entry state layout: {"step_index": int, "options": <json or None>}
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from .base import DialogStackEntry, DialogTurnResult, PromptOptions
from .errors import InvalidStepOutcome

if TYPE_CHECKING:
    from .context import DialogContext
    from .turn import TurnContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prompt:
    dialog_id: str
    options: Optional[PromptOptions] = None


@dataclass(frozen=True)
class Next:
    value: Any = None


@dataclass(frozen=True)
class End:
    value: Any = None


@dataclass(frozen=True)
class Replace:
    dialog_id: str
    options: Any = None


StepOutcome = Union[Prompt, Next, End, Replace]


@dataclass
class WaterfallStepContext:
    dc: "DialogContext"
    index: int
    result: Any = None
    options: Any = None

    @property
    def turn(self) -> "TurnContext":
        return self.dc.turn


WaterfallStep = Callable[[WaterfallStepContext], Awaitable[StepOutcome]]


class WaterfallDialog:
    kind = "waterfall"

    def __init__(self, id: str, steps: Sequence[WaterfallStep]):
        self.id = id
        self.steps: Tuple[WaterfallStep, ...] = tuple(steps)

    def __repr__(self) -> str:
        return f"WaterfallDialog(id={self.id!r}, steps={len(self.steps)})"


def _json_options(options: Any) -> Any:
    if isinstance(options, BaseModel):
        return options.model_dump(mode="json")
    return options


async def begin_waterfall(
    dc: "DialogContext", dialog: WaterfallDialog, entry: DialogStackEntry, options: Any
) -> DialogTurnResult:
    entry.state = {"step_index": 0, "options": _json_options(options)}
    return await _run_step(dc, dialog, entry, None)


async def resume_waterfall(
    dc: "DialogContext", dialog: WaterfallDialog, entry: DialogStackEntry, result: Any
) -> DialogTurnResult:
    """The nested dialog finished (or input arrived directly): advance one step."""
    entry.state["step_index"] = int(entry.state.get("step_index", 0)) + 1
    return await _run_step(dc, dialog, entry, result)


async def _run_step(
    dc: "DialogContext", dialog: WaterfallDialog, entry: DialogStackEntry, result: Any
) -> DialogTurnResult:
    index = int(entry.state.get("step_index", 0))
    if index >= len(dialog.steps):
        return await dc.end_active_dialog(result)

    step = dialog.steps[index]
    logger.debug("[DIALOG] %s step %d/%d", dialog.id, index + 1, len(dialog.steps))
    outcome = await step(WaterfallStepContext(dc, index, result, entry.state.get("options")))

    if isinstance(outcome, Prompt):
        return await dc.begin_dialog(outcome.dialog_id, outcome.options)
    if isinstance(outcome, Next):
        return await resume_waterfall(dc, dialog, entry, outcome.value)
    if isinstance(outcome, End):
        return await dc.end_active_dialog(outcome.value)
    if isinstance(outcome, Replace):
        return await dc.replace_dialog(outcome.dialog_id, outcome.options)
    raise InvalidStepOutcome(
        f"step {index} of '{dialog.id}' returned {type(outcome).__name__}, expected Prompt/Next/End/Replace"
    )
