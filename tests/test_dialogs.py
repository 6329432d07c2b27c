"""DialogContext / waterfall / prompt behavior, independent of the profile bot."""
import pytest

from dialogs.base import DialogState, DialogTurnStatus, PromptOptions
from dialogs.context import DialogContext
from dialogs.errors import ConfigurationError, DuplicateDialogError, InvalidStepOutcome, UnknownDialogError
from dialogs.prompts import (
    PromptDialog,
    Recognized,
    confirm_prompt,
    number_prompt,
    recognize_confirm,
    recognize_number,
    recognize_text,
    text_prompt,
)
from dialogs.registry import DialogRegistry
from dialogs.state import ConversationState
from dialogs.storage import MemoryStorage
from dialogs.turn import TurnContext
from dialogs.waterfall import End, Next, Prompt, Replace, WaterfallDialog

from conftest import make_activity


def make_registry(*dialogs):
    accessor = ConversationState(MemoryStorage()).create_property("DialogState", DialogState)
    registry = DialogRegistry(accessor)
    for d in dialogs:
        registry.add(d)
    return registry


def make_dc(registry, state=None):
    return DialogContext(registry, TurnContext(make_activity(text="")), state or DialogState())


def step_indexes(dc):
    return [e.state.get("step_index") for e in dc.stack]


class TestRecognizers:

    @pytest.mark.parametrize("text,expected", [
        ("yes", True), ("Y", True), ("ok!", True), ("  Sure. ", True),
        ("no", False), ("N", False), ("nope", False),
    ])
    def test_confirm(self, text, expected):
        assert recognize_confirm(text) == Recognized(True, expected)

    @pytest.mark.parametrize("text", ["", None, "maybe", "yes no", "definitely"])
    def test_confirm_unrecognized(self, text):
        assert recognize_confirm(text).succeeded is False

    @pytest.mark.parametrize("text,expected", [("29", 29), (" 7 ", 7), ("I'm 41", 41), ("-3", -3)])
    def test_number(self, text, expected):
        assert recognize_number(text) == Recognized(True, expected)

    @pytest.mark.parametrize("text", ["", None, "twenty", "29.5", "1 or 2", "3,5"])
    def test_number_unrecognized(self, text):
        assert recognize_number(text).succeeded is False

    def test_text(self):
        assert recognize_text("hi") == Recognized(True, "hi")
        assert recognize_text("   ") == Recognized(True, "   ")
        assert recognize_text("") == Recognized(True, "")
        assert recognize_text(None).succeeded is False

    def test_unknown_input_kind(self):
        with pytest.raises(ValueError):
            PromptDialog("p", "date")


class TestPrompt:

    @pytest.mark.asyncio
    async def test_begin_sends_one_message_and_waits(self):
        dc = make_dc(make_registry(text_prompt("p", prompt="Name?", retry_prompt="Again?")))
        result = await dc.begin_dialog("p")

        assert result.status is DialogTurnStatus.WAITING
        assert dc.turn.responses == ["Name?"]
        assert [e.dialog_id for e in dc.stack] == ["p"]

    @pytest.mark.asyncio
    async def test_options_override_defaults(self):
        dc = make_dc(make_registry(text_prompt("p", prompt="Name?", retry_prompt="Again?")))
        await dc.prompt("p", PromptOptions(prompt="Who are you?"))
        await dc.continue_dialog(None)

        assert dc.turn.responses == ["Who are you?", "Again?"]

    @pytest.mark.asyncio
    async def test_success_pops_without_message(self):
        dc = make_dc(make_registry(number_prompt("n", prompt="Number?")))
        await dc.begin_dialog("n")
        result = await dc.continue_dialog("12")

        assert result.status is DialogTurnStatus.COMPLETE
        assert result.result == 12
        assert dc.stack == []
        assert dc.turn.responses == ["Number?"]

    @pytest.mark.asyncio
    async def test_failure_counts_attempts(self):
        dc = make_dc(make_registry(confirm_prompt("c", prompt="Sure?", retry_prompt="yes or no")))
        await dc.begin_dialog("c")
        await dc.continue_dialog("what")
        await dc.continue_dialog("huh")

        assert dc.active_dialog.state["attempts"] == 2
        assert dc.turn.responses == ["Sure?", "yes or no", "yes or no"]

    @pytest.mark.asyncio
    async def test_validator_can_reject_and_normalize(self):
        def even_only(r):
            return Recognized(r.value % 2 == 0, r.value // 2)

        dc = make_dc(make_registry(number_prompt("n", even_only, prompt="Even?", retry_prompt="Even please")))
        await dc.begin_dialog("n")
        assert (await dc.continue_dialog("3")).status is DialogTurnStatus.WAITING
        result = await dc.continue_dialog("8")
        assert result.result == 4

    @pytest.mark.asyncio
    async def test_retry_survives_reload(self):
        registry = make_registry(text_prompt("p"))
        dc = make_dc(registry)
        await dc.prompt("p", PromptOptions(prompt="Q", retry_prompt="R"))

        reloaded = make_dc(registry, DialogState.model_validate(dc.snapshot().model_dump(mode="json")))
        await reloaded.continue_dialog(None)
        assert reloaded.turn.responses == ["R"]


class TestDialogContext:

    @pytest.mark.asyncio
    async def test_continue_on_empty_stack(self):
        dc = make_dc(make_registry())
        result = await dc.continue_dialog("anything")
        assert result.status is DialogTurnStatus.EMPTY
        assert dc.turn.responses == []

    @pytest.mark.asyncio
    async def test_unknown_dialog(self):
        dc = make_dc(make_registry())
        with pytest.raises(UnknownDialogError):
            await dc.begin_dialog("missing")
        with pytest.raises(KeyError):
            await dc.begin_dialog("missing")
        assert dc.stack == []

    def test_duplicate_registration(self):
        with pytest.raises(DuplicateDialogError):
            make_registry(text_prompt("p"), confirm_prompt("p"))

    def test_missing_collaborators(self):
        with pytest.raises(ConfigurationError):
            DialogRegistry(None)
        with pytest.raises(ConfigurationError):
            DialogContext(make_registry(), None, DialogState())
        with pytest.raises(ConfigurationError):
            ConversationState(None)

    @pytest.mark.asyncio
    async def test_end_dialog_does_not_resume_parent(self):
        async def ask(step):
            return Prompt("p", PromptOptions(prompt="Q"))

        dc = make_dc(make_registry(text_prompt("p"), WaterfallDialog("w", [ask, ask])))
        await dc.begin_dialog("w")
        popped = await dc.end_dialog()

        assert popped.dialog_id == "p"
        assert [e.dialog_id for e in dc.stack] == ["w"]
        assert step_indexes(dc) == [0]
        assert dc.turn.responses == ["Q"]

    @pytest.mark.asyncio
    async def test_completed_child_over_prompt_reasks_prompt(self):
        dc = make_dc(make_registry(text_prompt("p", prompt="P?"), text_prompt("q", prompt="Q?")))
        await dc.begin_dialog("p")
        await dc.begin_dialog("q")
        result = await dc.continue_dialog("answer")

        assert result.status is DialogTurnStatus.WAITING
        assert [e.dialog_id for e in dc.stack] == ["p"]
        assert dc.turn.responses == ["P?", "Q?", "P?"]

    @pytest.mark.asyncio
    async def test_end_dialog_on_empty_stack(self):
        dc = make_dc(make_registry())
        assert await dc.end_dialog() is None

    @pytest.mark.asyncio
    async def test_replace_dialog(self):
        dc = make_dc(make_registry(text_prompt("a", prompt="A?"), text_prompt("b", prompt="B?")))
        await dc.begin_dialog("a")
        result = await dc.replace_dialog("b")

        assert result.status is DialogTurnStatus.WAITING
        assert [e.dialog_id for e in dc.stack] == ["b"]
        assert dc.turn.responses == ["A?", "B?"]

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        dc = make_dc(make_registry(text_prompt("a", prompt="A?")))
        assert (await dc.cancel_all_dialogs()).status is DialogTurnStatus.EMPTY
        await dc.begin_dialog("a")
        assert (await dc.cancel_all_dialogs()).status is DialogTurnStatus.COMPLETE
        assert dc.stack == []

    @pytest.mark.asyncio
    async def test_snapshot_is_detached(self):
        dc = make_dc(make_registry(text_prompt("a", prompt="A?")))
        await dc.begin_dialog("a")
        snap = dc.snapshot()
        await dc.end_dialog()

        assert [e.dialog_id for e in snap.dialog_stack] == ["a"]
        assert dc.stack == []


class TestWaterfall:

    @pytest.mark.asyncio
    async def test_steps_receive_previous_result(self):
        seen = []

        async def first(step):
            seen.append((step.index, step.result))
            return Prompt("n", PromptOptions(prompt="n?"))

        async def second(step):
            seen.append((step.index, step.result))
            return Next(step.result * 10)

        async def third(step):
            seen.append((step.index, step.result))
            return End(step.result + 1)

        dc = make_dc(make_registry(number_prompt("n"), WaterfallDialog("w", [first, second, third])))
        assert (await dc.begin_dialog("w")).status is DialogTurnStatus.WAITING
        assert step_indexes(dc) == [0, None]

        result = await dc.continue_dialog("4")
        assert result.status is DialogTurnStatus.COMPLETE
        assert result.result == 41
        assert seen == [(0, None), (1, 4), (2, 40)]
        assert dc.stack == []

    @pytest.mark.asyncio
    async def test_step_index_monotonic(self):
        async def ask(step):
            return Prompt("t", PromptOptions(prompt=f"q{step.index}"))

        dc = make_dc(make_registry(text_prompt("t"), WaterfallDialog("w", [ask, ask, ask])))
        await dc.begin_dialog("w")
        indexes = [dc.stack[0].state["step_index"]]
        for answer in ("a", "b"):
            await dc.continue_dialog(answer)
            indexes.append(dc.stack[0].state["step_index"])

        assert indexes == [0, 1, 2]
        assert dc.turn.responses == ["q0", "q1", "q2"]

    @pytest.mark.asyncio
    async def test_running_past_last_step_ends(self):
        async def ask(step):
            return Prompt("t", PromptOptions(prompt="q"))

        dc = make_dc(make_registry(text_prompt("t"), WaterfallDialog("w", [ask])))
        await dc.begin_dialog("w")
        result = await dc.continue_dialog("answer")

        assert result.status is DialogTurnStatus.COMPLETE
        assert result.result == "answer"
        assert dc.stack == []

    @pytest.mark.asyncio
    async def test_empty_waterfall_completes_immediately(self):
        dc = make_dc(make_registry(WaterfallDialog("w", [])))
        result = await dc.begin_dialog("w", {"x": 1})
        assert result.status is DialogTurnStatus.COMPLETE
        assert dc.stack == []

    @pytest.mark.asyncio
    async def test_child_waterfall_result_bubbles_to_parent(self):
        async def start_child(step):
            return Prompt("child")

        async def child_ask(step):
            return Prompt("t", PromptOptions(prompt="child q"))

        async def child_done(step):
            return End(step.result.upper())

        async def parent_done(step):
            await step.turn.send_activity(f"parent got {step.result}")
            return End(step.result)

        dc = make_dc(make_registry(
            text_prompt("t"),
            WaterfallDialog("child", [child_ask, child_done]),
            WaterfallDialog("parent", [start_child, parent_done]),
        ))
        await dc.begin_dialog("parent")
        assert [e.dialog_id for e in dc.stack] == ["parent", "child", "t"]

        result = await dc.continue_dialog("hey")
        assert result.result == "HEY"
        assert dc.turn.responses == ["child q", "parent got HEY"]
        assert dc.stack == []

    @pytest.mark.asyncio
    async def test_replace_restarts_without_leaking_state(self):
        runs = []

        async def first(step):
            runs.append(step.options)
            return Prompt("t", PromptOptions(prompt="again?"))

        async def second(step):
            if step.result == "restart":
                return Replace("w", {"round": 2})
            return End(step.result)

        dc = make_dc(make_registry(text_prompt("t"), WaterfallDialog("w", [first, second])))
        await dc.begin_dialog("w", {"round": 1})
        dc.stack[0].state["scratch"] = "left over"

        await dc.continue_dialog("restart")
        assert [e.dialog_id for e in dc.stack] == ["w", "t"]
        assert dc.stack[0].state == {"step_index": 0, "options": {"round": 2}}
        assert runs == [{"round": 1}, {"round": 2}]
        assert dc.turn.responses == ["again?", "again?"]

    @pytest.mark.asyncio
    async def test_invalid_step_outcome(self):
        async def bad(step):
            return "oops"

        dc = make_dc(make_registry(WaterfallDialog("w", [bad])))
        with pytest.raises(InvalidStepOutcome):
            await dc.begin_dialog("w")
        with pytest.raises(TypeError):
            await make_dc(make_registry(WaterfallDialog("w", [bad]))).begin_dialog("w")

    @pytest.mark.asyncio
    async def test_text_goes_to_waterfall_when_it_is_on_top(self):
        async def ask(step):
            return Prompt("t", PromptOptions(prompt="q"))

        async def echo(step):
            await step.turn.send_activity(f"echo {step.result}")
            return End()

        registry = make_registry(text_prompt("t"), WaterfallDialog("w", [ask, echo]))
        dc = make_dc(registry)
        await dc.begin_dialog("w")
        await dc.end_dialog()  # drop the prompt, leave the waterfall on top

        await dc.continue_dialog("raw")
        assert dc.turn.responses == ["q", "echo raw"]
