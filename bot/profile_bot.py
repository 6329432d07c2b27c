# bot/profile_bot.py
# Turn-level business logic: collect a handle name, then run the "details"
# waterfall (age + confirmation) until the user confirms the registration.
#
# Per message turn:
#   1. resume whatever dialog is on the conversation's stack
#   2. no handle name yet  -> ask for it, or store it and start "details"
#      handle name present -> start "details" when nothing was active
#   3. save conversation + user state (always, even on no-op turns)
from __future__ import annotations

import logging
from typing import List, Optional

from audit import write_audit
from dialogs.base import DialogTurnResult, DialogTurnStatus, PromptOptions
from dialogs.errors import require
from dialogs.prompts import Recognized, confirm_prompt, number_prompt, text_prompt
from dialogs.registry import DialogRegistry
from dialogs.turn import ActivityTypes, TurnContext
from dialogs.waterfall import End, Next, Prompt, Replace, StepOutcome, WaterfallDialog, WaterfallStepContext
from observability import turn_span
from .accessors import DECLINED_AGE, BotAccessors, UserProfile
from .messages import normalize_lang, translate_msg
from .settings import BOT_LANG

logger = logging.getLogger(__name__)

MIN_HANDLE_NAME_LENGTH = 3


def validate_handle_name(recognized: Recognized) -> Recognized:
    """Accept names of at least 3 characters; the accepted value is upper-cased."""
    value = recognized.value or ""
    if len(value) >= MIN_HANDLE_NAME_LENGTH:
        return Recognized(True, value.upper())
    return Recognized(False)


def validate_age(recognized: Recognized) -> Recognized:
    """Real ages are never negative; -1 is reserved for a declined answer."""
    if recognized.value >= 0:
        return recognized
    return Recognized(False)


class ProfileBot:
    name = "profile"

    def __init__(self, accessors: BotAccessors, lang: str = BOT_LANG):
        self.accessors = require(accessors, "accessors")
        self.lang = normalize_lang(lang)

        self.dialogs = DialogRegistry(accessors.conversation_dialog_state)
        self.dialogs.add(text_prompt("name", validate_handle_name))
        self.dialogs.add(confirm_prompt("confirm"))
        self.dialogs.add(number_prompt("age", validate_age))
        self.dialogs.add(WaterfallDialog("details", [
            self.confirm_age_step,
            self.execute_age_step,
            self.final_confirm_step,
            self.summary_step,
        ]))
        logger.info("[BOOT] ProfileBot ready: dialogs=%s lang=%s", ",".join(self.dialogs), self.lang)

    def msg(self, key: str, **kwargs) -> str:
        return translate_msg(self.lang, key, **kwargs)

    async def on_turn(self, turn: TurnContext) -> Optional[DialogTurnResult]:
        activity = turn.activity
        result = None
        with turn_span("profile_bot.turn", activity_type=activity.type, conversation_id=activity.conversation_id):
            if activity.type == ActivityTypes.MESSAGE:
                result = await self.on_message(turn)
            elif activity.type == ActivityTypes.CONVERSATION_UPDATE:
                await self.send_welcome(turn)
            else:
                logger.info("[TURN] passed:%s", activity.type)

            await self.accessors.conversation_state.save_changes(turn)
            await self.accessors.user_state.save_changes(turn)
        return result

    async def send_welcome(self, turn: TurnContext) -> None:
        activity = turn.activity
        bot_id = activity.recipient.id if activity.recipient else None
        for member in activity.members_added:
            if member.id != bot_id:
                await turn.send_activity(self.msg("welcome"))

    async def on_message(self, turn: TurnContext) -> DialogTurnResult:
        dc = await self.dialogs.create_context(turn)
        result = await dc.continue_dialog(turn.activity.text)
        profile: UserProfile = await self.accessors.user_profile.get(turn, UserProfile)

        if profile.handle_name is None:
            if result.status is DialogTurnStatus.EMPTY:
                return await dc.prompt("name", PromptOptions(
                    prompt=self.msg("ask_handle_name"),
                    retry_prompt=self.msg("handle_name_retry"),
                ))
            if result.status is DialogTurnStatus.COMPLETE and result.result is not None:
                # already upper-cased by validate_handle_name
                profile.handle_name = result.result
                logger.info("[TURN] handle name registered for user %s", turn.activity.user_id)
                return await dc.begin_dialog("details")
        elif result.status is DialogTurnStatus.EMPTY:
            return await dc.begin_dialog("details")
        return result

    # ------------------------ "details" waterfall ------------------------

    async def confirm_age_step(self, step: WaterfallStepContext) -> StepOutcome:
        profile = await self.accessors.user_profile.get(step.turn, UserProfile)
        return Prompt("confirm", PromptOptions(
            prompt=self.msg("ask_age_permission", handle=profile.handle_name),
            retry_prompt=self.msg("confirm_retry"),
        ))

    async def execute_age_step(self, step: WaterfallStepContext) -> StepOutcome:
        if step.result:
            return Prompt("age", PromptOptions(
                prompt=self.msg("ask_age"),
                retry_prompt=self.msg("age_retry"),
            ))
        return Next(DECLINED_AGE)

    async def final_confirm_step(self, step: WaterfallStepContext) -> StepOutcome:
        profile = await self.accessors.user_profile.get(step.turn, UserProfile)
        profile.age = int(step.result)
        await step.turn.send_activity(self.age_accepted_message(profile))
        return Prompt("confirm", PromptOptions(prompt=self.msg("ask_final_confirm")))

    async def summary_step(self, step: WaterfallStepContext) -> StepOutcome:
        if step.result:
            profile = await self.accessors.user_profile.get(step.turn, UserProfile)
            await step.turn.send_activities(self.summary_messages(profile))
            write_audit(
                actor="user",
                action="PROFILE_REGISTERED",
                entity_type="profile",
                entity_id=step.turn.activity.user_id,
                details={"handle_name": profile.handle_name, "age": profile.age},
            )
            return End()

        # start over from the age question
        await step.turn.send_activity(self.msg("visit_again"))
        return Replace("details")

    def age_accepted_message(self, profile: UserProfile) -> str:
        if profile.age == DECLINED_AGE:
            return self.msg("age_private")
        return self.msg("age_stated", age=profile.age)

    def summary_messages(self, profile: UserProfile) -> List[str]:
        if profile.age == DECLINED_AGE:
            summary = self.msg("summary_private", handle=profile.handle_name)
        else:
            summary = self.msg("summary_age", handle=profile.handle_name, age=profile.age)
        return [summary, self.msg("thanks")]
