"""Inbound text handler. Forwards every text message to onboarding."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from ..services.onboarding import OnboardingStateMachine
from ..utils.error_reporting import handle_errors

logger = logging.getLogger(__name__)

ONBOARDING_KEY = "onboarding"


@handle_errors("handle_text_message")
async def handle_text_message(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Pass (user id, text) to the onboarding state machine."""
    user = update.effective_user
    message = update.effective_message
    if not user or not message or message.text is None:
        return

    onboarding: OnboardingStateMachine = context.bot_data[ONBOARDING_KEY]
    state = await onboarding.handle_text(user.id, message.text)
    logger.debug("User %s is now in state %s", user.id, state.value)
