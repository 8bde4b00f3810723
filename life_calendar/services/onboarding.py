"""
Onboarding state machine that collects date of birth and region.

IDLE --restart--> AWAITING_DATE_OF_BIRTH --valid date--> AWAITING_REGION
--known region, stored--> IDLE. The restart command works from any state.
Text sent while IDLE is ignored here; other commands belong to other handlers.
"""

import logging
from typing import Optional

from ..domain.errors import (
    DeliveryError,
    InvalidDateOfBirth,
    PersistenceError,
    UnknownRegion,
    UserInputError,
)
from ..domain.interfaces import MessageDispatcher
from ..domain.repositories import UserRegistry
from ..domain.session_state import InMemorySessionStore, OnboardingState, SessionState
from . import messages
from .date_validator import parse_date_of_birth
from .region_catalog import RegionCatalog

logger = logging.getLogger(__name__)

DEFAULT_RESTART_COMMAND = "/start"


class OnboardingStateMachine:
    """Drives the two-step registration dialogue for every user."""

    def __init__(
        self,
        catalog: RegionCatalog,
        registry: UserRegistry,
        dispatcher: MessageDispatcher,
        sessions: Optional[InMemorySessionStore] = None,
        restart_command: str = DEFAULT_RESTART_COMMAND,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._dispatcher = dispatcher
        self._sessions = sessions if sessions is not None else InMemorySessionStore()
        self._restart_command = restart_command

    @property
    def sessions(self) -> InMemorySessionStore:
        return self._sessions

    def is_restart_command(self, text: str) -> bool:
        """Literal match; "/start@SomeBot" counts as "/start"."""
        command = text.strip().split("@", 1)[0]
        return command == self._restart_command

    async def handle_text(self, user_id: int, text: str) -> OnboardingState:
        """Consume one inbound text message and return the resulting state."""
        async with self._sessions.locked(user_id) as session:
            try:
                if self.is_restart_command(text):
                    await self._restart(user_id, session)
                elif session.state == OnboardingState.AWAITING_DATE_OF_BIRTH:
                    await self._on_date_of_birth(user_id, session, text)
                elif session.state == OnboardingState.AWAITING_REGION:
                    await self._on_region(user_id, session, text)
                else:
                    logger.debug("Ignoring text from idle user %s", user_id)
            except UserInputError as e:
                logger.info("User %s: %s", user_id, e)
                await self._emit(user_id, self._input_error_message(e))

            return session.state

    async def restart(self, user_id: int) -> OnboardingState:
        async with self._sessions.locked(user_id) as session:
            await self._restart(user_id, session)
            return session.state

    async def _restart(self, user_id: int, session: SessionState) -> None:
        session.begin()
        logger.info("Onboarding started for user %s", user_id)
        await self._emit(user_id, messages.ONBOARDING_PROMPT)

    async def _on_date_of_birth(
        self, user_id: int, session: SessionState, text: str
    ) -> None:
        date_of_birth = parse_date_of_birth(text.strip())
        if date_of_birth is None:
            raise InvalidDateOfBirth(text)

        session.await_region(date_of_birth.isoformat())
        await self._emit(user_id, messages.REGION_PROMPT)

    async def _on_region(self, user_id: int, session: SessionState, text: str) -> None:
        region = self._catalog.normalize(text)
        if self._catalog.lookup(region) is None:
            raise UnknownRegion(region, self._catalog.list_regions())

        date_of_birth = session.pending_date_of_birth
        try:
            await self._registry.upsert(user_id, date_of_birth, region)
        except PersistenceError as e:
            logger.error("Failed to store registration for user %s: %s", user_id, e)
            await self._emit(user_id, messages.PERSISTENCE_FAILURE)
            return

        # Only a stored record completes onboarding
        session.reset()
        logger.info(
            "Registered user %s (date_of_birth=%s, region=%s)",
            user_id,
            date_of_birth,
            region,
        )
        await self._emit(
            user_id, messages.format_registration_confirmation(date_of_birth, region)
        )

    @staticmethod
    def _input_error_message(error: UserInputError) -> str:
        if isinstance(error, UnknownRegion):
            return messages.format_unknown_region(error.allowed)
        return messages.DATE_FORMAT_ERROR

    async def _emit(self, user_id: int, text: str) -> None:
        try:
            await self._dispatcher.send_message(user_id, text)
        except DeliveryError as e:
            logger.warning("Could not reply to user %s: %s", user_id, e)
