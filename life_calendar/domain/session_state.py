"""Transient per-user onboarding session state.

Sessions live only in process memory; a restart of the bot returns every
user to IDLE. Only the onboarding state machine mutates them.
"""

import asyncio
import enum
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional


class OnboardingState(enum.Enum):
    IDLE = "idle"
    AWAITING_DATE_OF_BIRTH = "awaiting_date_of_birth"
    AWAITING_REGION = "awaiting_region"


@dataclass
class SessionState:
    """Onboarding progress for one user.

    pending_date_of_birth is set if and only if state is AWAITING_REGION.
    """

    state: OnboardingState = OnboardingState.IDLE
    pending_date_of_birth: Optional[str] = None

    def begin(self) -> None:
        self.state = OnboardingState.AWAITING_DATE_OF_BIRTH
        self.pending_date_of_birth = None

    def await_region(self, date_of_birth: str) -> None:
        self.state = OnboardingState.AWAITING_REGION
        self.pending_date_of_birth = date_of_birth

    def reset(self) -> None:
        self.state = OnboardingState.IDLE
        self.pending_date_of_birth = None


class InMemorySessionStore:
    """Session store keyed by user id, with one asyncio.Lock per user.

    Only users part-way through onboarding are kept: when the last holder
    of a user's lock leaves, an IDLE session and the lock itself are dropped.
    """

    def __init__(self) -> None:
        self._sessions: Dict[int, SessionState] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_holders: Dict[int, int] = {}

    def get(self, user_id: int) -> SessionState:
        """Return the user's session, creating an IDLE one on first contact."""
        session = self._sessions.get(user_id)
        if session is None:
            session = SessionState()
            self._sessions[user_id] = session
        return session

    @asynccontextmanager
    async def locked(self, user_id: int) -> AsyncIterator[SessionState]:
        """Hold the user's lock and yield their session."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield self.get(user_id)
        finally:
            self._release(user_id)

    def _release(self, user_id: int) -> None:
        remaining = self._lock_holders[user_id] - 1
        if remaining:
            self._lock_holders[user_id] = remaining
            return

        del self._lock_holders[user_id]
        del self._locks[user_id]
        session = self._sessions.get(user_id)
        if session is not None and session.state == OnboardingState.IDLE:
            del self._sessions[user_id]

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
