import logging
import os
from typing import Dict, List, Optional, Tuple

import pytest

# Set test environment variables
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["TELEGRAM_BOT_TOKEN"] = "test:token"

from life_calendar.domain.errors import DeliveryError, PersistenceError  # noqa: E402
from life_calendar.domain.repositories import RegisteredUser  # noqa: E402
from life_calendar.services.region_catalog import (  # noqa: E402
    DEFAULT_REGIONS,
    RegionCatalog,
)


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/app.log."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


# ========================================================================
# In-memory fakes for the registry and dispatcher protocols
# ========================================================================


class FakeUserRegistry:
    """In-memory user registry for testing."""

    def __init__(self, users: Optional[List[RegisteredUser]] = None):
        self._users: Dict[int, RegisteredUser] = {u.user_id: u for u in (users or [])}
        self.upsert_calls: List[Tuple[int, str, str]] = []
        self.fail_upsert = False
        self.fail_scan = False

    async def upsert(self, user_id: int, date_of_birth: str, region: str) -> None:
        self.upsert_calls.append((user_id, date_of_birth, region))
        if self.fail_upsert:
            raise PersistenceError("disk full")
        self._users[user_id] = RegisteredUser(user_id, date_of_birth, region)

    async def scan_all(self) -> List[RegisteredUser]:
        if self.fail_scan:
            raise PersistenceError("database is locked")
        return sorted(self._users.values(), key=lambda u: u.user_id)

    def add(self, user_id: int, date_of_birth: str, region: str) -> None:
        self._users[user_id] = RegisteredUser(user_id, date_of_birth, region)

    def get(self, user_id: int) -> Optional[RegisteredUser]:
        return self._users.get(user_id)


class FakeDispatcher:
    """Records every message; selected users can be made to fail."""

    def __init__(self, failing_user_ids=()):
        self.sent: List[Tuple[int, str]] = []
        self.attempted: List[int] = []
        self.failing_user_ids = set(failing_user_ids)

    async def send_message(self, user_id: int, text: str) -> None:
        self.attempted.append(user_id)
        if user_id in self.failing_user_ids:
            raise DeliveryError(user_id, "Forbidden: bot was blocked by the user")
        self.sent.append((user_id, text))

    def texts_for(self, user_id: int) -> List[str]:
        return [text for uid, text in self.sent if uid == user_id]


@pytest.fixture
def catalog():
    return RegionCatalog(DEFAULT_REGIONS, default_expectancy=72)


@pytest.fixture
def registry():
    return FakeUserRegistry()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()
