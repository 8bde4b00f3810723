"""UserRegistry protocol defining the persisted user record contract."""

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class RegisteredUser:
    """Snapshot of a persisted user record, detached from any session."""

    user_id: int
    date_of_birth: str  # YYYY-MM-DD
    region: str


@runtime_checkable
class UserRegistry(Protocol):
    """Repository interface for registered users, keyed by user id."""

    async def upsert(self, user_id: int, date_of_birth: str, region: str) -> None:
        """Create or replace the record for a user.

        Args:
            user_id: The Telegram-assigned user ID.
            date_of_birth: Validated date in YYYY-MM-DD form.
            region: Canonical region name present in the catalog.

        Raises:
            PersistenceError: If the record could not be stored.
        """
        ...

    async def scan_all(self) -> Sequence[RegisteredUser]:
        """Return every registered user.

        Raises:
            PersistenceError: If the registry could not be read.
        """
        ...
