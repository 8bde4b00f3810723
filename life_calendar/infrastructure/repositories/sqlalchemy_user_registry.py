"""SQLAlchemy implementation of UserRegistry."""

import logging
from typing import AsyncContextManager, Callable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db_session
from ...domain.errors import PersistenceError
from ...domain.repositories import RegisteredUser
from ...models.user_record import UserRecord

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SqlAlchemyUserRegistry:
    """Concrete UserRegistry backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: SessionFactory = get_db_session) -> None:
        self._session_factory = session_factory

    async def upsert(self, user_id: int, date_of_birth: str, region: str) -> None:
        """Insert or replace the record for user_id (last write wins)."""
        try:
            async with self._session_factory() as session:
                await session.merge(
                    UserRecord(
                        user_id=user_id, date_of_birth=date_of_birth, region=region
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to upsert user {user_id}: {e}") from e

        logger.debug("Upserted user %s", user_id)

    async def scan_all(self) -> List[RegisteredUser]:
        """Return detached snapshots of every registered user, ordered by id."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UserRecord).order_by(UserRecord.user_id)
                )
                return [
                    RegisteredUser(
                        user_id=record.user_id,
                        date_of_birth=record.date_of_birth,
                        region=record.region,
                    )
                    for record in result.scalars().all()
                ]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read user registry: {e}") from e
