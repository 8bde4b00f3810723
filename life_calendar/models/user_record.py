"""Registered user: one row per user who completed onboarding."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class UserRecord(Base, TimestampMixin):
    """Date of birth and region collected during onboarding."""

    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    date_of_birth: Mapped[str] = mapped_column(
        String(10), nullable=False
    )  # YYYY-MM-DD format

    region: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<UserRecord(user_id={self.user_id}, "
            f"date_of_birth={self.date_of_birth}, region={self.region})>"
        )
