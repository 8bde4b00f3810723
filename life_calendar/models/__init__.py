from .base import Base, TimestampMixin
from .user_record import UserRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "UserRecord",
]
