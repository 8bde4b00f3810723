"""
Typed domain errors for the life calendar bot.

These replace bare except/return None patterns so callers can distinguish
specific failure modes and map each
to an appropriate user-facing message or log entry.
"""

from typing import Sequence


class DomainError(Exception):
    """Base class for all domain-specific errors."""


# ---------------------------------------------------------------------------
# User input (recovered locally by the onboarding flow)
# ---------------------------------------------------------------------------


class UserInputError(DomainError):
    """Text sent by the user could not be accepted at the current step."""


class InvalidDateOfBirth(UserInputError):
    """Date of birth is not a real calendar date in YYYY-MM-DD form."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Invalid date of birth: {text!r}")


class UnknownRegion(UserInputError):
    """Region is not present in the region catalog."""

    def __init__(self, region: str, allowed: Sequence[str]) -> None:
        self.region = region
        self.allowed = list(allowed)
        super().__init__(f"Unknown region {region!r}; expected one of {self.allowed}")


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class PersistenceError(DomainError):
    """The user registry failed to write or read records."""


class DeliveryError(DomainError):
    """A message could not be delivered to a user (rejected or timed out)."""

    def __init__(self, user_id: int, reason: str) -> None:
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Delivery to user {user_id} failed: {reason}")


class ConfigurationError(DomainError):
    """Startup configuration is unusable (empty catalog, bad schedule, ...)."""
