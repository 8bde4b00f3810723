from .user_registry import RegisteredUser, UserRegistry

__all__ = ["RegisteredUser", "UserRegistry"]
