from .sqlalchemy_user_registry import SqlAlchemyUserRegistry

__all__ = ["SqlAlchemyUserRegistry"]
