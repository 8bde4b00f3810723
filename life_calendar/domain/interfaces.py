"""
Cross-context callback interfaces (Protocols).

Services that need the messaging transport depend on these Protocols
rather than on python-telegram-bot directly. The concrete adapter is
wired at construction time (constructor injection).
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MessageDispatcher(Protocol):
    """Sends a plain text message to a user (lives in the *bot* context).

    Implementations raise DeliveryError when the transport rejects the message.
    """

    async def send_message(self, user_id: int, text: str) -> None: ...
