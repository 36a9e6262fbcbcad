"""Base handler interface for received queue messages.

Each queue consumer has a handler that defines validate and handle. The
queue processor calls validate, then handle if validation passed, and routes
any failure to the error queue when one is configured.
"""

from abc import ABC, abstractmethod

from file_bus.message import Message
from file_bus.validation import Rejection


class BaseHandler(ABC):
    """Abstract base for per-queue message handlers.

    validate returns a Rejection instead of raising, so the failure reason is a
    plain value. handle performs the work (e.g. write files) and raises on failure.
    """

    @abstractmethod
    def validate(self, message: Message) -> Rejection | None:
        """Return the reason the message cannot be handled, or None."""
        pass

    @abstractmethod
    def handle(self, message: Message) -> None:
        """Process the message. Raise on failure to trigger error routing."""
        pass
