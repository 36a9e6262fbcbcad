"""Abstract base for queue transports.

Defines the small interface the relays need: send a message, receive one
message with a bounded wait, and release resources.
"""

from abc import ABC, abstractmethod

from file_bus.message import Message


class PersistBase(ABC):
    """Abstract base class for queue transports.

    Receives are auto-acknowledged: once ``receive`` returns a message it is
    gone from the queue, whatever the caller does with it afterwards.
    """

    @abstractmethod
    def send(self, queue_name: str, message: Message) -> str:
        """Append a message to the queue. Returns the transport message ID."""
        pass

    @abstractmethod
    def receive(self, queue_name: str, timeout: int) -> Message | None:
        """Wait up to ``timeout`` seconds for one message and remove it from the queue.

        Returns None when nothing arrived in time. Implementations may raise
        TransportTimeout instead; callers treat both the same way. A message that
        was removed but cannot be decoded is reported with UndecodableMessageError.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release connections held by the transport."""
        pass
