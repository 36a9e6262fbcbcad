"""Errors raised by the relays and their queue transports."""


class FileBusError(Exception):
    """Base class for file-bus errors."""


class ConfigurationError(FileBusError):
    """Settings are missing or invalid."""


class TransportError(FileBusError):
    """The queue transport failed to send or receive."""


class TransportTimeout(TransportError):
    """No message arrived within the receive window. Expected; keep polling.

    Raised by transports on an empty receive; ``receive`` returning None means the same.
    """


class UndecodableMessageError(TransportError):
    """A message was received but its payload could not be decoded.

    ``message`` carries the raw payload as its body so it can still be
    dead-lettered; the transport has already removed it from the queue.
    """

    def __init__(self, message, reason: str) -> None:
        super().__init__(reason)
        self.message = message
        self.reason = reason
