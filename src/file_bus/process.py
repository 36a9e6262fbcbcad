"""Receive messages from a queue and process them with a handler.

The processor receives one message at a time (auto-acknowledged by the
transport), validates and handles it through a handler, and dead-letters
failures by sending a copy of the original message, tagged with the failure
reason, to the error queue.
"""

import logging
import threading

from file_bus.exceptions import TransportTimeout, UndecodableMessageError
from file_bus.handlers.base import BaseHandler
from file_bus.message import Message
from file_bus.persist_base import PersistBase

logger = logging.getLogger(__name__)

ERROR_PROPERTY = "Error"


def keep_running(stop_event: threading.Event | None, cycles: int, max_cycles: int | None) -> bool:
    """Return False once a stop was requested or ``max_cycles`` cycles have run."""
    if stop_event is not None and stop_event.is_set():
        return False
    return max_cycles is None or cycles < max_cycles


def send_to_error_queue(
    repo: PersistBase,
    error_queue_name: str,
    message: Message,
    reason: str,
) -> str | None:
    """Send ``message`` plus an Error property to the error queue.

    Failures are logged and swallowed. Returns the new message ID or None.
    """
    try:
        error_message_id = repo.send(error_queue_name, message.with_property(ERROR_PROPERTY, reason))
        logger.info("Message %s sent to error queue as %s", message.id, error_message_id)
        return error_message_id
    except Exception as e:
        logger.error("Failed to send to Error queue: %s", e)
        return None


def process_message(
    message: Message,
    handler: BaseHandler,
    repo: PersistBase,
    error_queue_name: str | None = None,
) -> str | None:
    """Validate and handle one message. Returns the failure reason, or None on success.

    The original message is cloned before the handler sees it, so the error
    queue always receives the body and properties exactly as they arrived.
    """
    original = message.clone()
    logger.info("Processing message %s", message.id)
    try:
        rejection = handler.validate(message)
        if rejection is not None:
            reason = rejection.value
        else:
            handler.handle(message)
            return None
    except Exception as e:
        reason = str(e)

    logger.error("Error: %s", reason)
    if error_queue_name:
        send_to_error_queue(repo, error_queue_name, original, reason)
    return reason


class QueueProcessor:
    """Receive loop for one queue.

    Each cycle waits up to ``receive_timeout`` seconds for a message. A timeout
    is not an error; a transport failure is logged and the loop continues.
    """

    def __init__(
        self,
        repo: PersistBase,
        queue_name: str,
        handler: BaseHandler,
        error_queue_name: str | None = None,
        receive_timeout: int = 10,
    ) -> None:
        self.repo = repo
        self.queue_name = queue_name
        self.handler = handler
        self.error_queue_name = error_queue_name
        self.receive_timeout = receive_timeout

    def poll_once(self) -> bool:
        """Receive and process at most one message. Returns True if one was processed."""
        try:
            message = self.repo.receive(self.queue_name, self.receive_timeout)
        except TransportTimeout:
            message = None
        except UndecodableMessageError as e:
            logger.error("Error: %s", e.reason)
            if self.error_queue_name:
                send_to_error_queue(self.repo, self.error_queue_name, e.message, e.reason)
            return False
        except Exception as e:
            logger.error("Error: %s", e)
            return False

        if message is None:
            logger.info("No message found")
            return False

        process_message(message, self.handler, self.repo, self.error_queue_name)
        return True

    def run(self, stop_event: threading.Event | None = None, max_cycles: int | None = None) -> None:
        """Poll until ``stop_event`` is set or ``max_cycles`` receives have run."""
        cycles = 0
        while keep_running(stop_event, cycles, max_cycles):
            self.poll_once()
            cycles += 1
