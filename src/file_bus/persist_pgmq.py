"""PostgreSQL-backed queue transport using PGMQ.

Uses the pgmq library to store queue messages in PostgreSQL. Messages are
stored as MessageDTO JSON documents and deleted as soon as they are read.
"""

import json
import logging
import os
from urllib.parse import urlparse

from pgmq import PGMQueue
from pydantic import PostgresDsn

from file_bus.exceptions import ConfigurationError, TransportTimeout, UndecodableMessageError
from file_bus.message import Message
from file_bus.persist_base import PersistBase
from file_bus.queue_model_dto import MessageDTO

logger = logging.getLogger(__name__)

# Visibility timeout for a read message; it is deleted straight away so this only
# matters if the delete itself fails.
READ_VISIBILITY_TIMEOUT = 30
POLL_INTERVAL_MS = 250


class PersistPGMQ(PersistBase):
    """Queue transport implementation using PGMQ (PostgreSQL Message Queue).

    Connects via a Postgres DSN and delegates to PGMQueue. ``receive`` polls
    with ``read_with_poll`` and deletes the message it gets, which gives the
    receive-and-delete behaviour the relays expect.
    """

    def __init__(self, dsn: PostgresDsn | str | None = None) -> None:
        """Connect to PostgreSQL using the given DSN or the PGMQ_DSN env var."""
        raw = dsn or os.getenv("PGMQ_DSN", None)
        if not raw:
            raise ConfigurationError("No DSN provided and PGMQ_DSN environment variable is not set")
        parts = urlparse(str(raw))

        # noinspection PyTypeChecker
        self.queue = PGMQueue(
            host=parts.hostname,
            port=parts.port,
            database=parts.path.lstrip("/"),
            username=parts.username,
            password=parts.password,
            verbose=True,
            log_filename="pgmq.log",
        )

    def send(self, queue_name: str, message: Message) -> str:
        """Encode the message and append it to ``queue_name``."""
        payload = MessageDTO.from_message(message).model_dump()
        message_id = self.queue.send(
            queue=queue_name,
            message=payload,
        )
        logger.debug("Sent message %s to %s", message_id, queue_name)
        return str(message_id)

    def receive(self, queue_name: str, timeout: int) -> Message | None:
        """Poll for up to ``timeout`` seconds, then delete and return the first message.

        Raises TransportTimeout when nothing arrived, and UndecodableMessageError
        (carrying the raw payload) when the stored document is not a MessageDTO.
        """
        messages = self.queue.read_with_poll(
            queue=queue_name,
            vt=READ_VISIBILITY_TIMEOUT,
            qty=1,
            max_poll_seconds=timeout,
            poll_interval_ms=POLL_INTERVAL_MS,
        )
        if not messages:
            raise TransportTimeout(f"No message on {queue_name} within {timeout}s")
        raw = messages[0]
        self.queue.delete(
            queue=queue_name,
            msg_id=raw.msg_id,
        )
        message_id = str(raw.msg_id)
        try:
            return MessageDTO.model_validate(raw.message).to_message(message_id)
        except ValueError as e:
            body = json.dumps(raw.message).encode("utf-8")
            raise UndecodableMessageError(Message(body=body, id=message_id), str(e)) from e

    def close(self) -> None:
        """Close the connection pool; call when done to avoid shutdown warnings."""
        if hasattr(self.queue, "pool") and self.queue.pool:
            self.queue.pool.close()
