"""Handler for the primary queue.

Validates the file name property and writes the message body into the
received folder under that name.
"""

import logging
from pathlib import Path

from file_bus.handlers.base import BaseHandler
from file_bus.message import Message
from file_bus.validation import INBOUND_FILE_NAME_PROPERTY, Rejection, check_file_name

logger = logging.getLogger(__name__)


class Handler(BaseHandler):
    """Persist valid messages as files in ``received_folder``.

    The file name is used verbatim: an existing file is overwritten and a name
    containing path separators is not sanitized.
    """

    def __init__(self, received_folder: Path) -> None:
        self.received_folder = Path(received_folder)

    def validate(self, message: Message) -> Rejection | None:
        return check_file_name(message.properties)

    def handle(self, message: Message) -> None:
        target = self.received_folder / message.properties[INBOUND_FILE_NAME_PROPERTY]
        target.write_bytes(message.body)
        logger.info("Saved message %s to %s", message.id, target)
