"""Handler for the error queue.

Writes each dead-lettered message to the error folder as two files: the raw
body and a text report with the failure reason.
"""

import logging
from pathlib import Path

from file_bus.handlers.base import BaseHandler
from file_bus.message import Message
from file_bus.validation import Rejection

logger = logging.getLogger(__name__)

# Read in lowercase although the inbound relay writes "Error"; see process.ERROR_PROPERTY.
ERROR_REPORT_PROPERTY = "error"
UNKNOWN_ERROR = "Unknown error"


def message_file_names(message_id: str | None) -> tuple[str, str]:
    """Return the (body file, report file) names for a message id."""
    message_file_name = f"message_{message_id}"
    return message_file_name, f"{message_file_name}_error.txt"


class Handler(BaseHandler):
    """Persist failed payloads and their error reports in ``error_folder``."""

    def __init__(self, error_folder: Path) -> None:
        self.error_folder = Path(error_folder)

    def validate(self, message: Message) -> Rejection | None:
        """Every error-queue message is accepted."""
        return None

    def handle(self, message: Message) -> None:
        message_file_name, report_file_name = message_file_names(message.id)
        error_message = message.properties.get(ERROR_REPORT_PROPERTY, UNKNOWN_ERROR)

        (self.error_folder / message_file_name).write_bytes(message.body)
        (self.error_folder / report_file_name).write_text(error_message, encoding="utf-8")
        logger.info("Saved error report for message %s: %s", message.id, error_message)
