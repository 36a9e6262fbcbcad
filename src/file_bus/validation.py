"""Validation checks for outbound files and inbound messages.

Checks return a ``Rejection`` describing the first failed rule, or ``None``
when the item is acceptable. The rejection value is the human-readable reason
written to logs and to the ``Error`` property of dead-lettered messages.
"""

from enum import Enum

# Outbound writes "FileName" while inbound reads "fileName". Queue properties are
# case-sensitive, so messages produced by the outbound relay are always rejected
# inbound with MISSING_FILE_NAME. Kept as-is to stay wire compatible.
OUTBOUND_FILE_NAME_PROPERTY = "FileName"
INBOUND_FILE_NAME_PROPERTY = "fileName"

TEXT_FILE_MARKER = ".txt"


class Rejection(str, Enum):
    """Reasons a file or message is refused."""

    EMPTY_FILE = "File is empty"
    MISSING_FILE_NAME = "No filename found"
    EMPTY_FILE_NAME = "Filename is empty"
    INVALID_EXTENSION = "Filename must be a text file!"


def check_content(content: bytes) -> Rejection | None:
    """Refuse zero-length content."""
    if len(content) == 0:
        return Rejection.EMPTY_FILE
    return None


def check_file_name(properties: dict[str, str]) -> Rejection | None:
    """Check the inbound file name property.

    The extension rule is a substring test: ``report.txtold`` is accepted.
    """
    if INBOUND_FILE_NAME_PROPERTY not in properties:
        return Rejection.MISSING_FILE_NAME
    file_name = properties[INBOUND_FILE_NAME_PROPERTY]
    if not file_name:
        return Rejection.EMPTY_FILE_NAME
    if TEXT_FILE_MARKER not in file_name:
        return Rejection.INVALID_EXTENSION
    return None
