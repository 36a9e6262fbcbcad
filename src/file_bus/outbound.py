"""Send files from the new folder to the primary queue.

Each cycle lists the new folder, sends every file as a message, and moves the
file to the sent folder or, on any failure, to the error folder. Outbound
failures never reach the error queue.
"""

import logging
import shutil
import threading
import time
from pathlib import Path

from file_bus.config import Settings
from file_bus.message import Message
from file_bus.persist_base import PersistBase
from file_bus.process import keep_running
from file_bus.validation import OUTBOUND_FILE_NAME_PROPERTY, check_content

logger = logging.getLogger(__name__)


def move_file(path: Path, folder: Path) -> Path:
    """Move ``path`` into ``folder`` keeping its name. Returns the new path.

    Refuses to replace a file of the same name already in ``folder``.
    """
    target = Path(folder) / path.name
    if target.exists():
        raise FileExistsError(f"{target} already exists")
    shutil.move(str(path), str(target))
    return target


class OutboundRelay:
    """Poll ``new_folder`` and relay its files to the primary queue.

    Files are handled one at a time so that a file's move always reflects the
    outcome of its own send.
    """

    def __init__(self, repo: PersistBase, settings: Settings) -> None:
        self.repo = repo
        self.queue_name = settings.queue_name
        self.new_folder = Path(settings.new_folder)
        self.sent_folder = Path(settings.sent_folder)
        self.error_folder = Path(settings.error_folder)
        self.poll_interval = settings.poll_interval

    def list_files(self) -> list[Path]:
        """Return the files currently in the new folder, in name order."""
        return sorted(path for path in self.new_folder.iterdir() if path.is_file())

    def send_file(self, path: Path) -> str | None:
        """Send one file. Returns the rejection reason, or None once it is enqueued."""
        content = path.read_bytes()
        rejection = check_content(content)
        if rejection is not None:
            return rejection.value
        message = Message(body=content, properties={OUTBOUND_FILE_NAME_PROPERTY: path.name})
        self.repo.send(self.queue_name, message)
        return None

    def process_file(self, path: Path) -> Path | None:
        """Send ``path`` and move it out of the new folder.

        Returns the file's new location, or None if it could not be moved at all.
        """
        try:
            reason = self.send_file(path)
        except Exception as e:
            reason = str(e)

        if reason is None:
            try:
                target = move_file(path, self.sent_folder)
                logger.info("Processed file %s", path.name)
                return target
            except Exception as e:
                reason = str(e)

        logger.error("Error: %s (%s)", reason, path.name)
        try:
            return move_file(path, self.error_folder)
        except Exception as e:
            logger.error("Failed to move %s to error folder: %s", path.name, e)
            return None

    def run_cycle(self) -> int:
        """Process every file in one listing. Returns the number of files listed."""
        try:
            files = self.list_files()
            if not files:
                logger.info("No files found")
                return 0
            for path in files:
                self.process_file(path)
            return len(files)
        except Exception as e:
            logger.error("Error: %s", e)
            return 0

    def run(self, stop_event: threading.Event | None = None, max_cycles: int | None = None) -> None:
        """Run cycles until stopped, pausing ``poll_interval`` seconds after each one."""
        cycles = 0
        while keep_running(stop_event, cycles, max_cycles):
            try:
                self.run_cycle()
            finally:
                cycles += 1
                if stop_event is not None:
                    stop_event.wait(self.poll_interval)
                else:
                    time.sleep(self.poll_interval)
