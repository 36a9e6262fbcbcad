"""Run one of the file relays.

CLI that selects a mode from its single argument (matched case-insensitively by
substring against SEND, RECEIVE and ERROR) and runs that relay until it is
interrupted.
"""

import logging
import os

import click
import dotenv
from pydantic import ValidationError

from file_bus.config import Settings, get_settings
from file_bus.handlers import error_drain, inbound
from file_bus.outbound import OutboundRelay
from file_bus.persist_base import PersistBase
from file_bus.persist_pgmq import PersistPGMQ as QueueRepository
from file_bus.process import QueueProcessor

USAGE = "Valid arguments : -SEND, -RECEIVE and -ERROR"

BANNERS = {
    "SEND": "------------- SEND FILES TO QUEUE ------------------",
    "RECEIVE": "------------- RECEIVE MESSAGE FROM QUEUE ------------------",
    "ERROR": "------------- PROCESSING ERROR QUEUE ------------------",
}


def resolve_mode(argument: str) -> str | None:
    """Return the first mode contained in ``argument`` (ignoring case), or None."""
    upper = argument.upper()
    for mode in ("SEND", "RECEIVE", "ERROR"):
        if mode in upper:
            return mode
    return None


def load_settings() -> Settings:
    """Load settings, reading a local .env file first when there is one."""
    if os.path.exists(".env"):
        dotenv.load_dotenv()
    try:
        return get_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid settings: {e}") from e


def build_relay(mode: str, queue_repo: PersistBase, settings: Settings) -> OutboundRelay | QueueProcessor:
    """Create the relay for ``mode`` wired to ``queue_repo``."""
    match mode:
        case "SEND":
            return OutboundRelay(queue_repo, settings)
        case "RECEIVE":
            return QueueProcessor(
                queue_repo,
                settings.queue_name,
                inbound.Handler(settings.received_folder),
                error_queue_name=settings.error_queue_name,
                receive_timeout=settings.receive_timeout,
            )
        case "ERROR":
            return QueueProcessor(
                queue_repo,
                settings.error_queue_name,
                error_drain.Handler(settings.error_folder),
                receive_timeout=settings.receive_timeout,
            )
        case _:
            raise click.ClickException(f"Invalid mode: {mode}. {USAGE}")


@click.command()
@click.argument("mode", required=False)
def main(mode: str | None) -> None:
    """Relay files between local folders and the message queue.

    MODE selects the relay: SEND watches the new folder and enqueues files,
    RECEIVE writes queue messages to the received folder, ERROR writes
    error-queue messages and their reports to the error folder.
    """
    if not mode:
        click.echo(USAGE)
        return
    selected = resolve_mode(mode)
    if selected is None:
        return

    settings = load_settings()
    if not settings.pgmq_dsn:
        raise click.ClickException("No DSN provided and PGMQ_DSN environment variable is not set")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    click.echo(BANNERS[selected])

    queue_repo = QueueRepository(dsn=settings.pgmq_dsn)
    try:
        build_relay(selected, queue_repo, settings).run()
    except KeyboardInterrupt:
        click.secho("Stopping.", fg="yellow")
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
