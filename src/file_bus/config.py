"""Application settings loaded from the environment.

Uses pydantic-settings for validation. Folder paths must already exist; the
relays never create them.
"""

from pydantic import DirectoryPath, Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings shared by the three relays (folders, queues, timing, DSN)."""

    model_config = SettingsConfigDict(env_prefix="FILE_BUS_")

    new_folder: DirectoryPath = Field(..., description="Files waiting to be sent")
    sent_folder: DirectoryPath = Field(..., description="Files successfully enqueued")
    error_folder: DirectoryPath = Field(..., description="Failed files and error-queue reports")
    received_folder: DirectoryPath = Field(..., description="Files written from the primary queue")
    queue_name: str = Field(..., min_length=1)
    error_queue_name: str = Field(..., min_length=1)
    poll_interval: float = Field(default=5, ge=0, description="Pause between outbound cycles (seconds)")
    receive_timeout: int = Field(default=10, ge=1, description="Receive wait window (seconds)")
    pgmq_dsn: PostgresDsn | None = Field(default=None, validation_alias="PGMQ_DSN")


def get_settings() -> Settings:
    """Return the loaded settings instance."""
    return Settings()
