"""Exceptions raised by the CLI layer."""

from src.content_sync.errors import ContentSyncError


class CLIError(ContentSyncError):
    """Base exception for all CLI-related errors."""

    reason = "cli_error"


class ConfigNotFoundError(CLIError):
    """Raised when configuration file is not found."""

    reason = "config_not_found"

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}"
        )
        self.config_path = config_path
