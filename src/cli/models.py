"""Data models for CLI operations."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Sync committed and every file processed cleanly
    - GENERAL_ERROR (1): Config, store or unexpected failure
    - CONTENT_ERRORS (2): Sync committed but some files have parse errors
    - INVALID_INPUT (3): Missing/invalid content directory or scope

    Example:
        >>> raise typer.Exit(ExitCode.CONTENT_ERRORS)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONTENT_ERRORS = 2
    INVALID_INPUT = 3


@dataclass
class SyncConfig:
    """Settings loaded from .content-sync/config.yaml.

    Attributes:
        directory: Content directory to sync/watch
        account_id: Owning account of the content
        project_id: Owning project of the content
        database: Path of the SQLite content database
        debounce_ms: Watcher quiet period in milliseconds
        max_workers: Parallel file processing threads
        content_repo: Remote repository URL for ``sync --from-repo``

    Example:
        >>> SyncConfig(directory="./content", account_id="acme", project_id="site")
    """
    directory: Optional[str] = None
    account_id: Optional[str] = None
    project_id: Optional[str] = None
    database: str = ".content-sync/content.db"
    debounce_ms: int = 1000
    max_workers: int = 8
    content_repo: Optional[str] = None
