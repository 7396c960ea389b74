"""Typed exception hierarchy for content sync errors.

This module defines the exceptions raised by the content sync library.
All exceptions inherit from ContentSyncError and carry a stable ``reason``
string so callers (CLI, watcher) can report a single explicit cause.

Per-file problems (bad metadata, invalid markup) are never raised past the
processor boundary; they are stored as data on the content record instead.
"""

from typing import Any, Optional


class ContentSyncError(Exception):
    """Base exception for all content-sync errors.

    Use this to catch any application-level error from the sync tool.
    """

    reason = "sync_error"


class MetadataError(ContentSyncError):
    """Raised when a sidecar metadata file cannot be used.

    Attributes:
        kind: One of ``file_not_found``, ``syntax_error``, ``invalid_structure``
        file_path: Path of the sidecar file
        message: Human readable description
        details: Extra context (OS reason, YAML mark, offending document)
    """

    FILE_NOT_FOUND = "file_not_found"
    SYNTAX_ERROR = "syntax_error"
    INVALID_STRUCTURE = "invalid_structure"

    def __init__(self, kind: str, file_path: str, message: str, details: Any = None):
        super().__init__(f"Metadata error in {file_path}: {message}")
        self.kind = kind
        self.reason = kind
        self.file_path = file_path
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "file_path": self.file_path,
            "details": self.details,
        }


class InvalidDirectoryError(ContentSyncError):
    """Raised when the content directory is missing, not a directory or unreadable."""

    reason = "invalid_directory"

    def __init__(self, directory: Optional[str], detail: Optional[str] = None):
        message = f"Invalid content directory: {directory!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.directory = directory
        self.detail = detail


class MissingScopeError(ContentSyncError):
    """Raised when a sync is requested without an account/project scope."""

    reason = "missing_scope"

    def __init__(self, missing: str = "scope"):
        super().__init__(f"Sync requires a scope with {missing}")
        self.missing = missing


class PersistenceError(ContentSyncError):
    """Raised when the store rejects the batch and the transaction was rolled back."""

    reason = "persistence_failed"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Content sync rolled back: {message}")
        self.message = message
        self.cause = cause


class GitSyncError(ContentSyncError):
    """Raised when the content repository cannot be fetched.

    Attributes:
        reason: One of ``project_not_found``, ``no_content_repo``,
            ``not_connected``, ``unsupported_provider``, ``invalid_url``,
            ``clone_failed``
        git_output: stderr of the git command, if one ran
    """

    PROJECT_NOT_FOUND = "project_not_found"
    NO_CONTENT_REPO = "no_content_repo"
    NOT_CONNECTED = "not_connected"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    INVALID_URL = "invalid_url"
    CLONE_FAILED = "clone_failed"

    def __init__(self, reason: str, message: str, git_output: str = ""):
        super().__init__(f"Repository fetch failed ({reason}): {message}")
        self.reason = reason
        self.message = message
        self.git_output = git_output


class FilesystemError(ContentSyncError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    reason = "filesystem_error"

    def __init__(self, file_path: str, operation: str, detail: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.detail = detail


class ConfigError(ContentSyncError):
    """Raised when configuration validation fails."""

    reason = "config_error"

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message
