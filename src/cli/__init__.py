"""Command-line interface for content sync.

This package provides the `content-sync` CLI tool: one-shot directory sync,
debounced watch mode and a report of content records with errors.
"""

from .config import ConfigLoader
from .errors import CLIError, ConfigNotFoundError
from .models import ExitCode, SyncConfig

__all__ = [
    'CLIError',
    'ConfigLoader',
    'ConfigNotFoundError',
    'ExitCode',
    'SyncConfig',
]
