"""Content sync library.

Syncs a flat directory of content files (``.md``, ``.html``, ``.tmpl``) and
their ``.yaml`` sidecars into the content store, replacing the scope's
previous content in one transaction.
"""

from .discovery import discover_files, sidecar_path
from .errors import (
    ConfigError,
    ContentSyncError,
    FilesystemError,
    GitSyncError,
    InvalidDirectoryError,
    MetadataError,
    MissingScopeError,
    PersistenceError,
)
from .metadata_parser import MetadataParser
from .models import (
    ContentAttributes,
    ContentMetadata,
    ContentType,
    ParseStatus,
    ProcessorResult,
    Scope,
    StoredContent,
    SyncSummary,
)
from .notifications import NotificationSink, PubSub
from .sync_engine import SyncEngine, sync_directory

__all__ = [
    'ConfigError',
    'ContentAttributes',
    'ContentMetadata',
    'ContentSyncError',
    'ContentType',
    'FilesystemError',
    'GitSyncError',
    'InvalidDirectoryError',
    'MetadataError',
    'MetadataParser',
    'MissingScopeError',
    'NotificationSink',
    'ParseStatus',
    'PersistenceError',
    'ProcessorResult',
    'PubSub',
    'Scope',
    'StoredContent',
    'SyncEngine',
    'SyncSummary',
    'discover_files',
    'sidecar_path',
    'sync_directory',
]
