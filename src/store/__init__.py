"""Persistent store for synced content.

Provides the ContentStore interface the sync engine writes through and a
SQLite implementation with all-or-nothing transactions.
"""

from .content_store import ContentStore, ContentTransaction, SQLiteContentStore
from .errors import StoreError

__all__ = [
    'ContentStore',
    'ContentTransaction',
    'SQLiteContentStore',
    'StoreError',
]
