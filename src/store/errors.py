"""Exceptions raised by the content store."""

from typing import Optional

from src.content_sync.errors import ContentSyncError


class StoreError(ContentSyncError):
    """Raised when a store operation fails (constraint violation, I/O, schema).

    Attributes:
        operation: Store operation that failed (``delete_all``, ``batch_insert``, ...)
        index: Position of the offending record in a batch, if known
    """

    reason = "store_error"

    def __init__(self, operation: str, message: str, index: Optional[int] = None):
        full_message = f"Store operation '{operation}' failed: {message}"
        if index is not None:
            full_message += f" (record {index})"
        super().__init__(full_message)
        self.operation = operation
        self.message = message
        self.index = index
