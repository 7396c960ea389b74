"""SQLite-backed persistence for synced content.

The sync engine only needs two write operations, both inside one ACID
transaction: delete every record of a scope, then insert the fresh batch.
A failure anywhere in the transaction rolls the whole thing back so readers
only ever see the previous or the new complete content set.

Each transaction opens its own connection and starts with
``BEGIN IMMEDIATE``, which takes SQLite's write lock up front. Two syncs for
the same scope (for example two watchers) are therefore serialised by the
database rather than interleaved.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, ContextManager, Dict, Iterator, List, Optional, Protocol, runtime_checkable

from src.content_sync.models import (
    ContentAttributes,
    ContentType,
    ParseStatus,
    Scope,
    StoredContent,
)

from .errors import StoreError

logger = logging.getLogger(__name__)

# Seconds to wait for another writer to release the database lock
SQLITE_TIMEOUT = 30.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS contents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id TEXT NOT NULL,
    project_id TEXT NOT NULL,
    slug TEXT NOT NULL,
    title TEXT,
    content_type TEXT NOT NULL,
    raw_content TEXT NOT NULL,
    processed_content TEXT,
    parse_status TEXT NOT NULL,
    parse_errors TEXT,
    publish_at TEXT,
    expires_at TEXT,
    meta_title TEXT,
    meta_description TEXT,
    og_image TEXT,
    og_title TEXT,
    og_description TEXT,
    protected INTEGER NOT NULL DEFAULT 0,
    metadata TEXT NOT NULL DEFAULT '{}',
    inserted_at TEXT NOT NULL,
    UNIQUE (account_id, project_id, slug, content_type)
);
CREATE INDEX IF NOT EXISTS idx_contents_scope_status
    ON contents (account_id, project_id, parse_status);
"""

COLUMNS = (
    "account_id",
    "project_id",
    "slug",
    "title",
    "content_type",
    "raw_content",
    "processed_content",
    "parse_status",
    "parse_errors",
    "publish_at",
    "expires_at",
    "meta_title",
    "meta_description",
    "og_image",
    "og_title",
    "og_description",
    "protected",
    "metadata",
    "inserted_at",
)


@runtime_checkable
class ContentTransaction(Protocol):
    """Write operations available inside a store transaction."""

    def delete_all(self, scope: Scope) -> int:
        """Delete every record of ``scope``; return the number deleted."""
        ...

    def batch_insert(self, scope: Scope, records: List[ContentAttributes]) -> List[StoredContent]:
        """Insert ``records`` under ``scope``; raise StoreError on rejection."""
        ...


@runtime_checkable
class ContentStore(Protocol):
    """Persistent store the sync engine writes to."""

    def transaction(self) -> ContextManager[ContentTransaction]:
        """Context manager yielding a ContentTransaction; commit on exit, rollback on error."""
        ...


class SQLiteTransaction:
    """ContentTransaction bound to one open SQLite connection."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection

    def delete_all(self, scope: Scope) -> int:
        try:
            cursor = self.connection.execute(
                "DELETE FROM contents WHERE account_id = ? AND project_id = ?",
                (str(scope.account_id), str(scope.project_id)),
            )
        except sqlite3.Error as e:
            raise StoreError("delete_all", str(e))
        logger.debug(f"Deleted {cursor.rowcount} content record(s) for {scope.topic}")
        return cursor.rowcount

    def batch_insert(self, scope: Scope, records: List[ContentAttributes]) -> List[StoredContent]:
        placeholders = ", ".join("?" for _ in COLUMNS)
        sql = f"INSERT INTO contents ({', '.join(COLUMNS)}) VALUES ({placeholders})"
        inserted_at = datetime.now(timezone.utc).isoformat()

        stored = []
        for index, record in enumerate(records):
            try:
                cursor = self.connection.execute(sql, _to_row(scope, record, inserted_at))
            except sqlite3.IntegrityError as e:
                raise StoreError(
                    "batch_insert",
                    f"{e} (slug={record.slug!r}, content_type={record.content_type.value!r})",
                    index=index,
                )
            except sqlite3.Error as e:
                raise StoreError("batch_insert", str(e), index=index)
            stored.append(StoredContent(
                id=cursor.lastrowid,
                account_id=str(scope.account_id),
                project_id=str(scope.project_id),
                attributes=record,
                inserted_at=inserted_at,
            ))
        return stored


class SQLiteContentStore:
    """Content store backed by a SQLite database file.

    Example:
        >>> store = SQLiteContentStore(".content-sync/content.db")
        >>> with store.transaction() as tx:
        ...     tx.delete_all(scope)
        ...     tx.batch_insert(scope, records)
    """

    def __init__(self, db_path: str):
        """Open (and create if needed) the database at ``db_path``.

        Raises:
            StoreError: If the database cannot be created
        """
        self.db_path = db_path
        db_dir = os.path.dirname(os.path.abspath(db_path))
        try:
            os.makedirs(db_dir, exist_ok=True)
            connection = self._connect()
            try:
                connection.executescript(SCHEMA)
            finally:
                connection.close()
        except (OSError, sqlite3.Error) as e:
            raise StoreError("init", f"cannot initialise {db_path}: {e}")

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self.db_path, timeout=SQLITE_TIMEOUT, isolation_level=None)
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def transaction(self) -> Iterator[SQLiteTransaction]:
        """Run the enclosed block in one write transaction.

        Commits when the block exits normally. Any exception rolls back every
        statement issued in the block and is re-raised.
        """
        connection = None
        try:
            connection = self._connect()
            connection.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            if connection is not None:
                connection.close()
            raise StoreError("begin", str(e))

        try:
            try:
                yield SQLiteTransaction(connection)
            except BaseException:
                connection.execute("ROLLBACK")
                logger.debug("Content transaction rolled back")
                raise
            try:
                connection.execute("COMMIT")
            except sqlite3.Error as e:
                connection.execute("ROLLBACK")
                raise StoreError("commit", str(e))
        finally:
            connection.close()

    def list_content(self, scope: Scope, parse_status: Optional[ParseStatus] = None) -> List[StoredContent]:
        """Return committed records of ``scope``, optionally filtered by status, ordered by id."""
        sql = "SELECT * FROM contents WHERE account_id = ? AND project_id = ?"
        params: List[Any] = [str(scope.account_id), str(scope.project_id)]
        if parse_status is not None:
            sql += " AND parse_status = ?"
            params.append(ParseStatus(parse_status).value)
        sql += " ORDER BY id"

        connection = self._connect()
        try:
            rows = connection.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError("list_content", str(e))
        finally:
            connection.close()
        return [_from_row(row) for row in rows]

    def count_by_parse_status(self, scope: Scope) -> Dict[str, int]:
        """Return ``{"success": n, "error": m}`` for ``scope``."""
        counts = {status.value: 0 for status in ParseStatus}
        connection = self._connect()
        try:
            rows = connection.execute(
                "SELECT parse_status, COUNT(*) AS total FROM contents "
                "WHERE account_id = ? AND project_id = ? GROUP BY parse_status",
                (str(scope.account_id), str(scope.project_id)),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError("count_by_parse_status", str(e))
        finally:
            connection.close()
        for row in rows:
            counts[row["parse_status"]] = row["total"]
        return counts


def _to_row(scope: Scope, record: ContentAttributes, inserted_at: str) -> tuple:
    return (
        str(scope.account_id),
        str(scope.project_id),
        record.slug,
        record.title,
        ContentType(record.content_type).value,
        record.raw_content,
        record.processed_content,
        ParseStatus(record.parse_status).value,
        _dump_json(record.parse_errors),
        _dump_datetime(record.publish_at),
        _dump_datetime(record.expires_at),
        record.meta_title,
        record.meta_description,
        record.og_image,
        record.og_title,
        record.og_description,
        1 if record.protected else 0,
        _dump_json(record.metadata or {}),
        inserted_at,
    )


def _from_row(row: sqlite3.Row) -> StoredContent:
    attributes = ContentAttributes(
        slug=row["slug"],
        title=row["title"],
        content_type=ContentType(row["content_type"]),
        raw_content=row["raw_content"],
        processed_content=row["processed_content"],
        parse_status=ParseStatus(row["parse_status"]),
        parse_errors=_load_json(row["parse_errors"]),
        publish_at=_load_datetime(row["publish_at"]),
        expires_at=_load_datetime(row["expires_at"]),
        meta_title=row["meta_title"],
        meta_description=row["meta_description"],
        og_image=row["og_image"],
        og_title=row["og_title"],
        og_description=row["og_description"],
        protected=bool(row["protected"]),
        metadata=_load_json(row["metadata"]) or {},
    )
    return StoredContent(
        id=row["id"],
        account_id=row["account_id"],
        project_id=row["project_id"],
        attributes=attributes,
        inserted_at=row["inserted_at"],
    )


def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, sort_keys=True)


def _load_json(value: Optional[str]) -> Any:
    if value is None:
        return None
    return json.loads(value)


def _dump_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
