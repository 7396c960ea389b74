"""Full-replace sync of a content directory into the content store.

The filesystem is the only source of truth. Every sync deletes the scope's
committed content and recreates it from a fresh scan, all inside one store
transaction:

1. validate scope and directory (nothing is touched on failure)
2. delete all content of the scope
3. discover ``*.md`` / ``*.html`` / ``*.tmpl`` files that have a sidecar
4. process every file independently (parse sidecar, run the processor)
5. insert the whole batch; a store rejection rolls everything back
6. summarise, log error items and publish the summary

Per-file failures never abort the run: they are stored with
``parse_status=error`` and their details, so one pass reports every broken
file at once.
"""

import logging
import os
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from src.store.errors import StoreError

from .discovery import discover_files, sidecar_path
from .errors import InvalidDirectoryError, MetadataError, MissingScopeError, PersistenceError
from .metadata_parser import MetadataParser
from .models import (
    ContentAttributes,
    ContentMetadata,
    ContentType,
    ParseStatus,
    ProcessorResult,
    Scope,
    SyncSummary,
)
from .notifications import NotificationSink

if TYPE_CHECKING:
    from src.store.content_store import ContentStore

logger = logging.getLogger(__name__)

# Maximum parallel threads for per-file processing
MAX_WORKERS = 8

# Characters of raw content shown when logging an error item
PREVIEW_LENGTH = 200


class SyncEngine:
    """Syncs a flat content directory into the content store.

    Example:
        >>> engine = SyncEngine(SQLiteContentStore("content.db"), notifier=PubSub())
        >>> summary = engine.sync_directory(Scope("acct", "proj"), "./content")
        >>> print(f"{summary.successful}/{summary.total_files} ok")
    """

    def __init__(
        self,
        store: "ContentStore",
        notifier: Optional[NotificationSink] = None,
        processors: Optional[Dict[str, Any]] = None,
        max_workers: int = MAX_WORKERS,
    ):
        """Initialize the sync engine.

        Args:
            store: Content store providing ``transaction()``
            notifier: Sink receiving the summary after each commit
            processors: Extension -> processor map (defaults to markdown,
                HTML and template processors)
            max_workers: Upper bound on parallel file processing threads
        """
        if processors is None:
            from src.processors import default_processors
            processors = default_processors()

        self.store = store
        self.notifier = notifier
        self.processors = processors
        self.max_workers = max(1, int(max_workers))

    def sync_directory(self, scope: Optional[Scope], directory: Union[str, Path, None]) -> SyncSummary:
        """Replace the scope's stored content with the contents of ``directory``.

        Args:
            scope: Account/project the content belongs to
            directory: Flat directory of content files and sidecars

        Returns:
            SyncSummary of the committed set

        Raises:
            MissingScopeError: Scope or one of its ids is missing
            InvalidDirectoryError: Directory missing, not a directory or unreadable
            PersistenceError: Store rejected the batch; nothing was changed
        """
        start = time.monotonic()
        self._validate_scope(scope)
        content_dir = self._validate_directory(directory)

        logger.info(f"Syncing {content_dir} for {scope.topic}")

        try:
            with self.store.transaction() as tx:
                deleted = tx.delete_all(scope)
                logger.debug(f"Removed {deleted} previously committed record(s)")

                paths = discover_files(content_dir)
                records = self.process_files(paths)
                stored = tx.batch_insert(scope, records)
        except StoreError as e:
            logger.error(f"Sync of {content_dir} rolled back: {e}")
            raise PersistenceError(str(e), cause=e) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        summary = build_summary([item.attributes for item in stored], duration_ms)

        self._log_error_items(records)
        logger.info(
            f"Sync complete: {summary.total_files} file(s), {summary.successful} ok, "
            f"{summary.errors} error(s) in {summary.duration_ms}ms"
        )
        self._notify(scope, summary)
        return summary

    def process_files(self, paths: List[Path]) -> List[ContentAttributes]:
        """Process files in parallel, returning records in the order of ``paths``."""
        if not paths:
            return []

        workers = min(self.max_workers, len(paths))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.process_file, paths))

    def process_file(self, path: Path) -> ContentAttributes:
        """Turn one content file into a ContentAttributes record. Never raises."""
        path = Path(path)
        try:
            try:
                raw_bytes = path.read_bytes()
            except OSError as e:
                return build_file_error_attrs("", "FileReadError", f"Could not read {path.name}: {e}")

            try:
                raw_content = raw_bytes.decode("utf-8")
            except UnicodeDecodeError as e:
                return build_file_error_attrs(
                    raw_bytes.decode("utf-8", errors="replace"),
                    "EncodingError",
                    f"{path.name} is not valid UTF-8: {e}",
                )

            try:
                metadata = MetadataParser.parse(sidecar_path(path))
            except MetadataError as e:
                logger.debug(f"Metadata error for {path.name}: {e}")
                return build_metadata_error_attrs(raw_content, e)

            processor = self.processors[path.suffix]
            result = processor.process(raw_content)
            return merge_metadata_and_result(metadata, result, raw_content)
        except Exception as e:
            logger.exception(f"Unexpected error processing {path}")
            return build_file_error_attrs("", type(e).__name__, f"Unexpected error processing {path.name}: {e}")

    @staticmethod
    def _validate_scope(scope: Optional[Scope]) -> None:
        if scope is None:
            raise MissingScopeError("scope")
        if scope.account_id in (None, ""):
            raise MissingScopeError("account_id")
        if scope.project_id in (None, ""):
            raise MissingScopeError("project_id")

    @staticmethod
    def _validate_directory(directory: Union[str, Path, None]) -> Path:
        if directory is None or str(directory) == "":
            raise InvalidDirectoryError(directory, "no directory given")
        path = Path(directory)
        if not path.exists():
            raise InvalidDirectoryError(str(directory), "does not exist")
        if not path.is_dir():
            raise InvalidDirectoryError(str(directory), "not a directory")
        if not os.access(path, os.R_OK | os.X_OK):
            raise InvalidDirectoryError(str(directory), "not readable")
        return path

    @staticmethod
    def _log_error_items(records: List[ContentAttributes]) -> None:
        for record in records:
            if not record.failed:
                continue
            errors = record.parse_errors or {}
            preview = record.raw_content[:PREVIEW_LENGTH]
            logger.warning(
                f"Content error in '{record.slug}' ({record.content_type.value}): "
                f"{errors.get('error_type')}: {errors.get('message')} | preview: {preview!r}"
            )

    def _notify(self, scope: Scope, summary: SyncSummary) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.publish(scope.topic, summary.to_dict())
        except Exception as e:
            logger.warning(f"Failed to publish sync summary to {scope.topic}: {e}")


def sync_directory(
    scope: Optional[Scope],
    directory: Union[str, Path, None],
    store: "ContentStore",
    notifier: Optional[NotificationSink] = None,
    max_workers: int = MAX_WORKERS,
) -> SyncSummary:
    """Run one sync with a throwaway SyncEngine. See SyncEngine.sync_directory."""
    engine = SyncEngine(store, notifier=notifier, max_workers=max_workers)
    return engine.sync_directory(scope, directory)


def build_summary(records: List[ContentAttributes], duration_ms: int) -> SyncSummary:
    """Count records by status, with a per-type breakdown of successes."""
    content_types: Dict[str, int] = {}
    successful = 0
    for record in records:
        if record.parse_status is ParseStatus.SUCCESS:
            successful += 1
            key = record.content_type.value
            content_types[key] = content_types.get(key, 0) + 1

    return SyncSummary(
        total_files=len(records),
        successful=successful,
        errors=len(records) - successful,
        duration_ms=duration_ms,
        content_types=content_types,
    )


def merge_metadata_and_result(
    metadata: ContentMetadata,
    result: ProcessorResult,
    raw_content: str,
) -> ContentAttributes:
    """Combine sidecar metadata and processor output into one record."""
    return ContentAttributes(
        slug=metadata.slug,
        title=metadata.title,
        content_type=ContentType.from_value(metadata.type),
        raw_content=raw_content,
        processed_content=result.processed_content,
        parse_status=result.parse_status,
        parse_errors=result.parse_errors,
        publish_at=parse_datetime(metadata.publish_at),
        expires_at=parse_datetime(metadata.expires_at),
        meta_title=metadata.meta_title,
        meta_description=metadata.meta_description,
        og_image=metadata.og_image,
        og_title=metadata.og_title,
        og_description=metadata.og_description,
        protected=bool(metadata.protected),
        metadata=to_jsonable(metadata.raw),
    )


def build_metadata_error_attrs(raw_content: str, error: MetadataError) -> ContentAttributes:
    """Placeholder record for a file whose sidecar could not be used.

    The slug is randomised so several broken sidecars never collide on the
    store's uniqueness constraint.
    """
    return ContentAttributes(
        slug=generate_error_slug(),
        content_type=ContentType.BLOG,
        raw_content=raw_content,
        processed_content=None,
        parse_status=ParseStatus.ERROR,
        parse_errors={
            "error_type": "MetadataParseError",
            "message": error.message or "Unknown error",
            "details": to_jsonable(error.to_dict()),
        },
        metadata={},
    )


def build_file_error_attrs(raw_content: str, error_type: str, message: str) -> ContentAttributes:
    """Placeholder record for a file that could not be read or decoded."""
    return ContentAttributes(
        slug=generate_error_slug(),
        content_type=ContentType.BLOG,
        raw_content=raw_content,
        processed_content=None,
        parse_status=ParseStatus.ERROR,
        parse_errors={"error_type": error_type, "message": message},
        metadata={},
    )


def generate_error_slug() -> str:
    return "error-" + secrets.token_urlsafe(8)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a sidecar timestamp; naive values are taken as UTC, garbage is None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_jsonable(value: Any) -> Any:
    """Convert YAML values (dates, nested maps, tuples) into JSON-safe data."""
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
