"""Watch a content directory and re-sync it after changes settle.

Filesystem events come from a watchdog observer scheduled non-recursively
on the content directory. Relevant events feed a Debouncer; when it fires
the watcher runs ``sync_fn(scope, directory)``, at most one at a time.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from src.content_sync.errors import ContentSyncError, InvalidDirectoryError
from src.content_sync.models import Scope

from .debouncer import Debouncer

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 1000

# Event kinds that can change the content set
RELEVANT_KINDS = frozenset({"modified", "created", "removed"})

# watchdog event type -> event kind
WATCHDOG_KINDS = {
    EVENT_TYPE_CREATED: "created",
    EVENT_TYPE_MODIFIED: "modified",
    EVENT_TYPE_DELETED: "removed",
}

SyncFn = Callable[[Scope, str], Any]


def relevant_event(kinds: Iterable[str]) -> bool:
    """True if any of ``kinds`` can change the content set."""
    return any(kind in RELEVANT_KINDS for kind in kinds)


@dataclass
class WatcherState:
    """Configuration and runtime state of one DirectoryWatcher.

    Attributes:
        directory: Directory being watched
        scope: Scope every sync runs under
        debounce_ms: Quiet period before a sync
        sync_fn: Called as ``sync_fn(scope, directory)``
        sync_count: Number of syncs started
        last_result: Return value of the last successful sync
        last_error: Exception raised by the last failed sync
        debouncer: Debouncer owning the pending timer handle
    """
    directory: str
    scope: Scope
    debounce_ms: int
    sync_fn: SyncFn
    sync_count: int = 0
    last_result: Any = None
    last_error: Optional[BaseException] = field(default=None, repr=False)
    debouncer: Optional[Debouncer] = field(default=None, repr=False)

    @property
    def timer_pending(self) -> bool:
        """True while a debounced sync is waiting to fire."""
        return self.debouncer is not None and self.debouncer.pending


class _ContentEventHandler(FileSystemEventHandler):
    """Forwards watchdog events to the watcher as event kinds."""

    def __init__(self, watcher: "DirectoryWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        kind = WATCHDOG_KINDS.get(event.event_type)
        if kind is None:
            return
        self.watcher.handle_events([kind])


class DirectoryWatcher:
    """Debounced sync-on-change for one content directory.

    Example:
        >>> watcher = DirectoryWatcher("./content", scope, engine.sync_directory)
        >>> with watcher:
        ...     time.sleep(60)
    """

    def __init__(
        self,
        directory: str,
        scope: Scope,
        sync_fn: SyncFn,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        observer_factory: Callable[[], Any] = Observer,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.state = WatcherState(
            directory=directory,
            scope=scope,
            debounce_ms=debounce_ms,
            sync_fn=sync_fn,
        )
        self._observer_factory = observer_factory
        self._observer = None
        self._sync_lock = threading.Lock()
        self.debouncer = Debouncer(debounce_ms, self._run_sync, timer_factory=timer_factory)
        self.state.debouncer = self.debouncer

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Validate the directory and begin watching it.

        Raises:
            InvalidDirectoryError: Directory missing or not a directory
        """
        if self.running:
            return

        directory = self.state.directory
        if not directory or not os.path.isdir(directory):
            raise InvalidDirectoryError(directory, "cannot watch a missing directory")

        observer = self._observer_factory()
        observer.schedule(_ContentEventHandler(self), directory, recursive=False)
        observer.start()
        self._observer = observer
        logger.info(f"Watching {directory} (debounce {self.state.debounce_ms}ms)")

    def stop(self) -> None:
        """Stop watching and drop any pending sync."""
        self.debouncer.cancel()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()
            logger.info(f"Stopped watching {self.state.directory}")

    def handle_events(self, kinds: Iterable[str]) -> None:
        """Re-arm the debounce timer if any event kind is relevant."""
        kinds = list(kinds)
        if relevant_event(kinds):
            logger.debug(f"Change detected in {self.state.directory}: {kinds}")
            self.debouncer.trigger()

    def _run_sync(self) -> None:
        with self._sync_lock:
            self.state.sync_count += 1
            directory = self.state.directory
            logger.info(f"Syncing {directory} after changes")
            try:
                result = self.state.sync_fn(self.state.scope, directory)
            except ContentSyncError as e:
                self.state.last_error = e
                logger.error(f"Sync of {directory} failed ({e.reason}): {e}")
                return
            except Exception as e:
                self.state.last_error = e
                logger.exception(f"Sync of {directory} failed unexpectedly")
                return

            self.state.last_error = None
            self.state.last_result = result
            logger.info(f"Sync of {directory} finished: {result}")

    def __enter__(self) -> "DirectoryWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
