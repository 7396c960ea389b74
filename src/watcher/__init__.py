"""Debounced directory watching for content sync."""

from .debouncer import Debouncer
from .directory_watcher import DirectoryWatcher, WatcherState, relevant_event

__all__ = [
    'Debouncer',
    'DirectoryWatcher',
    'WatcherState',
    'relevant_event',
]
