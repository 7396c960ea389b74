"""Root pytest configuration for all tests.

Shared fixtures for building content directories on disk and a throwaway
SQLite content store.
"""

import logging

import pytest
import yaml

from src.content_sync.models import Scope
from src.store import SQLiteContentStore

# Keep watchdog's inotify/polling chatter out of captured logs
logging.getLogger("watchdog").setLevel(logging.WARNING)


@pytest.fixture
def scope():
    """Scope used by most sync tests."""
    return Scope(account_id="acct-1", project_id="proj-1")


@pytest.fixture
def content_dir(tmp_path):
    """Empty flat content directory."""
    directory = tmp_path / "content"
    directory.mkdir()
    return directory


@pytest.fixture
def write_content(content_dir):
    """Write a content file and (optionally) its sidecar.

    Usage:
        write_content("a.md", "# Hi", {"title": "A", "slug": "a", "type": "blog"})
        write_content("orphan.md", "# No sidecar")            # no sidecar
        write_content("bad.md", "# Hi", sidecar_text="a: [")  # raw sidecar text
    """
    def _write(name, body, metadata=None, sidecar_text=None):
        path = content_dir / name
        path.write_text(body, encoding="utf-8")
        sidecar = path.with_suffix(".yaml")
        if sidecar_text is not None:
            sidecar.write_text(sidecar_text, encoding="utf-8")
        elif metadata is not None:
            sidecar.write_text(yaml.safe_dump(metadata, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store(tmp_path):
    """SQLite content store in a temporary database file."""
    return SQLiteContentStore(str(tmp_path / "db" / "content.db"))
