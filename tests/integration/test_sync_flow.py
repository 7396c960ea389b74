"""Integration tests for the full sync flow.

Real files on disk, real processors and a real SQLite store; nothing mocked.
"""

import threading

import pytest

from src.content_sync import PubSub, SyncEngine, sync_directory
from src.content_sync.errors import PersistenceError
from src.content_sync.models import ContentType, ParseStatus, Scope
from src.store import SQLiteContentStore
from src.watcher import DirectoryWatcher


def slugs(store, scope):
    return sorted(item.attributes.slug for item in store.list_content(scope))


class TestFullSync:
    """End-to-end sync of a content directory."""

    def test_mixed_directory(self, content_dir, write_content, store, scope):
        """Markdown post succeeds, scripted HTML page is stored as an error."""
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        write_content("b.html", "<script>x</script>", {"title": "B", "slug": "b", "type": "page"})

        summary = sync_directory(scope, content_dir, store)

        assert (summary.total_files, summary.successful, summary.errors) == (2, 1, 1)
        assert summary.content_types == {"blog": 1}

        errors = store.list_content(scope, parse_status=ParseStatus.ERROR)
        assert len(errors) == 1
        page = errors[0].attributes
        assert page.slug == "b"
        assert page.content_type is ContentType.PAGE
        assert page.parse_errors["violations"] == [{"type": "script_tag", "element": "script"}]

    def test_unpaired_files_excluded(self, content_dir, write_content, store, scope):
        for name in ["a.md", "b.html", "c.tmpl"]:
            stem = name.split(".")[0]
            write_content(name, "<p>ok</p>", {"title": stem, "slug": stem, "type": "page"})
        write_content("orphan.md", "# no sidecar")

        summary = sync_directory(scope, content_dir, store)

        assert summary.total_files == 3
        assert slugs(store, scope) == ["a", "b", "c"]

    def test_resync_replaces_previous_content(self, content_dir, write_content, store, scope):
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        write_content("b.md", "# B", {"title": "B", "slug": "b", "type": "blog"})
        sync_directory(scope, content_dir, store)

        (content_dir / "b.md").unlink()
        write_content("c.md", "# C", {"title": "C", "slug": "c", "type": "blog"})
        sync_directory(scope, content_dir, store)

        assert slugs(store, scope) == ["a", "c"]

    def test_resync_is_idempotent(self, content_dir, write_content, store, scope):
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog", "tags": ["x"]})
        write_content("t.tmpl", "{{ name }}", {"title": "T", "slug": "t", "type": "page"})

        sync_directory(scope, content_dir, store)
        first = [item.attributes for item in store.list_content(scope)]
        sync_directory(scope, content_dir, store)
        second = [item.attributes for item in store.list_content(scope)]

        assert first == second

    def test_failing_insert_keeps_previous_state(self, content_dir, write_content, store, scope):
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        sync_directory(scope, content_dir, store)
        before = [item.attributes for item in store.list_content(scope)]

        write_content("dup1.md", "# 1", {"title": "1", "slug": "dup", "type": "blog"})
        write_content("dup2.md", "# 2", {"title": "2", "slug": "dup", "type": "blog"})

        with pytest.raises(PersistenceError):
            sync_directory(scope, content_dir, store)

        assert [item.attributes for item in store.list_content(scope)] == before

    def test_scopes_are_isolated(self, content_dir, write_content, store):
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        first, second = Scope("acct", "p1"), Scope("acct", "p2")

        sync_directory(first, content_dir, store)
        sync_directory(second, content_dir, store)
        (content_dir / "a.md").unlink()
        sync_directory(second, content_dir, store)

        assert slugs(store, first) == ["a"]
        assert slugs(store, second) == []

    def test_broken_sidecars_become_placeholders(self, content_dir, write_content, store, scope):
        write_content("a.md", "# A", sidecar_text="title: [unclosed\n")
        write_content("b.md", "# B", sidecar_text="title: only\n")

        summary = sync_directory(scope, content_dir, store)

        assert summary.errors == 2
        placeholders = store.list_content(scope)
        assert all(p.attributes.slug.startswith("error-") for p in placeholders)
        kinds = sorted(p.attributes.parse_errors["details"]["kind"] for p in placeholders)
        assert kinds == ["invalid_structure", "syntax_error"]

    def test_blank_slugs_do_not_abort_sync(self, content_dir, write_content, store, scope):
        """Null and empty slugs become placeholders instead of failing the insert."""
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        write_content("b.md", "# B", sidecar_text="title: B\nslug:\ntype: blog\n")
        write_content("c.md", "# C", sidecar_text="title: C\nslug: ''\ntype: blog\n")
        write_content("d.md", "# D", sidecar_text="title: D\nslug: ''\ntype: blog\n")

        summary = sync_directory(scope, content_dir, store)

        assert (summary.total_files, summary.successful, summary.errors) == (4, 1, 3)
        errors = store.list_content(scope, parse_status=ParseStatus.ERROR)
        assert len(errors) == 3
        for item in errors:
            assert item.attributes.slug.startswith("error-")
            assert item.attributes.parse_errors["details"]["details"] == {"missing_fields": ["slug"]}
        assert "a" in slugs(store, scope)

    def test_summary_published(self, content_dir, write_content, store, scope):
        write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
        bus = PubSub()
        received = []
        bus.subscribe(scope.topic, lambda topic, payload: received.append(payload))

        summary = SyncEngine(store, notifier=bus).sync_directory(scope, content_dir)

        assert received == [summary.to_dict()]


class TestWatchAndSync:
    """Watcher driving the real engine and store."""

    def test_change_triggers_sync(self, content_dir, write_content, tmp_path, scope):
        store = SQLiteContentStore(str(tmp_path / "watch.db"))
        bus = PubSub()
        synced = threading.Event()

        def on_summary(topic, payload):
            if payload["total_files"] == 1:
                synced.set()

        bus.subscribe(scope.topic, on_summary)
        engine = SyncEngine(store, notifier=bus)

        with DirectoryWatcher(str(content_dir), scope, engine.sync_directory, debounce_ms=50):
            write_content("a.md", "# A", {"title": "A", "slug": "a", "type": "blog"})
            assert synced.wait(5.0)

        assert slugs(store, scope) == ["a"]
