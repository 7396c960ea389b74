"""Unit tests for content_sync.discovery module."""

from pathlib import Path

from src.content_sync.discovery import discover_files, sidecar_path


class TestSidecarPath:
    """Test cases for sidecar_path()."""

    def test_replaces_extension(self):
        assert sidecar_path("content/a.md") == Path("content/a.yaml")
        assert sidecar_path(Path("b.html")) == Path("b.yaml")
        assert sidecar_path("c.tmpl") == Path("c.yaml")


class TestDiscoverFiles:
    """Test cases for discover_files()."""

    def test_only_paired_files_returned(self, content_dir, write_content):
        """Files without a sidecar are skipped."""
        meta = {"title": "T", "slug": "s", "type": "blog"}
        write_content("a.md", "# A", meta)
        write_content("b.html", "<p>B</p>", meta)
        write_content("c.tmpl", "{{ c }}", meta)
        write_content("orphan.md", "# no sidecar")

        result = discover_files(content_dir)

        assert [p.name for p in result] == ["a.md", "b.html", "c.tmpl"]

    def test_sorted_lexicographically(self, content_dir, write_content):
        meta = {"title": "T", "slug": "s", "type": "blog"}
        for name in ["zeta.md", "alpha.html", "mid.tmpl"]:
            write_content(name, "x", meta)

        result = discover_files(content_dir)

        assert [p.name for p in result] == ["alpha.html", "mid.tmpl", "zeta.md"]

    def test_ignores_other_extensions(self, content_dir, write_content):
        """Only .md, .html and .tmpl are content files."""
        meta = {"title": "T", "slug": "s", "type": "blog"}
        write_content("notes.txt", "x", meta)
        write_content("data.json", "{}", meta)

        assert discover_files(content_dir) == []

    def test_not_recursive(self, content_dir, write_content):
        """Subdirectories are not scanned."""
        nested = content_dir / "nested"
        nested.mkdir()
        (nested / "deep.md").write_text("# deep")
        (nested / "deep.yaml").write_text("title: T\nslug: s\ntype: blog\n")

        assert discover_files(content_dir) == []

    def test_empty_directory(self, content_dir):
        assert discover_files(content_dir) == []
