"""Unit tests for cli.output module."""

from io import StringIO

from rich.console import Console

from src.cli.output import OutputHandler
from src.content_sync.models import (
    ContentAttributes,
    ContentType,
    ParseStatus,
    StoredContent,
    SyncSummary,
)


def make_handler(verbosity=0):
    handler = OutputHandler(verbosity=verbosity, no_color=True)
    buffer = StringIO()
    handler.console = Console(file=buffer, no_color=True, width=200, highlight=False)
    return handler, buffer


def error_item(slug, parse_errors, raw_content="<script>x</script>"):
    return StoredContent(
        id=1,
        account_id="a",
        project_id="p",
        attributes=ContentAttributes(
            slug=slug,
            content_type=ContentType.PAGE,
            raw_content=raw_content,
            parse_status=ParseStatus.ERROR,
            parse_errors=parse_errors,
        ),
    )


class TestMessages:
    """Test cases for the basic message helpers."""

    def test_info_hidden_at_verbosity_zero(self):
        handler, buffer = make_handler(verbosity=0)

        handler.info("details")

        assert buffer.getvalue() == ""

    def test_info_shown_at_verbosity_one(self):
        handler, buffer = make_handler(verbosity=1)

        handler.info("details")

        assert "details" in buffer.getvalue()

    def test_error_and_success(self):
        handler, buffer = make_handler()

        handler.error("bad")
        handler.success("good")

        output = buffer.getvalue()
        assert "✗ bad" in output
        assert "✓ good" in output


class TestPrintSummary:
    """Test cases for OutputHandler.print_summary()."""

    def test_summary_with_errors(self):
        handler, buffer = make_handler()

        handler.print_summary(SyncSummary(total_files=2, successful=1, errors=1, duration_ms=7,
                                          content_types={"blog": 1}))

        output = buffer.getvalue()
        assert "Files" in output
        assert "Errors" in output
        assert "blog" in output
        assert "7 ms" in output
        assert "content-sync errors" in output

    def test_summary_all_ok(self):
        handler, buffer = make_handler()

        handler.print_summary(SyncSummary(total_files=1, successful=1))

        assert "All content processed successfully" in buffer.getvalue()


class TestPrintErrorItems:
    """Test cases for OutputHandler.print_error_items()."""

    def test_no_items(self):
        handler, buffer = make_handler()

        handler.print_error_items([])

        assert "No content errors" in buffer.getvalue()

    def test_violations_listed(self):
        handler, buffer = make_handler()
        item = error_item("b", {
            "error_type": "DisallowedContent",
            "message": "HTML contains disallowed JavaScript content",
            "violations": [{"type": "event_handler", "element": "button", "attribute": "onclick"}],
        })

        handler.print_error_items([item])

        output = buffer.getvalue()
        assert "b (page) DisallowedContent: HTML contains disallowed JavaScript content" in output
        assert "event_handler: <button> onclick" in output

    def test_line_and_column(self):
        handler, buffer = make_handler()
        item = error_item("t", {"error_type": "TemplateSyntaxError", "message": "unexpected end", "line": 3,
                                "column": None})

        handler.print_error_items([item])

        assert "at line 3" in buffer.getvalue()

    def test_markup_in_messages_is_escaped(self):
        handler, buffer = make_handler()
        item = error_item("[bold]slug", {"error_type": "X", "message": "[red]not markup[/red]"})

        handler.print_error_items([item])

        output = buffer.getvalue()
        assert "[bold]slug" in output
        assert "[red]not markup[/red]" in output

    def test_preview_shown_when_verbose(self):
        handler, buffer = make_handler(verbosity=1)

        handler.print_error_items([error_item("b", {"error_type": "X", "message": "m"}, raw_content="abc\ndef")])

        assert "abc def" in buffer.getvalue()
