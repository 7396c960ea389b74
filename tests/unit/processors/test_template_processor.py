"""Unit tests for processors.template_processor module."""

from unittest.mock import Mock

from src.content_sync.models import ParseStatus
from src.processors import default_processors, template_processor
from src.processors.html_processor import HtmlProcessor
from src.processors.markdown_processor import MarkdownProcessor
from src.processors.template_processor import TemplateProcessor


class TestTemplateProcessor:
    """Test cases for TemplateProcessor.process()."""

    def test_valid_template_not_rendered(self):
        result = TemplateProcessor().process("<div>{{ name }}</div>")

        assert result.parse_status is ParseStatus.SUCCESS
        assert result.processed_content is None
        assert result.raw_content == "<div>{{ name }}</div>"

    def test_control_structures(self):
        source = "{% for item in items %}<li>{{ item | upper }}</li>{% endfor %}"

        assert TemplateProcessor().process(source).ok

    def test_unclosed_block(self):
        result = TemplateProcessor().process("line one\n{% if user %}\n<p>hi</p>\n")

        assert result.parse_status is ParseStatus.ERROR
        assert result.processed_content is None
        assert result.parse_errors["error_type"] == "TemplateSyntaxError"
        assert isinstance(result.parse_errors["line"], int)
        assert "column" in result.parse_errors

    def test_unclosed_expression_reports_line(self):
        result = TemplateProcessor().process("a\nb\n{{ name \n")

        assert result.failed
        assert result.parse_errors["line"] >= 3

    def test_other_exceptions_use_class_name(self):
        environment = Mock()
        environment.compile.side_effect = RuntimeError("broken env")

        result = TemplateProcessor(environment=environment).process("{{ x }}")

        assert result.failed
        assert result.parse_errors["error_type"] == "RuntimeError"
        assert result.parse_errors["message"] == "broken env"

    def test_module_level_process(self):
        assert template_processor.process("{{ x }}").processed_content is None


class TestDefaultProcessors:
    """Test cases for default_processors()."""

    def test_extension_routing(self):
        processors = default_processors()

        assert set(processors) == {".md", ".html", ".tmpl"}
        assert isinstance(processors[".md"], MarkdownProcessor)
        assert isinstance(processors[".html"], HtmlProcessor)
        assert isinstance(processors[".tmpl"], TemplateProcessor)
