"""Markdown to HTML conversion for content sync.

Uses Python-Markdown with the ``extra`` extension set (fenced code, tables,
footnotes, attribute lists). Conversion problems are reported through the
ProcessorResult instead of being raised, so one malformed document never
stops a sync.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import markdown

from src.content_sync.models import ProcessorResult

logger = logging.getLogger(__name__)

# Opening/closing fence: up to 3 spaces of indent, then ``` or ~~~ (3+)
FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})")


class MarkdownProcessor:
    """Converts markdown content to HTML.

    Example:
        >>> MarkdownProcessor().process("# Hello").processed_content
        '<h1>Hello</h1>'
    """

    EXTENSIONS = ["extra", "sane_lists"]

    def __init__(self, extensions: Optional[List[str]] = None):
        self.extensions = list(extensions) if extensions is not None else list(self.EXTENSIONS)

    def process(self, raw_markdown: str) -> ProcessorResult:
        """Convert markdown to HTML.

        Args:
            raw_markdown: Markdown source

        Returns:
            ProcessorResult with the HTML on success, or error details for
            the first diagnostic found. Never raises.
        """
        try:
            issues = self._diagnose(raw_markdown)
            if issues:
                return ProcessorResult.error(raw_markdown, self._build_error_map(issues))

            # Markdown instances keep per-document state; use a fresh one per call
            converter = markdown.Markdown(extensions=self.extensions)
            html = converter.convert(raw_markdown)
            return ProcessorResult.success(raw_markdown, html)
        except Exception as e:
            logger.debug(f"Markdown conversion raised {type(e).__name__}: {e}")
            return ProcessorResult.error(raw_markdown, {
                "error_type": type(e).__name__,
                "message": str(e),
                "details": repr(e),
                "line": None,
                "context": None,
            })

    def _diagnose(self, raw_markdown: str) -> List[Tuple[str, int, str]]:
        """Collect (severity, line, message) issues the converter would hide.

        Python-Markdown silently renders an unterminated fence as a paragraph
        of backticks; authors almost always meant a code block.
        """
        issues = []
        open_fence = None
        open_line = 0

        for number, line in enumerate(raw_markdown.splitlines(), start=1):
            match = FENCE_PATTERN.match(line)
            if not match:
                continue
            fence = match.group(1)
            if open_fence is None:
                # ```code``` on one line is inline code, not a fence
                if fence[0] == "`" and "`" in line[match.end():]:
                    continue
                open_fence = fence
                open_line = number
            elif fence[0] == open_fence[0] and len(fence) >= len(open_fence) \
                    and not line.strip()[len(fence):].strip():
                open_fence = None

        if open_fence is not None:
            issues.append((
                "error",
                open_line,
                f"Fenced Code Block opened with {open_fence} not closed at end of input",
            ))
        return issues

    @staticmethod
    def _build_error_map(issues: List[Tuple[str, int, str]]) -> Dict[str, Any]:
        severity, line, message = issues[0]
        return {
            "error_type": "MarkdownParseError",
            "message": f"Line {line}: {message}",
            "details": [
                {"severity": s, "line": n, "message": m} for s, n, m in issues
            ],
            "line": line,
            "context": {"severity": severity, "line": line, "message": message},
        }


_default = MarkdownProcessor()


def process(raw_markdown: str) -> ProcessorResult:
    """Convert markdown with the default processor."""
    return _default.process(raw_markdown)
