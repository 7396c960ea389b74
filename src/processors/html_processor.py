"""HTML validation for content sync.

Parses HTML with BeautifulSoup (lxml) and scans for active content that is
not allowed in synced pages: ``<script>`` elements, inline event handler
attributes and ``javascript:`` URLs in ``href``/``src``.

This is detection only. Valid HTML is passed through byte-for-byte and
nothing is ever rewritten or sanitised.

The ``javascript:`` check is a trimmed, case-insensitive prefix match, not
a URL parse. Entity-encoded or otherwise obfuscated schemes are not caught.
"""

import logging
from typing import Any, Dict, List

from bs4 import BeautifulSoup, Tag

from src.content_sync.models import ProcessorResult

logger = logging.getLogger(__name__)

EVENT_HANDLER_ATTRIBUTES = frozenset([
    "onclick",
    "ondblclick",
    "onmousedown",
    "onmouseup",
    "onmouseover",
    "onmousemove",
    "onmouseout",
    "onmouseenter",
    "onmouseleave",
    "onkeydown",
    "onkeypress",
    "onkeyup",
    "onload",
    "onunload",
    "onabort",
    "onerror",
    "onresize",
    "onscroll",
    "onblur",
    "onchange",
    "onfocus",
    "onreset",
    "onselect",
    "onsubmit",
    "oninput",
    "oninvalid",
    "onsearch",
    "ondrag",
    "ondrop",
    "ondragstart",
    "ondragend",
    "ondragenter",
    "ondragleave",
    "ondragover",
    "onwheel",
    "oncopy",
    "oncut",
    "onpaste",
])

URL_ATTRIBUTES = ("href", "src")

JAVASCRIPT_PROTOCOL = "javascript:"


class HtmlProcessor:
    """Validates HTML structure and checks for disallowed JavaScript.

    Example:
        >>> HtmlProcessor().process("<p>Hello</p>").processed_content
        '<p>Hello</p>'
        >>> HtmlProcessor().process("<script>x</script>").parse_errors["violations"]
        [{'type': 'script_tag', 'element': 'script'}]
    """

    def __init__(self, parser: str = "lxml"):
        """Initialize HtmlProcessor with the given BeautifulSoup tree builder."""
        self.parser = parser

    def process(self, raw_html: str) -> ProcessorResult:
        """Validate raw HTML.

        Args:
            raw_html: HTML document or fragment

        Returns:
            Success with the unchanged HTML when no violation is found,
            otherwise an error result listing every violation. Never raises.
        """
        try:
            soup = BeautifulSoup(raw_html, self.parser)
        except Exception as e:
            logger.debug(f"HTML parse failed: {e}")
            return ProcessorResult.error(raw_html, {
                "error_type": "HTMLParseError",
                "message": f"Failed to parse HTML: {e}",
                "details": repr(e),
                "line": None,
            })

        violations = self.detect_violations(soup)
        if not violations:
            return ProcessorResult.success(raw_html, raw_html)

        return ProcessorResult.error(raw_html, {
            "error_type": "DisallowedContent",
            "message": "HTML contains disallowed JavaScript content",
            "details": None,
            "violations": violations,
        })

    def detect_violations(self, soup: BeautifulSoup) -> List[Dict[str, Any]]:
        """Return script tag, event handler and javascript: URL violations in that order."""
        return (
            self._detect_script_tags(soup)
            + self._detect_event_handlers(soup)
            + self._detect_javascript_protocol(soup)
        )

    @staticmethod
    def _detect_script_tags(soup: BeautifulSoup) -> List[Dict[str, Any]]:
        return [{"type": "script_tag", "element": "script"} for _ in soup.find_all("script")]

    @staticmethod
    def _detect_event_handlers(soup: BeautifulSoup) -> List[Dict[str, Any]]:
        violations = []
        for element in soup.find_all(True):
            for attribute in element.attrs:
                if attribute.lower() in EVENT_HANDLER_ATTRIBUTES:
                    violations.append({
                        "type": "event_handler",
                        "element": element.name,
                        "attribute": attribute.lower(),
                    })
        return violations

    @staticmethod
    def _detect_javascript_protocol(soup: BeautifulSoup) -> List[Dict[str, Any]]:
        violations = []
        for element in soup.find_all(True):
            for attribute in URL_ATTRIBUTES:
                if has_javascript_protocol(_attribute_text(element, attribute)):
                    violations.append({
                        "type": "javascript_protocol",
                        "element": element.name,
                        "attribute": attribute,
                    })
        return violations


def has_javascript_protocol(value: Any) -> bool:
    """True when ``value`` starts with ``javascript:`` after trimming, ignoring case."""
    if not isinstance(value, str):
        return False
    return value.strip().lower().startswith(JAVASCRIPT_PROTOCOL)


def _attribute_text(element: Tag, attribute: str) -> Any:
    value = element.get(attribute)
    # Multi-valued attributes come back as lists
    if isinstance(value, list):
        return " ".join(value)
    return value


_default = HtmlProcessor()


def process(raw_html: str) -> ProcessorResult:
    """Validate HTML with the default processor."""
    return _default.process(raw_html)
