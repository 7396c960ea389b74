"""Content processors for markdown, HTML and template files.

Every processor exposes ``process(raw_text) -> ProcessorResult`` and never
raises: failures are returned as data so a sync can report every broken
file in one pass.
"""

from typing import Dict

from .html_processor import HtmlProcessor
from .markdown_processor import MarkdownProcessor
from .template_processor import TemplateProcessor

__all__ = [
    'HtmlProcessor',
    'MarkdownProcessor',
    'TemplateProcessor',
    'default_processors',
]


def default_processors() -> Dict[str, object]:
    """Map each supported file extension to a processor instance."""
    return {
        '.md': MarkdownProcessor(),
        '.html': HtmlProcessor(),
        '.tmpl': TemplateProcessor(),
    }
