"""Template syntax validation for content sync.

Templates are compiled with Jinja2 but never rendered: the data they are
rendered with only exists at request time. Undefined variables are
therefore not errors here, and ``processed_content`` is always None.
"""

import logging
from typing import Optional

from jinja2 import Environment, TemplateSyntaxError

from src.content_sync.models import ProcessorResult

logger = logging.getLogger(__name__)


class TemplateProcessor:
    """Validates template syntax without rendering.

    Example:
        >>> result = TemplateProcessor().process("<div>{{ name }}</div>")
        >>> result.ok, result.processed_content
        (True, None)
    """

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment or Environment(autoescape=True)

    def process(self, raw_template: str) -> ProcessorResult:
        """Compile a template to check its syntax.

        Args:
            raw_template: Template source

        Returns:
            ProcessorResult with processed_content None in every case. On a
            syntax error, parse_errors carries ``line`` and ``column``.
            Never raises.
        """
        try:
            self.environment.compile(raw_template, name="nofile")
            return ProcessorResult.success(raw_template, None)
        except TemplateSyntaxError as e:
            return ProcessorResult.error(raw_template, {
                "error_type": "TemplateSyntaxError",
                "message": e.message or str(e),
                "line": e.lineno,
                # Jinja2 reports lines only
                "column": getattr(e, "column", None),
            })
        except Exception as e:
            logger.debug(f"Template compile raised {type(e).__name__}: {e}")
            return ProcessorResult.error(raw_template, {
                "error_type": type(e).__name__,
                "message": str(e),
                "line": getattr(e, "lineno", None),
                "column": getattr(e, "column", None),
            })


_default = TemplateProcessor()


def process(raw_template: str) -> ProcessorResult:
    """Validate a template with the default processor."""
    return _default.process(raw_template)
