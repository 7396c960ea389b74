"""YAML sidecar parsing for content files.

Every content file ``name.{md,html,tmpl}`` is described by a sidecar
``name.yaml`` next to it. The sidecar must be a mapping with ``title``,
``slug`` and ``type``; the optional publishing and SEO keys are promoted to
typed fields and anything else is passed through untouched.
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import MetadataError
from .models import ContentMetadata


class MetadataParser:
    """Reads and validates sidecar metadata files.

    Sidecar format:
        title: "Hello World"
        slug: hello-world
        type: blog
        publish_at: 2024-01-15T10:00:00Z
        tags: [elixir, python]
        custom_key: passed through in ``extra``

    The file is read exactly once and never retried.
    """

    REQUIRED_FIELDS = ("title", "slug", "type")

    KNOWN_FIELDS = (
        "title",
        "slug",
        "type",
        "publish_at",
        "expires_at",
        "meta_title",
        "meta_description",
        "og_image",
        "og_title",
        "og_description",
        "tags",
        "protected",
    )

    # Maximum allowed depth for YAML structures to prevent DoS attacks
    MAX_YAML_DEPTH = 10

    @classmethod
    def parse(cls, file_path: Union[str, Path]) -> ContentMetadata:
        """Parse a sidecar file into ContentMetadata.

        Args:
            file_path: Path to the ``.yaml`` sidecar

        Returns:
            ContentMetadata with known keys promoted and unknown keys in ``extra``

        Raises:
            MetadataError: kind ``file_not_found``, ``syntax_error`` or
                ``invalid_structure``
        """
        path = str(file_path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            raise MetadataError(MetadataError.FILE_NOT_FOUND, path, "Metadata file not found")
        except UnicodeDecodeError as e:
            raise MetadataError(
                MetadataError.SYNTAX_ERROR, path, "Metadata file is not valid UTF-8", details={"error": str(e)}
            )
        except OSError as e:
            raise MetadataError(
                MetadataError.FILE_NOT_FOUND, path, "Metadata file not found", details=str(e)
            )

        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MetadataError(
                MetadataError.SYNTAX_ERROR, path, "Invalid YAML syntax", details=cls._yaml_error_details(e)
            )

        cls._validate_structure(path, parsed)
        return cls._to_metadata(parsed)

    @classmethod
    def _validate_structure(cls, path: str, parsed: Any) -> None:
        if not isinstance(parsed, dict):
            raise MetadataError(
                MetadataError.INVALID_STRUCTURE,
                path,
                "Metadata must be a map with required keys",
                details={"got": type(parsed).__name__},
            )

        # Null and blank values count as missing
        missing = [name for name in cls.REQUIRED_FIELDS if _is_blank(parsed.get(name))]
        if missing:
            raise MetadataError(
                MetadataError.INVALID_STRUCTURE,
                path,
                "Metadata must be a map with required keys",
                details={"missing_fields": missing},
            )

        if cls._depth(parsed) > cls.MAX_YAML_DEPTH:
            raise MetadataError(
                MetadataError.INVALID_STRUCTURE,
                path,
                f"YAML structure exceeds maximum depth of {cls.MAX_YAML_DEPTH}",
            )

        protected = parsed.get("protected")
        if protected is not None and _as_bool(protected) is None:
            raise MetadataError(
                MetadataError.INVALID_STRUCTURE,
                path,
                "protected must be true or false",
                details={"field": "protected", "got": repr(protected)},
            )

    @classmethod
    def _depth(cls, obj: Any, current: int = 0) -> int:
        """Return the nesting depth of a YAML value, stopping past the limit."""
        if current > cls.MAX_YAML_DEPTH:
            return current
        if isinstance(obj, dict):
            children = obj.values()
        elif isinstance(obj, list):
            children = obj
        else:
            return current
        return max((cls._depth(child, current + 1) for child in children), default=current)

    @classmethod
    def _to_metadata(cls, parsed: Dict[Any, Any]) -> ContentMetadata:
        known = {key: parsed[key] for key in cls.KNOWN_FIELDS if key in parsed}
        extra = {
            str(key): value for key, value in parsed.items() if key not in cls.KNOWN_FIELDS
        }

        tags = known.get("tags") or []
        if not isinstance(tags, list):
            tags = [tags]

        protected = _as_bool(known.get("protected"))

        return ContentMetadata(
            title=_as_text(known["title"]),
            slug=_as_text(known["slug"]),
            type=_as_text(known["type"]),
            publish_at=known.get("publish_at"),
            expires_at=known.get("expires_at"),
            meta_title=_as_text(known.get("meta_title")),
            meta_description=_as_text(known.get("meta_description")),
            og_image=_as_text(known.get("og_image")),
            og_title=_as_text(known.get("og_title")),
            og_description=_as_text(known.get("og_description")),
            tags=[str(tag) for tag in tags],
            protected=protected,
            extra=extra,
            raw={str(key): value for key, value in parsed.items()},
        )

    @staticmethod
    def _yaml_error_details(error: yaml.YAMLError) -> Dict[str, Any]:
        details: Dict[str, Any] = {"error": str(error)}
        mark = getattr(error, "problem_mark", None)
        if mark is not None:
            details["line"] = mark.line + 1
            details["column"] = mark.column + 1
        problem = getattr(error, "problem", None)
        if problem:
            details["problem"] = problem
        return details


def _as_text(value: Any) -> Any:
    if value is None:
        return None
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_bool(value: Any) -> Any:
    """Return True/False for YAML booleans and quoted "true"/"false", else None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return {"true": True, "false": False}.get(value.strip().lower())
    return None
