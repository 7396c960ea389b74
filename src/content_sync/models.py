"""Data models for content sync.

This module defines all data models used by the content sync library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ParseStatus(str, Enum):
    """Outcome of processing a single content file."""
    SUCCESS = "success"
    ERROR = "error"


class ContentType(str, Enum):
    """Kinds of content a sidecar ``type`` field can declare."""
    BLOG = "blog"
    PAGE = "page"
    LANDING = "landing"
    DOCUMENTATION = "documentation"

    @classmethod
    def from_value(cls, value: Any) -> "ContentType":
        """Map a sidecar ``type`` value to a ContentType.

        Unrecognised values fall back to BLOG.
        """
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.BLOG


@dataclass(frozen=True)
class ProcessorResult:
    """Uniform result returned by every content processor.

    Processors never raise: a failure is carried as data so a single
    malformed file cannot abort a batch.

    Attributes:
        raw_content: The original unprocessed content
        processed_content: Processed output (HTML for markdown/html, always
            None for templates and for any error result)
        parse_status: SUCCESS or ERROR
        parse_errors: Error details when parse_status is ERROR. Always has
            ``error_type`` and ``message``; processors add ``line``,
            ``column``, ``context``, ``details`` or ``violations``.

    Example:
        >>> ProcessorResult.success("# Hello", "<h1>Hello</h1>").ok
        True
    """
    raw_content: str
    processed_content: Optional[str]
    parse_status: ParseStatus
    parse_errors: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, raw_content: str, processed_content: Optional[str]) -> "ProcessorResult":
        return cls(
            raw_content=raw_content,
            processed_content=processed_content,
            parse_status=ParseStatus.SUCCESS,
            parse_errors=None,
        )

    @classmethod
    def error(cls, raw_content: str, parse_errors: Dict[str, Any]) -> "ProcessorResult":
        return cls(
            raw_content=raw_content,
            processed_content=None,
            parse_status=ParseStatus.ERROR,
            parse_errors=parse_errors,
        )

    @property
    def ok(self) -> bool:
        return self.parse_status is ParseStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.parse_status is ParseStatus.ERROR


@dataclass
class ContentMetadata:
    """Typed view of a sidecar ``.yaml`` metadata file.

    Known keys are promoted to fields. Unknown keys are kept in ``extra``
    so newer sidecars keep working with older code.

    Attributes:
        title: Content title (required)
        slug: URL slug (required)
        type: Raw content type string (required)
        publish_at: Start of the publish window
        expires_at: End of the publish window
        meta_title: SEO title
        meta_description: SEO description
        og_image: Open Graph image URL
        og_title: Open Graph title
        og_description: Open Graph description
        tags: Tag names
        protected: Whether the content requires authentication
        extra: Unrecognised keys, passed through untouched
        raw: The whole sidecar mapping as read from disk
    """
    title: str
    slug: str
    type: str
    publish_at: Any = None
    expires_at: Any = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    protected: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ContentAttributes:
    """Per-file aggregate of metadata and processor output.

    This is the record written to the store. ``slug`` + ``content_type``
    must be unique within a scope; the store enforces it.
    """
    slug: str
    content_type: ContentType
    raw_content: str
    parse_status: ParseStatus
    title: Optional[str] = None
    processed_content: Optional[str] = None
    parse_errors: Optional[Dict[str, Any]] = None
    publish_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    protected: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.parse_status is ParseStatus.ERROR


@dataclass
class StoredContent:
    """A ContentAttributes record as committed by the store."""
    id: int
    account_id: str
    project_id: str
    attributes: ContentAttributes
    inserted_at: Optional[str] = None


@dataclass(frozen=True)
class Scope:
    """Tenant identity a sync runs under.

    Attributes:
        account_id: Owning account
        project_id: Owning project
        content_repo: Remote repository URL holding the content (optional)
    """
    account_id: Optional[str]
    project_id: Optional[str]
    content_repo: Optional[str] = None

    @property
    def topic(self) -> str:
        """Notification topic for sync events of this scope."""
        return f"account:{self.account_id}:project:{self.project_id}:content_admin"


@dataclass
class SyncSummary:
    """Summary of a committed sync.

    Attributes:
        total_files: Number of content records written
        successful: Records with parse_status SUCCESS
        errors: Records with parse_status ERROR
        duration_ms: Wall time of the sync in milliseconds
        content_types: Success count per content type value

    Example:
        >>> SyncSummary(total_files=2, successful=1, errors=1, content_types={"blog": 1})
    """
    total_files: int = 0
    successful: int = 0
    errors: int = 0
    duration_ms: int = 0
    content_types: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
