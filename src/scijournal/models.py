"""Wire models exchanged with the journal backend."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ArticleStatus(str, Enum):
    """Editorial status of an article, using the wire values verbatim."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REVISION_REQUESTED = "revision_requested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PUBLISHED = "published"

    @classmethod
    def _missing_(cls, value: object) -> "ArticleStatus | None":
        if isinstance(value, str) and value in STATUS_ALIASES:
            return cls(STATUS_ALIASES[value])
        return None


# Older screens send "revisions_required" for the same state.
STATUS_ALIASES = {"revisions_required": "revision_requested"}


def normalize_status(value: Any) -> Any:
    if isinstance(value, str):
        return STATUS_ALIASES.get(value, value)
    return value


class ReviewStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


class WireModel(BaseModel):
    """Base for backend payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self, **kwargs: Any) -> dict[str, Any]:
        """Dump to the camelCase JSON shape the backend expects."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json", **kwargs)


class Reference(WireModel):
    """A populated reference to another record (user, field, ...)."""

    id: str = Field(alias="_id")
    name: str | None = None
    full_name: str | None = None
    email: str | None = None
    code: str | None = None


def ref_id(value: str | Reference | None) -> str | None:
    """Return the id of a reference whether or not the backend populated it."""
    if value is None:
        return None
    if isinstance(value, Reference):
        return value.id
    return value


class Pagination(WireModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0


class ApiResponse(WireModel):
    """The `{success, data, pagination, message}` envelope."""

    # Auth endpoints put flags such as `exists` beside `data`.
    model_config = ConfigDict(extra="allow")

    success: bool = True
    data: Any = None
    pagination: Pagination | None = None
    message: str | None = None
    count: int | None = None


class StatusHistoryEntry(WireModel):
    id: str | None = Field(default=None, alias="_id")
    status: ArticleStatus
    changed_by: str | Reference | None = None
    timestamp: datetime | None = None
    reason: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, value: Any) -> Any:
        return normalize_status(value)


class ArticleAuthor(WireModel):
    """Author attached to an article, or floating in the admin author view."""

    id: str | None = Field(default=None, alias="_id")
    article_id: str | None = None
    user_id: str | Reference | None = None
    full_name: str
    email: str
    institution: str = ""
    country: str = ""
    is_corresponding: bool = False
    has_account: bool = False
    orcid: str | None = None
    order: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArticleFile(WireModel):
    id: str = Field(alias="_id")
    article_id: str
    file_category: str
    file_name: str
    original_name: str | None = None
    file_size: int = 0
    file_type: str = ""
    file_url: str
    uploaded_by: str | Reference | None = None
    is_active: bool = True
    round: int = 1
    file_version: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Article(WireModel):
    """The central entity: a manuscript moving through the editorial workflow."""

    id: str = Field(alias="_id")
    title_prefix: str | None = None
    title: str
    subtitle: str | None = None
    thumbnail: str | None = None
    abstract: str = ""
    keywords: list[str] = Field(default_factory=list)
    article_language: str = "vi"
    other_language: str | None = None
    authors: list[ArticleAuthor | str] = Field(default_factory=list)
    status: ArticleStatus = ArticleStatus.DRAFT
    status_history: list[StatusHistoryEntry | str] = Field(default_factory=list)
    field: str | Reference | None = None
    secondary_fields: list[str | Reference] = Field(default_factory=list)
    submitter_id: str | Reference | None = None
    editor_id: str | Reference | None = None
    submitter_note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    view_count: int = 0
    doi: str | None = None
    issue_id: str | None = None
    page_start: int | None = None
    page_end: int | None = None
    files: list[ArticleFile] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, value: Any) -> Any:
        return normalize_status(value)

    @property
    def field_id(self) -> str | None:
        return ref_id(self.field)

    @property
    def secondary_field_ids(self) -> list[str]:
        return [ref_id(item) for item in self.secondary_fields]

    @property
    def history(self) -> list[StatusHistoryEntry]:
        return [entry for entry in self.status_history if isinstance(entry, StatusHistoryEntry)]


class ResearchField(WireModel):
    """Node of the hierarchical classification taxonomy ("field" on the wire)."""

    id: str | None = Field(default=None, alias="_id")
    name: str
    code: str
    parent: str | Reference | None = None
    level: int = 1
    is_active: bool = True

    @property
    def parent_id(self) -> str | None:
        return ref_id(self.parent)


class Issue(WireModel):
    id: str | None = Field(default=None, alias="_id")
    title: str
    volume_number: int
    issue_number: int
    publication_date: datetime | None = None
    is_published: bool = False
    articles: list[str] = Field(default_factory=list)


class Review(WireModel):
    id: str | None = Field(default=None, alias="_id")
    article_id: str | Reference | None = None
    reviewer_id: str | Reference | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    response_deadline: datetime | None = None
    review_deadline: datetime | None = None
    completed_at: datetime | None = None
    recommendation: str | None = None
    comments_for_author: str | None = None
    comments_for_editor: str | None = None
    decline_reason: str | None = None
    round: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReadReceipt(WireModel):
    user_id: str
    timestamp: datetime | None = None


class DiscussionMessage(WireModel):
    sender_id: str | Reference | None = None
    content: str
    attachments: list[str] = Field(default_factory=list)
    timestamp: datetime | None = None
    read_by: list[ReadReceipt] = Field(default_factory=list)


class Discussion(WireModel):
    id: str | None = Field(default=None, alias="_id")
    article_id: str | Reference | None = None
    subject: str
    initiator_id: str | Reference | None = None
    participants: list[str | Reference] = Field(default_factory=list)
    messages: list[DiscussionMessage] = Field(default_factory=list)
    type: str = "general"
    round: int = 1
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
