"""
Pydantic models for pages and their ``_meta`` block.

A page has a schema (field definitions, written once at creation) and a
content document. The content is free-form JSON except for the reserved
``_meta`` key, modeled by PageMeta and stored in camelCase.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

META_KEY = "_meta"


class PageStatus(str, Enum):
    """Coarse published/draft flag."""
    DRAFT = "draft"
    PUBLISHED = "published"


class WorkflowStatus(str, Enum):
    """
    Editorial stage of a page.

    draft -> in_review -> approved -> scheduled -> published; any stage may
    move straight to draft or published.
    """
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class PageMeta(BaseModel):
    """The ``_meta`` block carried by every content document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    created_by: Optional[str] = None
    created: Optional[str] = None
    modified_by: Optional[str] = None
    last_modified: Optional[str] = None
    status: PageStatus = PageStatus.DRAFT
    workflow_status: WorkflowStatus = WorkflowStatus.DRAFT
    scheduled_for: Optional[str] = None
    workflow_updated_by: Optional[str] = None
    workflow_updated_at: Optional[str] = None
    published_at: Optional[str] = None
    published_by: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> Any:
        if isinstance(v, PageStatus):
            return v
        if not isinstance(v, str) or v not in {s.value for s in PageStatus}:
            return PageStatus.DRAFT
        return v

    @field_validator("workflow_status", mode="before")
    @classmethod
    def _coerce_workflow_status(cls, v: Any) -> Any:
        if isinstance(v, WorkflowStatus):
            return v
        if not isinstance(v, str) or v not in {s.value for s in WorkflowStatus}:
            return WorkflowStatus.DRAFT
        return v

    @classmethod
    def from_content(cls, content: Optional[Dict[str, Any]]) -> "PageMeta":
        raw = (content or {}).get(META_KEY)
        return cls.model_validate(raw if isinstance(raw, dict) else {})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PageSummary(BaseModel):
    """One row of the page listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_id: str
    title: str
    created_by: Optional[str] = None
    last_modified: Optional[str] = None
    status: Optional[PageStatus] = None
    workflow_status: Optional[WorkflowStatus] = None
    has_content: bool = False


class Page(BaseModel):
    """A page's schema and current content."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_id: str
    page_schema: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    content: Optional[Dict[str, Any]] = None

    @property
    def meta(self) -> PageMeta:
        return PageMeta.from_content(self.content)


class PageListing(BaseModel):
    """A page of results from the listing operation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    pages: list[Dict[str, Any]]
    can_edit_all: bool
    total: int
    page: int
    limit: int
    has_more: bool
