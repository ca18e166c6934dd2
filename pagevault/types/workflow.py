"""Pydantic models for publish, bulk publish and scheduled publish results."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PublishAction(str, Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"


class SaveMode(str, Enum):
    """``draft`` forces the page back to draft; ``live`` keeps its status."""
    DRAFT = "draft"
    LIVE = "live"


class BulkPublishItem(BaseModel):
    """Per-page outcome of a bulk publish; failures never abort siblings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_id: str
    ok: bool
    error: Optional[str] = None


class BulkPublishResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: PublishAction
    dry_run: bool
    results: List[BulkPublishItem]


class ScheduledPublishItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_id: str
    revision_id: str


class ScheduledPublishSkip(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_id: str
    reason: str


class ScheduledPublishResult(BaseModel):
    """Outcome of one due-date sweep."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    checked: int = 0
    published: List[ScheduledPublishItem] = []
    skipped: List[ScheduledPublishSkip] = []
