"""Pydantic models for page revisions."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Revision(BaseModel):
    """
    An immutable snapshot of a page's content.

    Revisions are kept newest first; a rollback adds a new revision instead
    of rewriting history.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., description="Random hex id, unique within the page")
    message: str = Field(..., description="Human-readable description of the change")
    author: str = Field(..., description="Username that made the change")
    timestamp: str = Field(..., description="ISO-8601 time of the change")
    content: Dict[str, Any] = Field(default_factory=dict, description="Content snapshot")

    def summary(self) -> "RevisionSummary":
        return RevisionSummary(
            id=self.id,
            message=self.message,
            author=self.author,
            timestamp=self.timestamp,
        )


class RevisionSummary(BaseModel):
    """Revision without its snapshot, for history listings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    message: str
    author: str
    timestamp: str
    url: Optional[str] = None
