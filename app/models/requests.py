"""
Request body models for the PageVault API.

Bodies are camelCase JSON. Loose inputs from the admin front end are
coerced rather than rejected where the service has always tolerated them:
a missing ``pageId`` becomes ``""`` (rejected later with a clear message),
and any ``saveAs`` other than ``"draft"`` means a live save.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pagevault.types import PublishAction, SaveMode


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class PageRequest(CamelModel):
    """Any body that names a single page."""

    page_id: str = ""

    @field_validator("page_id", mode="before")
    @classmethod
    def _coerce_page_id(cls, v: Any) -> str:
        return _as_text(v)


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""

    @field_validator("username", "password", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)


class CreatePageRequest(PageRequest):
    page_schema: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    template: Optional[str] = None
    title: Optional[str] = None


class SaveRequest(PageRequest):
    content: Dict[str, Any] = Field(default_factory=dict)
    save_as: SaveMode = SaveMode.LIVE

    @field_validator("content", mode="before")
    @classmethod
    def _default_content(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("save_as", mode="before")
    @classmethod
    def _coerce_save_as(cls, v: Any) -> SaveMode:
        return SaveMode.DRAFT if v == SaveMode.DRAFT.value else SaveMode.LIVE


def _coerce_action(v: Any) -> PublishAction:
    return PublishAction.UNPUBLISH if v == PublishAction.UNPUBLISH.value else PublishAction.PUBLISH


class PublishRequest(PageRequest):
    action: PublishAction = PublishAction.PUBLISH

    @field_validator("action", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> PublishAction:
        return _coerce_action(v)


class WorkflowRequest(PageRequest):
    status: str = "draft"
    scheduled_for: Optional[str] = None


class BulkPublishRequest(CamelModel):
    page_ids: List[Any] = Field(default_factory=list)
    action: PublishAction = PublishAction.PUBLISH
    dry_run: bool = False

    @field_validator("page_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, v: Any) -> List[Any]:
        return v if isinstance(v, list) else []

    @field_validator("action", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> PublishAction:
        return _coerce_action(v)


class RollbackRequest(PageRequest):
    revision_id: str = Field(
        default="",
        validation_alias=AliasChoices("commitSha", "revisionId", "revision_id"),
    )

    @field_validator("revision_id", mode="before")
    @classmethod
    def _coerce_revision_id(cls, v: Any) -> str:
        return _as_text(v)


class UsernameRequest(CamelModel):
    username: str = ""

    @field_validator("username", mode="before")
    @classmethod
    def _coerce_username(cls, v: Any) -> str:
        return _as_text(v)


class CreateUserRequest(UsernameRequest):
    role: Optional[str] = None
    password: Optional[str] = None


class UpdateUserRequest(UsernameRequest):
    role: Optional[str] = None
    password: Optional[str] = None
    reset_password: bool = False


class SetupRequest(CamelModel):
    setup_token: str = ""
    username: str = ""
    password: str = ""

    @field_validator("setup_token", "username", "password", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)


class FeedbackRequest(CamelModel):
    """Public feedback form; values are normalized by the feedback log."""

    page_id: Any = None
    message: Any = None
    email: Any = None
    timestamp: Any = None
    user_agent: Any = None
