"""Request models for the PageVault API."""

from .requests import (
    BulkPublishRequest,
    CreatePageRequest,
    CreateUserRequest,
    FeedbackRequest,
    LoginRequest,
    PageRequest,
    PublishRequest,
    RollbackRequest,
    SaveRequest,
    SetupRequest,
    UpdateUserRequest,
    UsernameRequest,
    WorkflowRequest,
)

__all__ = [
    "BulkPublishRequest",
    "CreatePageRequest",
    "CreateUserRequest",
    "FeedbackRequest",
    "LoginRequest",
    "PageRequest",
    "PublishRequest",
    "RollbackRequest",
    "SaveRequest",
    "SetupRequest",
    "UpdateUserRequest",
    "UsernameRequest",
    "WorkflowRequest",
]
