"""
Type definitions for PageVault.
"""

from .audit import AuditEntry
from .diff import DiffMode, DiffResult, DiffRow, DiffRowType, DiffSummary
from .page import (
    META_KEY,
    Page,
    PageListing,
    PageMeta,
    PageStatus,
    PageSummary,
    WorkflowStatus,
)
from .revision import Revision, RevisionSummary
from .session import Session, SessionSummary
from .user import EDITORIAL_ROLES, Role, User, UserSummary, UserUpdateResult
from .workflow import (
    BulkPublishItem,
    BulkPublishResult,
    PublishAction,
    SaveMode,
    ScheduledPublishItem,
    ScheduledPublishResult,
    ScheduledPublishSkip,
)

__all__ = [
    # Audit
    "AuditEntry",
    # Diff
    "DiffMode",
    "DiffResult",
    "DiffRow",
    "DiffRowType",
    "DiffSummary",
    # Pages
    "META_KEY",
    "Page",
    "PageListing",
    "PageMeta",
    "PageStatus",
    "PageSummary",
    "WorkflowStatus",
    # Revisions
    "Revision",
    "RevisionSummary",
    # Sessions
    "Session",
    "SessionSummary",
    # Users
    "EDITORIAL_ROLES",
    "Role",
    "User",
    "UserSummary",
    "UserUpdateResult",
    # Workflow
    "BulkPublishItem",
    "BulkPublishResult",
    "PublishAction",
    "SaveMode",
    "ScheduledPublishItem",
    "ScheduledPublishResult",
    "ScheduledPublishSkip",
]
