"""
Content/Workflow Engine.

Owns the page lifecycle: creation, saves, publish/unpublish, workflow
transitions, reset, rollback, bulk publish and the scheduled publish
sweep. Every mutation writes the content document, appends a revision and
then records one audit entry, in that order.

Writes to a single page are serialized with a per-page asyncio.Lock.
"""

import asyncio
import copy
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Union

from ..audit import AuditLog
from ..diff import diff_lines, render_content
from ..exceptions import (
    AuthorizationError,
    ConflictError,
    ContentTooLargeError,
    ErrorCode,
    ResourceNotFoundError,
    ValidationError,
)
from ..revisions import RevisionLog
from ..storage import PageStore
from ..types import (
    META_KEY,
    BulkPublishItem,
    BulkPublishResult,
    DiffMode,
    DiffResult,
    Page,
    PageListing,
    PageMeta,
    PageStatus,
    PageSummary,
    PublishAction,
    Revision,
    RevisionSummary,
    Role,
    SaveMode,
    ScheduledPublishItem,
    ScheduledPublishResult,
    ScheduledPublishSkip,
    Session,
    WorkflowStatus,
)
from ..utils import Clock, bind_context, log_duration, parse_iso, sanitize_page_id, to_iso, utc_now
from .templates import SEED_PAGES, TemplateCatalog, default_schema

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500
MAX_CONTENT_BYTES = 1024 * 1024


def _check_size(content: Dict[str, Any]) -> None:
    """Reject content whose compact JSON form is over ``MAX_CONTENT_BYTES`` characters."""
    size = len(json.dumps(content, separators=(",", ":"), ensure_ascii=False))
    if size > MAX_CONTENT_BYTES:
        raise ContentTooLargeError(
            "Content exceeds 1MB limit",
            current=f"{size / MAX_CONTENT_BYTES:.2f}MB",
            maximum="1MB",
            suggestion="Reduce content size or split into multiple pages",
        )


def _with_meta(body: Dict[str, Any], meta: PageMeta) -> Dict[str, Any]:
    document = {k: v for k, v in body.items() if k != META_KEY}
    document[META_KEY] = meta.to_dict()
    return document


def _published_meta(meta: PageMeta, action: PublishAction, username: str, now: str) -> PageMeta:
    if action == PublishAction.PUBLISH:
        return meta.model_copy(update={
            "modified_by": username,
            "last_modified": now,
            "status": PageStatus.PUBLISHED,
            "workflow_status": WorkflowStatus.PUBLISHED,
            "published_at": now,
            "published_by": username,
            "scheduled_for": None,
        })

    workflow = meta.workflow_status
    if workflow == WorkflowStatus.PUBLISHED:
        workflow = WorkflowStatus.DRAFT
    return meta.model_copy(update={
        "modified_by": username,
        "last_modified": now,
        "status": PageStatus.DRAFT,
        "workflow_status": workflow,
    })


class ContentEngine:
    """Page lifecycle operations with role checks."""

    def __init__(
        self,
        pages: PageStore,
        revisions: RevisionLog,
        audit: AuditLog,
        templates: TemplateCatalog,
        clock: Clock = utc_now,
    ):
        self.pages = pages
        self.revisions = revisions
        self.audit = audit
        self.templates = templates
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> str:
        return to_iso(self._clock())

    @asynccontextmanager
    async def _lock(self, page_id: str) -> AsyncIterator[None]:
        """Serialize writers of one page; the lock is dropped once nobody holds or awaits it."""
        lock = self._locks.get(page_id)
        if lock is None:
            lock = self._locks[page_id] = asyncio.Lock()
        self._lock_users[page_id] = self._lock_users.get(page_id, 0) + 1
        try:
            async with lock:
                bind_context(page_id=page_id)
                yield
        finally:
            self._lock_users[page_id] -= 1
            if not self._lock_users[page_id]:
                del self._lock_users[page_id]
                del self._locks[page_id]

    @staticmethod
    def normalize_page_id(page_id: Any) -> str:
        safe_id = sanitize_page_id(page_id)
        if not safe_id:
            raise ValidationError(
                "pageId is required",
                field="pageId",
                error_code=ErrorCode.INVALID_PAGE_ID,
            )
        return safe_id

    @staticmethod
    def _require_editorial(session: Session, action: str) -> None:
        if not session.is_editorial:
            raise AuthorizationError(
                f"Only admins and editors can {action}",
                required_role=Role.EDITOR.value,
            )

    @staticmethod
    def _owns(session: Session, meta: PageMeta) -> bool:
        return meta.created_by is None or meta.created_by == session.username

    async def _require_access(self, page_id: str, session: Session) -> None:
        """Contributors may only see history of pages they created."""
        if session.is_editorial:
            return
        meta = PageMeta.from_content(await self.pages.read_content(page_id))
        if not self._owns(session, meta):
            raise AuthorizationError("You can only view history of pages you created")

    async def _load_content(self, page_id: str) -> Dict[str, Any]:
        content = await self.pages.read_content(page_id)
        if content is None:
            raise ResourceNotFoundError(
                "Content not found",
                resource_type="page",
                resource_id=page_id,
                error_code=ErrorCode.PAGE_NOT_FOUND,
            )
        return content

    async def _commit(
        self,
        page_id: str,
        content: Dict[str, Any],
        message: str,
        session: Optional[Session],
    ) -> Revision:
        await self.pages.write_content(page_id, content)
        return await self.revisions.append(
            page_id, content, message, session.username if session else None
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_page(self, page_id: str) -> Page:
        safe_id = self.normalize_page_id(page_id)
        schema = await self.pages.read_schema(safe_id)
        content = await self.pages.read_content(safe_id)
        if schema is None and content is None:
            raise ResourceNotFoundError(
                f'Page "{safe_id}" not found',
                resource_type="page",
                resource_id=safe_id,
                error_code=ErrorCode.PAGE_NOT_FOUND,
            )
        return Page(page_id=safe_id, page_schema=schema, content=content)

    async def _summaries(self) -> List[PageSummary]:
        summaries = []
        for page_id in await self.pages.list_page_ids():
            schema = await self.pages.read_schema(page_id)
            content = await self.pages.read_content(page_id)
            if schema is None and content is None:
                continue
            meta = PageMeta.from_content(content)
            summaries.append(PageSummary(
                page_id=page_id,
                title=(schema or {}).get("title") or page_id,
                created_by=meta.created_by,
                last_modified=meta.last_modified,
                status=meta.status if content is not None else None,
                workflow_status=meta.workflow_status if content is not None else None,
                has_content=content is not None,
            ))
        return summaries

    async def list_pages(
        self,
        session: Optional[Session] = None,
        minimal: bool = False,
        limit: Optional[int] = None,
        page: int = 1,
    ) -> PageListing:
        """
        Paginated page listing.

        Contributors only see pages they created (or pages with no
        recorded creator). ``limit`` defaults to everything and is clamped
        to 1..500.
        """
        with log_duration("list_pages", logger):
            summaries = await self._summaries()

        if session is not None and not session.is_editorial:
            summaries = [s for s in summaries if s.created_by in (None, session.username)]

        total = len(summaries)
        limit = max(1, min(MAX_LIST_LIMIT, limit if limit is not None else total or 1))
        page = max(1, page)
        offset = (page - 1) * limit
        window = summaries[offset:offset + limit]

        if minimal:
            rows = [{"pageId": s.page_id, "title": s.title} for s in window]
        else:
            rows = [s.model_dump(mode="json", by_alias=True) for s in window]

        return PageListing(
            pages=rows,
            can_edit_all=session is not None and session.is_editorial,
            total=total,
            page=page,
            limit=limit,
            has_more=offset + limit < total,
        )

    async def history(
        self,
        page_id: str,
        session: Session,
        limit: int = 25,
    ) -> List[RevisionSummary]:
        safe_id = self.normalize_page_id(page_id)
        await self._require_access(safe_id, session)
        revisions = await self.revisions.list(safe_id, limit=limit)
        return [r.summary() for r in revisions]

    async def diff_revisions(
        self,
        page_id: str,
        from_id: str,
        to_id: str,
        session: Session,
        mode: Union[DiffMode, str] = DiffMode.ALIGNED,
    ) -> DiffResult:
        """Diff the JSON renderings of two revisions of the same page."""
        safe_id = sanitize_page_id(page_id)
        if not safe_id or not from_id or not to_id:
            raise ValidationError("pageId, from, and to are required")
        await self._require_access(safe_id, session)
        older = await self.revisions.get(safe_id, from_id)
        newer = await self.revisions.get(safe_id, to_id)
        return diff_lines(render_content(older.content), render_content(newer.content), mode)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self,
        page_id: str,
        session: Session,
        schema: Optional[Dict[str, Any]] = None,
        template: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Page:
        """
        Create a page from an explicit schema, a named template or the
        single-field default schema, in that order of preference.

        Raises:
            AuthorizationError: Contributor session.
            ConflictError: The page directory already exists.
            ValidationError: Invalid page id or unknown template.
        """
        self._require_editorial(session, "create pages")
        safe_id = self.normalize_page_id(page_id)

        async with self._lock(safe_id):
            if self.pages.exists(safe_id):
                raise ConflictError(f'Page "{safe_id}" already exists', resource_type="page")

            if schema:
                page_schema = copy.deepcopy(schema)
            elif template:
                page_schema = await self.templates.get_schema(template)
                if page_schema is None:
                    raise ValidationError(f"Unknown template: {template}", field="template")
            else:
                page_schema = default_schema(safe_id, title)
            if title:
                page_schema["title"] = title

            now = self._now()
            meta = PageMeta(
                created_by=session.username,
                created=now,
                modified_by=session.username,
                last_modified=now,
                status=PageStatus.DRAFT,
                workflow_status=WorkflowStatus.DRAFT,
            )
            content = _with_meta({}, meta)

            await self.pages.write_schema(safe_id, page_schema)
            await self._commit(safe_id, content, "Page created", session)

        await self.audit.append(
            session.username,
            "page_create",
            {"pageId": safe_id, "title": page_schema.get("title") or safe_id},
        )
        logger.info(f"Created page {safe_id}")
        return Page(page_id=safe_id, page_schema=page_schema, content=content)

    async def save(
        self,
        page_id: str,
        content: Optional[Dict[str, Any]],
        session: Session,
        save_as: Union[SaveMode, str] = SaveMode.LIVE,
    ) -> Page:
        """
        Replace a page's content, keeping its ``_meta`` lineage.

        Any ``_meta`` supplied by the caller is ignored. Saving as draft
        forces both statuses to draft; a live save keeps the prior ones.
        Contributor saves are always drafts and limited to their own pages.
        """
        safe_id = self.normalize_page_id(page_id)
        _check_size(content or {})
        mode = SaveMode.DRAFT if save_as == SaveMode.DRAFT else SaveMode.LIVE
        if session.role == Role.CONTRIBUTOR:
            mode = SaveMode.DRAFT

        async with self._lock(safe_id):
            existing = await self.pages.read_content(safe_id)
            meta = PageMeta.from_content(existing)
            if not session.is_editorial and not self._owns(session, meta):
                raise AuthorizationError("You can only edit pages you created")

            now = self._now()
            update: Dict[str, Any] = {
                "created_by": meta.created_by or session.username,
                "created": meta.created or now,
                "modified_by": session.username,
                "last_modified": now,
            }
            if mode == SaveMode.DRAFT:
                update["status"] = PageStatus.DRAFT
                update["workflow_status"] = WorkflowStatus.DRAFT

            document = _with_meta(content or {}, meta.model_copy(update=update))
            message = "Saved draft" if mode == SaveMode.DRAFT else "Saved content"
            await self._commit(safe_id, document, message, session)

        await self.audit.append(
            session.username, "content_save", {"pageId": safe_id, "mode": mode.value}
        )
        return Page(page_id=safe_id, content=document)

    async def publish(
        self,
        page_id: str,
        session: Session,
        action: Union[PublishAction, str] = PublishAction.PUBLISH,
    ) -> PageMeta:
        """Publish or unpublish; returns the page's new metadata."""
        self._require_editorial(session, "publish content")
        safe_id = self.normalize_page_id(page_id)
        action = PublishAction(action)

        async with self._lock(safe_id):
            content = await self._load_content(safe_id)
            meta = _published_meta(
                PageMeta.from_content(content), action, session.username, self._now()
            )
            message = "Published content" if action == PublishAction.PUBLISH else "Unpublished content"
            await self._commit(safe_id, _with_meta(content, meta), message, session)

        await self.audit.append(session.username, f"content_{action.value}", {"pageId": safe_id})
        logger.info(f"{action.value.capitalize()}ed page {safe_id}")
        return meta

    async def set_workflow_status(
        self,
        page_id: str,
        status: Union[WorkflowStatus, str],
        session: Session,
        scheduled_for: Optional[str] = None,
    ) -> PageMeta:
        """
        Override ``workflowStatus`` directly.

        ``scheduledFor`` is kept only for the scheduled stage, where it is
        required. The coarse ``status`` is left alone.
        """
        self._require_editorial(session, "change workflow status")
        safe_id = self.normalize_page_id(page_id)
        try:
            workflow = WorkflowStatus(status)
        except ValueError:
            raise ValidationError(
                f"Invalid workflow status: {status}",
                field="status",
                error_code=ErrorCode.INVALID_WORKFLOW_STATUS,
            )

        due = None
        if workflow == WorkflowStatus.SCHEDULED:
            parsed = parse_iso(scheduled_for)
            if parsed is None:
                raise ValidationError(
                    "scheduledFor must be a valid ISO-8601 datetime",
                    field="scheduledFor",
                )
            due = to_iso(parsed)

        async with self._lock(safe_id):
            content = await self._load_content(safe_id)
            now = self._now()
            meta = PageMeta.from_content(content).model_copy(update={
                "workflow_status": workflow,
                "scheduled_for": due,
                "workflow_updated_by": session.username,
                "workflow_updated_at": now,
                "modified_by": session.username,
                "last_modified": now,
            })
            await self._commit(
                safe_id, _with_meta(content, meta), f"Workflow set to {workflow.value}", session
            )

        details = {"pageId": safe_id, "status": workflow.value}
        if due:
            details["scheduledFor"] = due
        await self.audit.append(session.username, "content_workflow_update", details)
        return meta

    async def reset_content(self, page_id: str, session: Session) -> Revision:
        """
        Clear a page's content down to a fresh ``_meta`` block.

        The schema and revision history are untouched, so the previous
        content can be restored with a rollback.
        """
        self._require_editorial(session, "delete content")
        safe_id = self.normalize_page_id(page_id)

        async with self._lock(safe_id):
            if not self.pages.exists(safe_id):
                raise ResourceNotFoundError(
                    f'Page "{safe_id}" not found',
                    resource_type="page",
                    resource_id=safe_id,
                    error_code=ErrorCode.PAGE_NOT_FOUND,
                )
            now = self._now()
            meta = PageMeta(
                created_by=session.username,
                created=now,
                modified_by=session.username,
                last_modified=now,
                status=PageStatus.DRAFT,
                workflow_status=WorkflowStatus.DRAFT,
            )
            revision = await self._commit(safe_id, _with_meta({}, meta), "Deleted content", session)

        await self.audit.append(session.username, "content_delete", {"pageId": safe_id})
        logger.info(f"Reset content of page {safe_id}")
        return revision

    async def rollback(self, page_id: str, revision_id: str, session: Session) -> Revision:
        """
        Restore a revision's snapshot as the current content.

        History is never rewritten: the restore is itself a new revision.
        """
        self._require_editorial(session, "roll back content")
        safe_id = sanitize_page_id(page_id)
        if not safe_id or not revision_id:
            raise ValidationError("pageId and commitSha are required")

        async with self._lock(safe_id):
            target = await self.revisions.get(safe_id, revision_id)
            revision = await self._commit(
                safe_id, target.content, f"Rollback to {revision_id[:10]}", session
            )

        await self.audit.append(
            session.username, "content_rollback", {"pageId": safe_id, "commitSha": revision_id}
        )
        logger.info(f"Rolled back page {safe_id} to {revision_id[:10]}")
        return revision

    async def bulk_publish(
        self,
        page_ids: Iterable[Any],
        session: Session,
        action: Union[PublishAction, str] = PublishAction.PUBLISH,
        dry_run: bool = False,
    ) -> BulkPublishResult:
        """
        Publish or unpublish several pages; each page succeeds or fails alone.

        With ``dry_run`` nothing is written, but missing pages are still
        reported.
        """
        self._require_editorial(session, "bulk publish")
        action = PublishAction(action)
        ids = [safe_id for safe_id in (sanitize_page_id(p) for p in page_ids or []) if safe_id]
        if not ids:
            raise ValidationError("pageIds are required", field="pageIds")

        message = "Bulk published" if action == PublishAction.PUBLISH else "Bulk unpublished"
        results: List[BulkPublishItem] = []
        for safe_id in ids:
            async with self._lock(safe_id):
                content = await self.pages.read_content(safe_id)
                if content is None:
                    results.append(BulkPublishItem(page_id=safe_id, ok=False, error="Content not found"))
                    continue
                if not dry_run:
                    try:
                        meta = _published_meta(
                            PageMeta.from_content(content), action, session.username, self._now()
                        )
                        await self._commit(safe_id, _with_meta(content, meta), message, session)
                    except OSError as e:
                        logger.error(f"Bulk {action.value} failed for {safe_id}: {e}")
                        results.append(BulkPublishItem(page_id=safe_id, ok=False, error="Failed to update content"))
                        continue
            results.append(BulkPublishItem(page_id=safe_id, ok=True))

        await self.audit.append(
            session.username,
            "bulk_publish",
            {"action": action.value, "dryRun": dry_run, "count": len(results)},
        )
        return BulkPublishResult(action=action, dry_run=dry_run, results=results)

    async def run_scheduled_publish(self, session: Session) -> ScheduledPublishResult:
        """
        Publish every scheduled page whose ``scheduledFor`` has passed.

        Pages not yet due, or with an unparseable time, are reported as
        skipped and left unchanged.
        """
        self._require_editorial(session, "run scheduled publishing")
        result = ScheduledPublishResult()

        with log_duration("scheduled_publish_sweep", logger, logging.INFO):
            for page_id in await self.pages.list_page_ids():
                async with self._lock(page_id):
                    content = await self.pages.read_content(page_id)
                    if content is None:
                        continue
                    meta = PageMeta.from_content(content)
                    if meta.workflow_status != WorkflowStatus.SCHEDULED:
                        continue
                    result.checked += 1

                    due = parse_iso(meta.scheduled_for)
                    if due is None:
                        result.skipped.append(ScheduledPublishSkip(page_id=page_id, reason="invalid_scheduled_for"))
                        continue
                    if due > self._clock():
                        result.skipped.append(ScheduledPublishSkip(page_id=page_id, reason="not_due"))
                        continue

                    published = _published_meta(meta, PublishAction.PUBLISH, session.username, self._now())
                    revision = await self._commit(
                        page_id, _with_meta(content, published), "Scheduled publish", session
                    )
                result.published.append(ScheduledPublishItem(page_id=page_id, revision_id=revision.id))
                await self.audit.append(
                    session.username,
                    "content_scheduled_publish",
                    {"pageId": page_id, "scheduledFor": meta.scheduled_for},
                )

        logger.info(
            f"Scheduled publish: checked={result.checked} "
            f"published={len(result.published)} skipped={len(result.skipped)}"
        )
        return result

    async def ensure_seed_pages(self, owner: str) -> int:
        """Create the sample pages when the data directory holds none."""
        if await self.pages.list_page_ids():
            return 0

        created = 0
        now = self._now()
        for page_id, template_id in SEED_PAGES:
            schema = await self.templates.get_schema(template_id)
            if schema is None:
                continue
            meta = PageMeta(
                created_by=owner,
                created=now,
                modified_by=owner,
                last_modified=now,
                status=PageStatus.DRAFT,
                workflow_status=WorkflowStatus.DRAFT,
            )
            sample = await self.templates.get_sample_content(template_id)
            await self.pages.write_schema(page_id, schema)
            await self.pages.write_content(page_id, _with_meta(sample, meta))
            created += 1

        logger.info(f"Seeded {created} sample pages")
        return created
