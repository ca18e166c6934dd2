"""
Visitor feedback on pages.

Submissions come from the public site without a session, so every field
is trimmed and length-capped before it is stored. Entries are kept in
``<state_dir>/feedback.json`` for 180 days, newest last.
"""

import asyncio
import logging
import re
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .exceptions import ValidationError
from .storage.files import read_json, write_json
from .utils import Clock, parse_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

FEEDBACK_FILE = "feedback.json"
FEEDBACK_RETENTION = timedelta(days=180)
DEFAULT_FEEDBACK_LIMIT = 5000

MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 5000
MAX_USER_AGENT_LENGTH = 500

_PAGE_ID = re.compile(r"^[a-z0-9_-]{1,100}$")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FeedbackEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    page_id: str
    message: str
    timestamp: str
    stored: str
    email: Optional[str] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class FeedbackLog:
    """Append-only, size- and age-bounded feedback file."""

    def __init__(
        self,
        state_dir: Path,
        limit: int = DEFAULT_FEEDBACK_LIMIT,
        clock: Clock = utc_now,
    ):
        self.path = Path(state_dir) / FEEDBACK_FILE
        self.limit = limit
        self._clock = clock
        self._lock = asyncio.Lock()

    async def submit(
        self,
        page_id: Any,
        message: Any,
        email: Any = None,
        timestamp: Any = None,
        user_agent: Any = None,
        client: Optional[str] = None,
    ) -> FeedbackEntry:
        """
        Validate, normalize and store one submission.

        Raises:
            ValidationError: Bad page id, empty message or malformed email.
        """
        safe_id = _text(page_id).strip().lower()
        if not _PAGE_ID.match(safe_id):
            raise ValidationError("Invalid pageId format", field="pageId")
        text = _text(message).strip()
        if not text:
            raise ValidationError("Invalid or missing message", field="message")

        address = _text(email).strip()[:MAX_EMAIL_LENGTH] or None
        if address and not _EMAIL.match(address):
            raise ValidationError("Invalid email format", field="email")

        now = self._clock()
        submitted = parse_iso(timestamp) if timestamp else None
        entry = FeedbackEntry(
            id=f"feedback_{uuid.uuid4()}",
            page_id=safe_id,
            message=text[:MAX_MESSAGE_LENGTH],
            timestamp=to_iso(submitted or now),
            stored=to_iso(now),
            email=address,
            user_agent=_text(user_agent)[:MAX_USER_AGENT_LENGTH] or None,
            ip=client,
        )

        async with self._lock:
            stored = await read_json(self.path, default=[])
            if not isinstance(stored, list):
                logger.warning(f"Replacing malformed feedback file {self.path}")
                stored = []
            cutoff = to_iso(now - FEEDBACK_RETENTION)
            kept = [e for e in stored if isinstance(e, dict) and _text(e.get("stored")) >= cutoff]
            kept.append(entry.model_dump(mode="json", by_alias=True))
            await write_json(self.path, kept[-self.limit:])

        logger.info(f"Feedback {entry.id} received for page {safe_id}")
        return entry
