"""
Schema templates for new pages and the seed page set.

Built-in templates are always available. A templates directory laid out as
``<template-id>/schema.json`` (and optionally ``content.json``) adds to or
overrides them.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..storage.files import read_json
from ..utils import sanitize_page_id

logger = logging.getLogger(__name__)


def _field(key: str, label: str, type_: str = "text", **extra: Any) -> Dict[str, Any]:
    return {"key": key, "label": label, "type": type_, **extra}


BUILTIN_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "landing-page": {
        "schema": {
            "title": "Landing Page",
            "description": "Hero section, introduction and call to action",
            "fields": [
                _field("headline", "Headline", maxLength=120),
                _field("subheadline", "Subheadline", "textarea"),
                _field("body", "Body", "markdown"),
                _field("ctaText", "Button Text"),
                _field("ctaLink", "Button Link", "url"),
            ],
        },
        "content": {
            "headline": "Welcome",
            "subheadline": "Edit this page from the admin panel.",
            "body": "",
            "ctaText": "Learn more",
            "ctaLink": "/",
        },
    },
    "blog-post": {
        "schema": {
            "title": "Blog Post",
            "description": "Create or edit a blog post",
            "fields": [
                _field("title", "Title", required=True),
                _field("author", "Author"),
                _field("date", "Publish Date", "date"),
                _field("summary", "Summary", "textarea"),
                _field("body", "Body", "markdown"),
                _field("tags", "Tags", "tags"),
            ],
        },
        "content": {"title": "News update", "author": "", "summary": "", "body": "", "tags": []},
    },
    "faq": {
        "schema": {
            "title": "FAQ",
            "description": "Frequently asked questions",
            "fields": [
                _field("title", "Title"),
                _field("intro", "Introduction", "textarea"),
                _field(
                    "items",
                    "Questions",
                    "list",
                    itemFields=[_field("question", "Question"), _field("answer", "Answer", "textarea")],
                ),
            ],
        },
        "content": {"title": "FAQ", "intro": "", "items": []},
    },
    "event": {
        "schema": {
            "title": "Event",
            "description": "Event details with date and location",
            "fields": [
                _field("name", "Event Name", required=True),
                _field("date", "Date", "date"),
                _field("location", "Location"),
                _field("description", "Description", "markdown"),
                _field("registrationLink", "Registration Link", "url"),
            ],
        },
        "content": {"name": "", "location": "", "description": ""},
    },
    "team-profile": {
        "schema": {
            "title": "Team Profile",
            "description": "Team members with roles and bios",
            "fields": [
                _field("title", "Title"),
                _field(
                    "members",
                    "Members",
                    "list",
                    itemFields=[_field("name", "Name"), _field("role", "Role"), _field("bio", "Bio", "textarea")],
                ),
            ],
        },
        "content": {"title": "Our Team", "members": []},
    },
    "menu-page": {
        "schema": {
            "title": "Menu",
            "description": "Restaurant or cafe menu",
            "fields": [
                _field("title", "Title"),
                _field(
                    "sections",
                    "Sections",
                    "list",
                    itemFields=[_field("name", "Section"), _field("items", "Items", "textarea")],
                ),
            ],
        },
        "content": {"title": "Menu", "sections": []},
    },
    "todo-page": {
        "schema": {
            "title": "Task List",
            "description": "Simple checklist of tasks",
            "fields": [
                _field("title", "Title"),
                _field(
                    "tasks",
                    "Tasks",
                    "list",
                    itemFields=[_field("text", "Task"), _field("done", "Done", "checkbox")],
                ),
            ],
        },
        "content": {"title": "Tasks", "tasks": []},
    },
    "documentation-page": {
        "schema": {
            "title": "Documentation",
            "description": "Long-form documentation with sections",
            "fields": [
                _field("title", "Title"),
                _field("summary", "Summary", "textarea"),
                _field("body", "Body", "markdown"),
            ],
        },
        "content": {"title": "Documentation", "summary": "", "body": ""},
    },
}

# (page id, template id) created when the data directory has no pages
SEED_PAGES = [
    ("welcome", "landing-page"),
    ("news-update", "blog-post"),
    ("faq", "faq"),
    ("event", "event"),
    ("team", "team-profile"),
    ("menu", "menu-page"),
    ("tasks", "todo-page"),
    ("docs", "documentation-page"),
]


def default_schema(page_id: str, title: Optional[str] = None) -> Dict[str, Any]:
    """Schema with a single free-text ``content`` field."""
    return {
        "title": title or page_id,
        "description": f"Content for {page_id}",
        "fields": [
            _field("content", "Content", "textarea", placeholder="Enter content here..."),
        ],
    }


class TemplateInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str = ""
    field_count: int = 0


class TemplateCatalog:
    """Looks templates up in the templates directory first, then built-ins."""

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = Path(templates_dir) if templates_dir else None

    async def get_schema(self, template_id: str) -> Optional[Dict[str, Any]]:
        """A fresh copy of the template's schema, or None if unknown."""
        safe_id = sanitize_page_id(template_id)
        if not safe_id:
            return None
        if self.templates_dir:
            schema = await read_json(self.templates_dir / safe_id / "schema.json")
            if isinstance(schema, dict):
                return schema
        builtin = BUILTIN_TEMPLATES.get(safe_id)
        return copy.deepcopy(builtin["schema"]) if builtin else None

    async def get_sample_content(self, template_id: str) -> Dict[str, Any]:
        safe_id = sanitize_page_id(template_id)
        if self.templates_dir:
            content = await read_json(self.templates_dir / safe_id / "content.json")
            if isinstance(content, dict):
                return content
        builtin = BUILTIN_TEMPLATES.get(safe_id)
        return copy.deepcopy(builtin.get("content", {})) if builtin else {}

    def _template_ids(self) -> List[str]:
        ids = set(BUILTIN_TEMPLATES)
        if self.templates_dir and self.templates_dir.is_dir():
            ids.update(
                entry.name for entry in self.templates_dir.iterdir()
                if entry.is_dir() and (entry / "schema.json").exists()
            )
        return sorted(ids)

    async def list_templates(self) -> List[TemplateInfo]:
        """All templates, sorted by title."""
        templates = []
        for template_id in self._template_ids():
            schema = await self.get_schema(template_id) or {}
            fields = schema.get("fields")
            templates.append(TemplateInfo(
                id=template_id,
                title=schema.get("title") or template_id,
                description=schema.get("description") or "",
                field_count=len(fields) if isinstance(fields, list) else 0,
            ))
        templates.sort(key=lambda t: t.title.lower())
        return templates
