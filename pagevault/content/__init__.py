"""Page lifecycle, templates and reusable blocks."""

from .blocks import DEFAULT_BLOCKS, Block, BlockCatalog
from .engine import ContentEngine
from .templates import BUILTIN_TEMPLATES, SEED_PAGES, TemplateCatalog, TemplateInfo, default_schema

__all__ = [
    "BUILTIN_TEMPLATES",
    "Block",
    "BlockCatalog",
    "ContentEngine",
    "DEFAULT_BLOCKS",
    "SEED_PAGES",
    "TemplateCatalog",
    "TemplateInfo",
    "default_schema",
]
