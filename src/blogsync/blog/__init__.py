"""Helpers for reading site pages: frontmatter, slugs, templates."""

from .metadata import (
    FrontmatterError,
    HeaderKind,
    Metadata,
    decode_frontmatter,
)
from .page import Page, PageError, SkipReason, build_page, load_page
from .slug import slug
from .template import BodyTemplate, TemplateError

__all__ = [
    "BodyTemplate",
    "FrontmatterError",
    "HeaderKind",
    "Metadata",
    "Page",
    "PageError",
    "SkipReason",
    "TemplateError",
    "build_page",
    "decode_frontmatter",
    "load_page",
    "slug",
]
