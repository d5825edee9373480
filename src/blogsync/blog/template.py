"""Body templates applied to pages before they are published.

Templates are Jinja2 and receive three variables:

- ``body`` -- the page Markdown after hard wrapping has been removed.
- ``meta`` -- the page's frontmatter (``Metadata``).
- ``config`` -- the site section of the config file, as a dict; arbitrary
  user values live under ``config.params``.

A ``join`` function (``posixpath.join``) is available for building URLs.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any

from jinja2 import Environment, TemplateError as JinjaTemplateError

from ..config_schema import DEFAULT_TEMPLATE, SiteConfig
from .metadata import Metadata


class TemplateError(ValueError):
    """Raised when a body template cannot be compiled or executed."""


def _environment() -> Environment:
    env = Environment(autoescape=False, keep_trailing_newline=True)
    env.globals["join"] = posixpath.join
    return env


class BodyTemplate:
    """A compiled body template.

    Args:
        source: Template source text.
        name: Name used in error messages (the file name when loaded).
    """

    def __init__(self, source: str = DEFAULT_TEMPLATE, name: str = "root") -> None:
        self.name = name
        try:
            self._template = _environment().from_string(source)
        except JinjaTemplateError as exc:
            raise TemplateError(
                f"error compiling template {name}: {exc}"
            ) from exc

    @classmethod
    def from_option(cls, option: str) -> BodyTemplate:
        """Build a template from a config or CLI value.

        A value starting with ``@`` names a file to load; anything else is
        template source.
        """
        if not option.startswith("@"):
            return cls(option)
        path = Path(option[1:])
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TemplateError(
                f"error reading template file {path}: {exc}"
            ) from exc
        return cls(source, name=str(path))

    def render(
        self, body: str, meta: Metadata, site: SiteConfig | None = None
    ) -> str:
        """Execute the template for one page."""
        context: dict[str, Any] = {
            "body": body,
            "meta": meta,
            "config": (site or SiteConfig()).model_dump(),
        }
        try:
            return self._template.render(context)
        except JinjaTemplateError as exc:
            raise TemplateError(
                f"error executing template {self.name}: {exc}"
            ) from exc
