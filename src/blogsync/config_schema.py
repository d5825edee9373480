"""Unified configuration schema for blogsync.

Defines Pydantic models for the config file, with dedicated sections for
the site being published, the Write.as connection, and logging.

Usage:
    from blogsync.config_loader import load_hierarchical_config
    from blogsync.config_schema import build_config

    unified = build_config(load_hierarchical_config())
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "{{ body }}"
DEFAULT_CONTENT = "content/"
DEFAULT_API_URL = "https://write.as/api"


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SiteConfig(BaseModel):
    """Settings describing the site whose pages are published.

    ``params`` holds arbitrary user values; it is passed through to body
    templates untouched.
    """

    title: str = Field(default="", description="Site title")
    description: str = Field(default="", description="Site description")
    collection: str = Field(
        default="",
        description="Default collection for pages without a 'collection' key",
    )
    content: str = Field(
        default=DEFAULT_CONTENT, description="Directory containing pages"
    )
    tmpl: str = Field(
        default=DEFAULT_TEMPLATE,
        description="Body template, or @path to load one from a file",
    )
    language: str = Field(
        default="", description="Default language for pages without 'lang'"
    )
    params: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class WriteAsConfig(BaseModel):
    """Write.as API connection settings.

    All credentials are optional here; env vars, ``~/.writeas/user.json``
    and CLI args can supply them at runtime instead.
    """

    url: str = Field(default=DEFAULT_API_URL, description="API base URL")
    token: str | None = Field(default=None, description="Access token")
    username: str | None = Field(default=None, description="Username")
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Request timeout in seconds"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    site: SiteConfig = Field(default_factory=SiteConfig)
    writeas: WriteAsConfig = Field(default_factory=WriteAsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Unknown top-level sections are ignored with a warning.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    known = set(UnifiedConfig.model_fields)
    for key in raw_data:
        if key not in known:
            logger.warning("Ignoring unknown config section '%s'", key)

    return UnifiedConfig(
        **{k: v for k, v in raw_data.items() if k in known}
    )
