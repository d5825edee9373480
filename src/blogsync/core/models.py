"""Pydantic models for Write.as API objects.

- ``PostParams``: Outgoing fields for a create or update.
- ``RemotePost``: Snapshot of a post as listed by the service.
- ``Collection``: A collection (blog) owned by the user.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PostParams(BaseModel):
    """Fields sent to the remote service when creating or updating a post.

    ``created`` is ``None`` when the page declares no date, in which case
    the field is left out of the request entirely.
    """

    id: str = ""
    token: str = ""
    slug: str
    title: str
    content: str
    font: str = "norm"
    language: str = ""
    rtl: bool = False
    created: datetime | None = None
    updated: datetime | None = None
    collection: str = ""

    model_config = {"frozen": True}

    def without_created(self) -> PostParams:
        """Copy of these params with ``created`` cleared, for updates."""
        return self.model_copy(update={"created": None})


class RemotePost(BaseModel):
    """A post as returned by the remote listing.

    ``language`` and ``rtl`` are ``None`` when the service did not report
    them.  ``views``, ``listed``, ``tags``, ``images`` and ``owner`` are
    read-only and never written back.
    """

    id: str
    token: str = ""
    slug: str = ""
    collection: str | None = None
    title: str = ""
    content: str = ""
    font: str = ""
    language: str | None = None
    rtl: bool | None = None
    created: datetime | None = None
    updated: datetime | None = None
    views: int = 0
    listed: bool = False
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    owner: str = ""

    model_config = {"frozen": True}

    @property
    def collection_alias(self) -> str:
        """Collection alias, or ``""`` for an anonymous post."""
        return self.collection or ""


class Collection(BaseModel):
    """A collection owned by the authenticated user."""

    alias: str
    title: str = ""
    description: str = ""
    views: int = 0
    public: bool = False

    model_config = {"frozen": True}
