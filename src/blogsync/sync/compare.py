"""Equality law used to decide whether a matched post needs an update."""

from __future__ import annotations

from ..core.models import PostParams, RemotePost

# Fields compared by ``eq_post``.  Timestamps and collection are not
# compared, so a date-only or collection-only change never triggers an
# update on its own.
COMPARED_FIELDS: tuple[str, ...] = (
    "id",
    "slug",
    "font",
    "language",
    "rtl",
    "title",
    "content",
)


def eq_post(a: RemotePost | None, b: RemotePost | None) -> bool:
    """Return whether two posts are equal for the purpose of updating them."""
    if a is None or b is None:
        return a is b
    return all(getattr(a, name) == getattr(b, name) for name in COMPARED_FIELDS)


def eq_params(post: RemotePost, params: PostParams) -> bool:
    """Return whether sending *params* would leave *post* unchanged.

    The params are lifted into a ``RemotePost`` that borrows the remote
    post's read-only fields, then compared with ``eq_post``.
    """
    candidate = post.model_copy(
        update={
            "id": params.id,
            "token": params.token,
            "slug": params.slug,
            "font": params.font,
            "language": params.language,
            "rtl": params.rtl,
            "created": params.created,
            "updated": params.updated,
            "title": params.title,
            "content": params.content,
        }
    )
    return eq_post(candidate, post)
