"""The pool of remote posts that local pages are matched against.

Posts are held in listing order with a consumed marker per entry.  A
match consumes the post so it cannot match a second page and is left
out of the orphan pass.  Access is serialized with a lock so the watch
loop and a bulk publish can share one pool.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from ..core.models import RemotePost

logger = logging.getLogger(__name__)


class RemotePool:
    """Consume-once arena of remote posts keyed by (slug, collection).

    Args:
        posts: Posts in the order the remote listing returned them.
    """

    def __init__(self, posts: Iterable[RemotePost] = ()) -> None:
        self._posts: list[RemotePost] = list(posts)
        self._consumed: list[bool] = [False] * len(self._posts)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return self._consumed.count(False)

    def take(self, slug: str, collection: str) -> RemotePost | None:
        """Consume and return the first unconsumed post matching the key.

        An anonymous post (no collection) matches ``collection == ""``.
        """
        with self._lock:
            for i, post in enumerate(self._posts):
                if self._consumed[i]:
                    continue
                if post.slug == slug and post.collection_alias == collection:
                    self._consumed[i] = True
                    return post
        return None

    def remaining(self) -> list[RemotePost]:
        """Unconsumed posts, in listing order."""
        with self._lock:
            return [
                post
                for post, used in zip(self._posts, self._consumed)
                if not used
            ]

    def add(self, post: RemotePost) -> None:
        """Record *post* as consumed, replacing any entry with its id.

        Keeps the pool current with posts created or updated during a
        watch session, so later edits compare against what was sent and a
        deletion of the file can be resolved to an id and token.
        """
        with self._lock:
            i = self._index(post.id)
            if i is None:
                self._posts.append(post)
                self._consumed.append(True)
            else:
                self._posts[i] = post
                self._consumed[i] = True

    def _index(self, post_id: str) -> int | None:
        for i, post in enumerate(self._posts):
            if post.id == post_id:
                return i
        return None

    def get(self, post_id: str) -> RemotePost | None:
        """The post with *post_id*, consumed or not."""
        with self._lock:
            i = self._index(post_id)
            return None if i is None else self._posts[i]

    def release(self, post_id: str) -> bool:
        """Make *post_id* matchable again; False if it is not pooled.

        Only this entry is released.  Posts other pages hold stay
        consumed, so a page can be republished without competing for a
        post that shares its key.
        """
        with self._lock:
            i = self._index(post_id)
            if i is None:
                return False
            self._consumed[i] = False
            return True

    def claim(self, post_id: str) -> RemotePost | None:
        """Consume *post_id* regardless of its key."""
        with self._lock:
            i = self._index(post_id)
            if i is None:
                return None
            self._consumed[i] = True
            return self._posts[i]

    def discard(self, post_id: str) -> None:
        """Forget every entry for *post_id*, e.g. after it was deleted."""
        with self._lock:
            keep = [
                (p, c)
                for p, c in zip(self._posts, self._consumed)
                if p.id != post_id
            ]
            self._posts = [p for p, _ in keep]
            self._consumed = [c for _, c in keep]
        logger.debug("dropped post %s from the pool", post_id)
