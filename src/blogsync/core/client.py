import logging
import threading
from datetime import datetime, timezone
from typing import Any

import requests

from ..blog.metadata import parse_time
from ..config import Config
from .models import Collection, PostParams, RemotePost

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class WriteAsError(Exception):
    """An error reported by the Write.as API.

    Attributes:
        code: HTTP status code of the response.
        message: The API's ``error_msg``, or the response reason.
    """

    def __init__(self, code: int, message: str):
        super().__init__(f"{message} ({code})")
        self.code = code
        self.message = message


def format_time(value: datetime) -> str:
    """Format a timestamp the way the API expects it (UTC, seconds)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIME_FORMAT)


def post_from_api(data: dict[str, Any]) -> RemotePost:
    """Build a ``RemotePost`` from one post object in an API response."""
    collection = data.get("collection")
    alias = collection.get("alias") if isinstance(collection, dict) else None
    return RemotePost(
        id=data.get("id", ""),
        token=data.get("token") or "",
        slug=data.get("slug") or "",
        collection=alias or None,
        title=data.get("title") or "",
        content=data.get("body") or "",
        font=data.get("appearance") or "",
        language=data.get("language"),
        rtl=data.get("rtl"),
        created=_parse_api_time(data.get("created")),
        updated=_parse_api_time(data.get("updated")),
        views=data.get("views") or 0,
        listed=bool(data.get("listed")),
        tags=data.get("tags") or [],
        images=data.get("images") or [],
        owner=data.get("owner") or "",
    )


def _parse_api_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    return parse_time(value)


def params_to_api(params: PostParams) -> dict[str, Any]:
    """Request body for creating or updating a post.

    ``created`` is left out entirely when it is ``None``.
    """
    body: dict[str, Any] = {
        "body": params.content,
        "rtl": params.rtl,
        "lang": params.language,
    }
    if params.token:
        body["token"] = params.token
    if params.title:
        body["title"] = params.title
    if params.font:
        body["font"] = params.font
    if params.slug:
        body["slug"] = params.slug
    if params.created is not None:
        body["created"] = format_time(params.created)
    if params.updated is not None:
        body["updated"] = format_time(params.updated)
    return body


class WriteAsClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.base_url = config.api_url.rstrip("/")

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "blogsync",
            }
        )
        if self.config.token:
            session.headers["Authorization"] = f"Token {self.config.token}"
        session.verify = not self.config.insecure
        return session

    def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """
        Make a request to the API and return the ``data`` member of the
        response envelope.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        response = self._get_session().request(
            method,
            url,
            json=json,
            params=params,
            timeout=(10, self.config.timeout),
        )

        if response.status_code == 204 or not response.content:
            if response.status_code >= 400:
                raise WriteAsError(response.status_code, response.reason)
            return None

        try:
            envelope = response.json()
        except ValueError as exc:
            raise WriteAsError(
                response.status_code,
                f"invalid JSON in response: {exc}",
            ) from exc

        if response.status_code >= 400:
            message = ""
            if isinstance(envelope, dict):
                message = envelope.get("error_msg") or ""
            raise WriteAsError(
                response.status_code, message or response.reason
            )

        if isinstance(envelope, dict) and "data" in envelope:
            return envelope["data"]
        return envelope

    def get_user_posts(self) -> list[RemotePost]:
        """
        List every post owned by the authenticated user.
        """
        data = self._request("GET", "/me/posts") or []
        return [post_from_api(item) for item in data]

    def get_user_collections(self) -> list[Collection]:
        """
        List every collection owned by the authenticated user.
        """
        data = self._request("GET", "/me/collections") or []
        return [
            Collection(
                alias=item.get("alias", ""),
                title=item.get("title") or "",
                description=item.get("description") or "",
                views=item.get("views") or 0,
                public=bool(item.get("public")),
            )
            for item in data
        ]

    def create_collection(
        self, alias: str, title: str = "", description: str = ""
    ) -> Collection:
        """
        Create a collection.

        Raises:
            WriteAsError: If the alias is taken or invalid.
        """
        body = {"alias": alias, "title": title or alias}
        if description:
            body["description"] = description
        data = self._request("POST", "/collections", json=body) or {}
        return Collection(
            alias=data.get("alias", alias),
            title=data.get("title") or title,
            description=data.get("description") or description,
        )

    def create_post(self, params: PostParams) -> RemotePost:
        """
        Create a post, in ``params.collection`` when one is set.
        """
        if params.collection:
            path = f"/collections/{params.collection}/posts"
        else:
            path = "/posts"
        data = self._request("POST", path, json=params_to_api(params))
        post = post_from_api(data or {})
        if post.collection is None and params.collection:
            post = post.model_copy(update={"collection": params.collection})
        return post

    def update_post(
        self, post_id: str, token: str, params: PostParams
    ) -> RemotePost:
        """
        Update an existing post.

        Args:
            post_id: Post to update.
            token: The post's token; may be empty for posts owned by the
                authenticated user.
            params: New field values.  ``params.created`` should be
                ``None``: the service rejects it on update.
        """
        body = params_to_api(params)
        if token:
            body["token"] = token
        data = self._request("POST", f"/posts/{post_id}", json=body)
        post = post_from_api(data or {})
        if post.collection is None and params.collection:
            post = post.model_copy(update={"collection": params.collection})
        return post

    def delete_post(self, post_id: str, token: str = "") -> None:
        """
        Delete a post.
        """
        query = {"token": token} if token else None
        self._request("DELETE", f"/posts/{post_id}", params=query)

    def pin_post(self, collection: str, post_id: str, position: int) -> None:
        """
        Pin a post to *position* in *collection*.
        """
        data = self._request(
            "POST",
            f"/collections/{collection}/pin",
            json=[{"id": post_id, "position": position}],
        )
        self._check_batch(data)

    def unpin_post(self, collection: str, post_id: str) -> None:
        """
        Unpin a post from *collection*.
        """
        data = self._request(
            "POST",
            f"/collections/{collection}/unpin",
            json=[{"id": post_id}],
        )
        self._check_batch(data)

    def _check_batch(self, data: Any) -> None:
        # Pin endpoints report a status per post inside a 200 response.
        if not isinstance(data, list):
            return
        for item in data:
            if not isinstance(item, dict):
                continue
            code = item.get("code", 200)
            if code >= 300:
                raise WriteAsError(code, item.get("error_msg") or "error")

    def login(self, username: str, password: str) -> tuple[str, str]:
        """
        Log in and return ``(access_token, username)``.
        """
        data = self._request(
            "POST", "/auth/login", json={"alias": username, "pass": password}
        ) or {}
        token = data.get("access_token", "")
        if not token:
            raise WriteAsError(500, "no access token in login response")
        user = data.get("user") or {}
        return token, user.get("username", username)

    def logout(self) -> None:
        """
        Revoke the client's access token.
        """
        self._request("DELETE", "/auth/me")

