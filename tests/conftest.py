"""Shared pytest fixtures for blogsync tests."""

from __future__ import annotations

import itertools
import textwrap
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from blogsync.config import Config
from blogsync.core.client import WriteAsError
from blogsync.core.models import Collection, PostParams, RemotePost

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Write.as instance",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Write.as instance"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeWriteAsClient:
    """In-memory stand-in for WriteAsClient.

    Every write is appended to ``calls`` as ``(method, *args)`` so tests
    can assert exactly which writes were sent.  Methods listed in
    ``fail`` raise ``WriteAsError`` instead.
    """

    def __init__(
        self,
        posts: list[RemotePost] | None = None,
        collections: list[str] | None = None,
        fail: set[str] | None = None,
    ) -> None:
        self.posts = list(posts or [])
        self.collections = list(collections or [])
        self.fail = set(fail or ())
        self.calls: list[tuple] = []
        self._ids = itertools.count(1)

    @property
    def writes(self) -> list[tuple]:
        return list(self.calls)

    def _check(self, method: str) -> None:
        if method in self.fail:
            raise WriteAsError(500, f"{method} failed")

    def get_user_posts(self) -> list[RemotePost]:
        self._check("get_user_posts")
        return list(self.posts)

    def get_user_collections(self) -> list[Collection]:
        self._check("get_user_collections")
        return [Collection(alias=alias) for alias in self.collections]

    def create_collection(
        self, alias: str, title: str = "", description: str = ""
    ) -> Collection:
        self.calls.append(("create_collection", alias))
        self._check("create_collection")
        self.collections.append(alias)
        return Collection(alias=alias, title=title, description=description)

    def create_post(self, params: PostParams) -> RemotePost:
        self.calls.append(("create_post", params))
        self._check("create_post")
        post = RemotePost(
            id=f"new{next(self._ids)}",
            token="tok",
            slug=params.slug,
            collection=params.collection or None,
            title=params.title,
            content=params.content,
            font=params.font,
            language=params.language,
            rtl=params.rtl,
        )
        self.posts.append(post)
        return post

    def update_post(
        self, post_id: str, token: str, params: PostParams
    ) -> RemotePost:
        self.calls.append(("update_post", post_id, token, params))
        self._check("update_post")
        return RemotePost(
            id=post_id,
            token=token,
            slug=params.slug,
            collection=params.collection or None,
            title=params.title,
            content=params.content,
            font=params.font,
            language=params.language,
            rtl=params.rtl,
        )

    def delete_post(self, post_id: str, token: str = "") -> None:
        self.calls.append(("delete_post", post_id, token))
        self._check("delete_post")
        self.posts = [p for p in self.posts if p.id != post_id]

    def pin_post(self, collection: str, post_id: str, position: int) -> None:
        self.calls.append(("pin_post", collection, post_id, position))
        self._check("pin_post")

    def unpin_post(self, collection: str, post_id: str) -> None:
        self.calls.append(("unpin_post", collection, post_id))
        self._check("unpin_post")


def write_page(root: Path, name: str, text: str) -> Path:
    """Write a page under *root*, dedenting *text*."""
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        api_url="https://write.example.com/api",
        token="test-token",
        username="testuser",
        insecure=False,
    )


@pytest.fixture
def mock_writeas_client(mock_config):
    """Create a mock WriteAsClient instance for testing."""
    from blogsync.core.client import WriteAsClient

    client = MagicMock(spec=WriteAsClient)
    client.config = mock_config
    return client


@pytest.fixture
def fake_client():
    """An empty FakeWriteAsClient."""
    return FakeWriteAsClient()


@pytest.fixture
def content_dir(tmp_path):
    """An empty content directory."""
    path = tmp_path / "content"
    path.mkdir()
    return path
