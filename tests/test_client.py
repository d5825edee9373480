"""Tests for the Write.as HTTP client."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from blogsync.core.client import (
    WriteAsClient,
    WriteAsError,
    format_time,
    params_to_api,
    post_from_api,
)
from blogsync.core.models import PostParams


def _response(status=200, payload=None, reason="OK"):
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    if payload is None:
        response.content = b""
        response.json.side_effect = ValueError("no content")
    else:
        response.content = b"{...}"
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(mock_config, session):
    c = WriteAsClient(mock_config)
    with patch.object(WriteAsClient, "_get_session", return_value=session):
        yield c


def _sent(session):
    """(method, url, kwargs) of the last request."""
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestSession:
    def test_auth_header(self, mock_config):
        session = WriteAsClient(mock_config)._create_session()
        assert session.headers["Authorization"] == "Token test-token"
        assert session.verify is True

    def test_no_token_no_header(self, mock_config):
        mock_config.token = ""
        session = WriteAsClient(mock_config)._create_session()
        assert "Authorization" not in session.headers

    def test_insecure(self, mock_config):
        mock_config.insecure = True
        session = WriteAsClient(mock_config)._create_session()
        assert session.verify is False

    def test_session_is_reused(self, mock_config):
        c = WriteAsClient(mock_config)
        assert c.session is c.session


class TestRequest:
    def test_returns_envelope_data(self, client, session):
        session.request.return_value = _response(
            payload={"code": 200, "data": [1, 2]}
        )
        assert client._request("GET", "/x") == [1, 2]
        method, url, kwargs = _sent(session)
        assert method == "GET"
        assert url == "https://write.example.com/api/x"
        assert kwargs["timeout"] == (10, 30.0)

    def test_error_envelope(self, client, session):
        session.request.return_value = _response(
            status=401,
            payload={"code": 401, "error_msg": "Invalid token."},
            reason="Unauthorized",
        )
        with pytest.raises(WriteAsError) as exc_info:
            client._request("GET", "/me/posts")
        assert exc_info.value.code == 401
        assert exc_info.value.message == "Invalid token."
        assert str(exc_info.value) == "Invalid token. (401)"

    def test_empty_error_uses_reason(self, client, session):
        session.request.return_value = _response(
            status=404, reason="Not Found"
        )
        with pytest.raises(WriteAsError, match="Not Found"):
            client._request("DELETE", "/posts/x")

    def test_no_content(self, client, session):
        session.request.return_value = _response(status=204)
        assert client._request("DELETE", "/auth/me") is None

    def test_invalid_json(self, client, session):
        response = _response(payload={})
        response.json.side_effect = ValueError("bad")
        session.request.return_value = response
        with pytest.raises(WriteAsError, match="invalid JSON"):
            client._request("GET", "/x")

    def test_network_errors_propagate(self, client, session):
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(requests.ConnectionError):
            client.get_user_posts()


class TestPosts:
    def test_get_user_posts(self, client, session):
        session.request.return_value = _response(
            payload={
                "code": 200,
                "data": [
                    {
                        "id": "abc",
                        "slug": "hi",
                        "appearance": "serif",
                        "language": "en",
                        "rtl": False,
                        "title": "Hi",
                        "body": "hello\n",
                        "created": "2020-01-01T00:00:00Z",
                        "collection": {"alias": "blog"},
                    },
                    {"id": "anon", "slug": None, "body": "x"},
                ],
            }
        )
        posts = client.get_user_posts()
        assert [p.id for p in posts] == ["abc", "anon"]
        post = posts[0]
        assert post.font == "serif"
        assert post.content == "hello\n"
        assert post.collection == "blog"
        assert post.created == datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert posts[1].collection is None
        assert posts[1].language is None
        assert posts[1].rtl is None
        method, url, _ = _sent(session)
        assert (method, url) == ("GET", "https://write.example.com/api/me/posts")

    def test_create_post_in_collection(self, client, session):
        session.request.return_value = _response(
            payload={"code": 201, "data": {"id": "new", "slug": "hi"}},
        )
        params = PostParams(
            slug="hi", title="Hi", content="body", collection="blog"
        )
        post = client.create_post(params)
        method, url, kwargs = _sent(session)
        assert method == "POST"
        assert url.endswith("/collections/blog/posts")
        assert kwargs["json"]["body"] == "body"
        assert post.id == "new"
        # the collection is filled in when the response omits it
        assert post.collection == "blog"

    def test_create_anonymous_post(self, client, session):
        session.request.return_value = _response(
            payload={"code": 201, "data": {"id": "new", "token": "t"}}
        )
        post = client.create_post(PostParams(slug="", title="", content="x"))
        _, url, _ = _sent(session)
        assert url.endswith("/api/posts")
        assert post.token == "t"
        assert post.collection is None

    def test_update_post(self, client, session):
        session.request.return_value = _response(
            payload={"code": 200, "data": {"id": "abc"}}
        )
        params = PostParams(slug="hi", title="Hi", content="new")
        client.update_post("abc", "tok", params)
        method, url, kwargs = _sent(session)
        assert method == "POST"
        assert url.endswith("/posts/abc")
        assert kwargs["json"]["token"] == "tok"
        assert "created" not in kwargs["json"]

    def test_delete_post_with_token(self, client, session):
        session.request.return_value = _response(status=204)
        client.delete_post("abc", "tok")
        method, url, kwargs = _sent(session)
        assert method == "DELETE"
        assert url.endswith("/posts/abc")
        assert kwargs["params"] == {"token": "tok"}

    def test_delete_post_without_token(self, client, session):
        session.request.return_value = _response(status=204)
        client.delete_post("abc")
        assert _sent(session)[2]["params"] is None


class TestPins:
    def test_pin(self, client, session):
        session.request.return_value = _response(
            payload={"code": 200, "data": [{"id": "abc", "code": 200}]}
        )
        client.pin_post("blog", "abc", 2)
        _, url, kwargs = _sent(session)
        assert url.endswith("/collections/blog/pin")
        assert kwargs["json"] == [{"id": "abc", "position": 2}]

    def test_unpin(self, client, session):
        session.request.return_value = _response(
            payload={"code": 200, "data": [{"id": "abc", "code": 200}]}
        )
        client.unpin_post("blog", "abc")
        _, url, kwargs = _sent(session)
        assert url.endswith("/collections/blog/unpin")
        assert kwargs["json"] == [{"id": "abc"}]

    def test_batch_item_error(self, client, session):
        session.request.return_value = _response(
            payload={
                "code": 200,
                "data": [
                    {"id": "abc", "code": 404, "error_msg": "Post not found."}
                ],
            }
        )
        with pytest.raises(WriteAsError) as exc_info:
            client.pin_post("blog", "abc", 1)
        assert exc_info.value.code == 404


class TestCollectionsAndAuth:
    def test_get_user_collections(self, client, session):
        session.request.return_value = _response(
            payload={
                "code": 200,
                "data": [{"alias": "blog", "title": "Blog", "public": True}],
            }
        )
        (coll,) = client.get_user_collections()
        assert coll.alias == "blog"
        assert coll.title == "Blog"
        assert coll.public is True

    def test_create_collection(self, client, session):
        session.request.return_value = _response(
            payload={"code": 201, "data": {"alias": "blog", "title": "Blog"}}
        )
        coll = client.create_collection("blog", "Blog", "About things")
        _, url, kwargs = _sent(session)
        assert url.endswith("/collections")
        assert kwargs["json"] == {
            "alias": "blog",
            "title": "Blog",
            "description": "About things",
        }
        assert coll.description == "About things"

    def test_login(self, client, session):
        session.request.return_value = _response(
            payload={
                "code": 200,
                "data": {
                    "access_token": "new-token",
                    "user": {"username": "ann"},
                },
            }
        )
        assert client.login("ann", "secret") == ("new-token", "ann")
        assert _sent(session)[2]["json"] == {"alias": "ann", "pass": "secret"}

    def test_login_without_token(self, client, session):
        session.request.return_value = _response(
            payload={"code": 200, "data": {}}
        )
        with pytest.raises(WriteAsError):
            client.login("ann", "secret")

    def test_logout(self, client, session):
        session.request.return_value = _response(status=204)
        client.logout()
        method, url, _ = _sent(session)
        assert (method, url) == ("DELETE", "https://write.example.com/api/auth/me")


class TestSerialization:
    def test_format_time_converts_to_utc(self):
        when = datetime(2020, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_time(when) == "2020-01-01T00:00:00Z"

    def test_params_to_api(self):
        params = PostParams(
            slug="hi",
            title="Hi",
            content="body",
            font="serif",
            language="en",
            rtl=True,
            created=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        body = params_to_api(params)
        assert body == {
            "body": "body",
            "rtl": True,
            "lang": "en",
            "title": "Hi",
            "font": "serif",
            "slug": "hi",
            "created": "2020-01-01T00:00:00Z",
        }

    def test_params_to_api_omits_created(self):
        params = PostParams(slug="hi", title="Hi", content="body")
        assert "created" not in params_to_api(params)

    def test_post_from_api_ignores_bad_times(self):
        post = post_from_api({"id": "x", "created": "garbage"})
        assert post.created is None


@pytest.mark.live
class TestLive:
    def test_list_posts(self):
        from blogsync.config import load_config

        client = WriteAsClient(load_config())
        assert isinstance(client.get_user_posts(), list)
