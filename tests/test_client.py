"""Tests for the Forum Shield Python SDK."""

import json

import pytest
import requests

from forum_shield import ForumShieldAPIError, ForumShieldClient, ForumShieldError


def make_response(status_code, body, url="http://shield.test/api"):
    resp = requests.Response()
    resp.status_code = status_code
    resp.url = url
    if isinstance(body, (dict, list)):
        resp._content = json.dumps(body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = body.encode("utf-8")
    return resp


@pytest.fixture
def client():
    return ForumShieldClient(base_url="http://shield.test/", api_key="k")


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("FORUM_SHIELD_URL", "http://env.test:3000/")
    monkeypatch.delenv("FORUM_SHIELD_API_KEY", raising=False)
    client = ForumShieldClient()
    assert client.base_url == "http://env.test:3000"
    assert client._get_headers() == {}


def test_create_post_sends_content(monkeypatch, client):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, url=url, **kwargs)
        return make_response(200, {"id": "1", "content": "**", "created_at": "2026-01-01T00:00:00Z"})

    monkeypatch.setattr(requests, "request", fake_request)
    post = client.create_post("国家")

    assert post["content"] == "**"
    assert seen["method"] == "POST"
    assert seen["url"] == "http://shield.test/api/posts"
    assert seen["json"] == {"content": "国家"}
    assert seen["headers"] == {"X-API-Key": "k"}
    assert seen["timeout"] == 10.0


def test_list_comments_passes_pagination(monkeypatch, client):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(url=url, params=kwargs["params"])
        return make_response(200, {"comments": [], "total": 0, "page": 2, "page_size": 5})

    monkeypatch.setattr(requests, "request", fake_request)
    client.list_comments("abc", page=2, per_page=5)

    assert seen == {"url": "http://shield.test/api/posts/abc/comments", "params": {"page": 2, "per_page": 5}}


def test_api_error_carries_detail_and_status(monkeypatch, client):
    monkeypatch.setattr(
        requests, "request",
        lambda *a, **kw: make_response(500, {"detail": "Failed to reload banned term list: gone"}),
    )

    with pytest.raises(ForumShieldAPIError) as exc:
        client.reload_filter()

    assert exc.value.status_code == 500
    assert exc.value.message.startswith("Failed to reload banned term list")


def test_api_error_falls_back_to_body_text(monkeypatch, client):
    monkeypatch.setattr(requests, "request", lambda *a, **kw: make_response(502, "Bad Gateway"))

    with pytest.raises(ForumShieldAPIError) as exc:
        client.get_post("x")

    assert exc.value.status_code == 502
    assert exc.value.message == "Bad Gateway"


def test_connection_errors_are_wrapped(monkeypatch, client):
    def boom(*args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(requests, "request", boom)

    with pytest.raises(ForumShieldError, match="Connection Failed"):
        client.test_filter("hi")
