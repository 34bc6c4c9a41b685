"""Tests for the method override ASGI middleware."""

import logging
from urllib.parse import urlencode

import pytest
from litestar import Litestar, Request, patch
from litestar.testing import TestClient

from formwork.config import clear_settings_cache
from formwork.forms import Record, bind
from formwork.lib import permitted_params
from formwork.middleware.method_override import MethodOverrideMiddleware

FORM_HEADERS = [(b"content-type", b"application/x-www-form-urlencoded")]


def _make_app(captured):
    async def app(scope, receive, send):
        captured["type"] = scope["type"]
        if scope["type"] == "http":
            captured["method"] = scope["method"]
            body = b""
            while True:
                message = await receive()
                body += message.get("body", b"")
                if not message.get("more_body", False):
                    break
            captured["body"] = body
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"OK"})
    return app


def _make_receive(*chunks):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive


def _make_scope(method="POST", headers=None, path="/posts/7"):
    return {
        "type": "http",
        "method": method,
        "path": path,
        "headers": FORM_HEADERS if headers is None else headers,
    }


async def _noop_send(message):
    pass


class TestMethodOverrideMiddleware:
    @pytest.mark.asyncio
    async def test_patch_override(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(
            _make_scope(), _make_receive(b"_method=patch&post%5Btitle%5D=Hi"), _noop_send
        )
        assert captured["method"] == "PATCH"

    @pytest.mark.asyncio
    async def test_body_replayed_to_app(self):
        captured = {}
        body = b"_method=patch&post%5Btitle%5D=Hi"
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(_make_scope(), _make_receive(body), _noop_send)
        assert captured["body"] == body

    @pytest.mark.asyncio
    async def test_chunked_body(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(
            _make_scope(), _make_receive(b"post%5Btitle%5D=Hi&_met", b"hod=delete"), _noop_send
        )
        assert captured["method"] == "DELETE"
        assert captured["body"] == b"post%5Btitle%5D=Hi&_method=delete"

    @pytest.mark.asyncio
    async def test_no_override_field_keeps_post(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(_make_scope(), _make_receive(b"post%5Btitle%5D=Hi"), _noop_send)
        assert captured["method"] == "POST"

    @pytest.mark.asyncio
    async def test_unsupported_override_ignored(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(_make_scope(), _make_receive(b"_method=get"), _noop_send)
        assert captured["method"] == "POST"

    @pytest.mark.asyncio
    async def test_get_request_untouched(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(_make_scope(method="GET"), _make_receive(b"_method=delete"), _noop_send)
        assert captured["method"] == "GET"

    @pytest.mark.asyncio
    async def test_non_form_content_type_ignored(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        scope = _make_scope(headers=[(b"content-type", b"application/json")])
        await middleware(scope, _make_receive(b'{"_method": "patch"}'), _noop_send)
        assert captured["method"] == "POST"
        assert captured["body"] == b'{"_method": "patch"}'

    @pytest.mark.asyncio
    async def test_content_type_with_charset(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        scope = _make_scope(
            headers=[(b"content-type", b"application/x-www-form-urlencoded; charset=utf-8")]
        )
        await middleware(scope, _make_receive(b"_method=put"), _noop_send)
        assert captured["method"] == "PUT"

    @pytest.mark.asyncio
    async def test_header_override(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        scope = _make_scope(headers=[(b"x-http-method-override", b"PATCH")])
        await middleware(scope, _make_receive(b"{}"), _noop_send)
        assert captured["method"] == "PATCH"
        assert captured["body"] == b"{}"

    @pytest.mark.asyncio
    async def test_custom_field(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured), field="_verb")
        await middleware(_make_scope(), _make_receive(b"_verb=delete&_method=patch"), _noop_send)
        assert captured["method"] == "DELETE"

    @pytest.mark.asyncio
    async def test_non_http_passthrough(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware({"type": "lifespan"}, _make_receive(), _noop_send)
        assert captured["type"] == "lifespan"

    @pytest.mark.asyncio
    async def test_override_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="formwork.middleware.method_override")
        middleware = MethodOverrideMiddleware(_make_app({}))
        await middleware(_make_scope(), _make_receive(b"_method=patch"), _noop_send)
        assert "POST -> PATCH" in caplog.text

    @pytest.mark.asyncio
    async def test_field_follows_settings(self, monkeypatch):
        monkeypatch.setenv("FORMWORK_METHOD_OVERRIDE_FIELD", "_verb")
        clear_settings_cache()
        form = bind(Record(type="post", id="7", attributes={"title": "Hi"}), ["title"])
        body = urlencode({**form.hidden_fields, form["title"].param_name: "Edited"}).encode()

        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured))
        await middleware(_make_scope(), _make_receive(body), _noop_send)

        assert form.hidden_fields == {"_verb": "patch"}
        assert captured["method"] == "PATCH"

    @pytest.mark.asyncio
    async def test_oversized_body_not_inspected(self):
        captured = {}
        middleware = MethodOverrideMiddleware(_make_app(captured), max_body_size=10)
        await middleware(
            _make_scope(), _make_receive(b"_method=", b"patch&post%5Btitle%5D=Hi"), _noop_send
        )
        assert captured["method"] == "POST"
        assert captured["body"] == b"_method=patch&post%5Btitle%5D=Hi"

    @pytest.mark.asyncio
    async def test_body_at_limit_inspected(self):
        captured = {}
        body = b"_method=patch"
        middleware = MethodOverrideMiddleware(_make_app(captured), max_body_size=len(body))
        await middleware(_make_scope(), _make_receive(body), _noop_send)
        assert captured["method"] == "PATCH"


# ---------------------------------------------------------------------------
# Litestar integration
# ---------------------------------------------------------------------------


@patch("/posts/{post_id:str}")
async def update_post(request: Request, post_id: str) -> dict:
    params = await permitted_params(request, "post", ["title"])
    return {"id": post_id, **params}


class TestMethodOverrideWithLitestar:
    """Route selection happens inside Litestar, so the middleware wraps the app."""

    def _edit_form_data(self):
        form = bind(Record(type="post", id="7", attributes={"title": "Hi"}), ["title"])
        return form, {**form.hidden_fields, form["title"].param_name: "Edited"}

    def test_edit_form_reaches_patch_handler(self):
        app = MethodOverrideMiddleware(Litestar(route_handlers=[update_post]))
        form, data = self._edit_form_data()

        with TestClient(app=app) as client:
            response = client.post(form.target.path, data=data)

        assert response.status_code == 200
        assert response.json() == {"id": "7", "title": "Edited"}

    def test_without_middleware_post_is_not_routed(self):
        app = Litestar(route_handlers=[update_post])
        form, data = self._edit_form_data()

        with TestClient(app=app) as client:
            response = client.post(form.target.path, data=data)

        assert response.status_code == 405
