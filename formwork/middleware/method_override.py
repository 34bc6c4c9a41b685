"""Method override middleware for Formwork.

Browsers can only submit forms with GET or POST. Forms bound to persisted
records tunnel PATCH (or PUT/DELETE) through a POST carrying a hidden
``_method`` field; this middleware rewrites the request method before
routing so handlers can be registered against the logical verb.

The override is also accepted from an ``X-HTTP-Method-Override`` header.
Only urlencoded bodies are inspected; the buffered body is replayed to the
wrapped application unchanged.

Litestar picks the route handler before route middleware runs, so wrap the
application itself:

    app = MethodOverrideMiddleware(Litestar(route_handlers=[...]))
"""

import logging
from urllib.parse import parse_qsl

from litestar.types import ASGIApp, Message, Receive, Scope, Send

from formwork.config import get_settings
from formwork.forms.params import resolve_method

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = b"application/x-www-form-urlencoded"
_OVERRIDE_HEADER = b"x-http-method-override"

DEFAULT_MAX_BODY_SIZE = 1024 * 1024


class MethodOverrideMiddleware:
    """ASGI middleware that applies the hidden method override field.

    Args:
        app: The ASGI application to wrap.
        field: Name of the form field carrying the override. Defaults to
            Settings.method_override_field, the same field bound forms emit.
        max_body_size: Bodies larger than this are passed through without
            being inspected for an override.
    """

    def __init__(
        self,
        app: ASGIApp,
        field: str | None = None,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    ) -> None:
        self.app = app
        self._field = field
        self.max_body_size = max_body_size

    @property
    def field(self) -> str:
        return self._field or get_settings().method_override_field

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        field = self.field

        header_override = headers.get(_OVERRIDE_HEADER)
        if header_override:
            _apply(scope, {field: header_override.decode("latin-1")}, field)
            await self.app(scope, receive, send)
            return

        content_type = headers.get(b"content-type", b"").split(b";")[0].strip().lower()
        if content_type != _FORM_CONTENT_TYPE:
            await self.app(scope, receive, send)
            return

        body, messages = await _read_body(receive, self.max_body_size)
        if body is None:
            logger.debug(
                "Skipping method override for %s: body over %s bytes",
                scope.get("path"),
                self.max_body_size,
            )
        else:
            form_data = dict(parse_qsl(body.decode("latin-1"), keep_blank_values=True))
            _apply(scope, form_data, field)

        await self.app(scope, _replay(messages, receive), send)


def _apply(scope: Scope, form_data: dict[str, str], field: str) -> None:
    method = resolve_method(scope["method"], form_data, field=field)
    if method != scope["method"]:
        logger.debug("Method override %s -> %s for %s", scope["method"], method, scope.get("path"))
        scope["method"] = method


async def _read_body(receive: Receive, limit: int) -> tuple[bytes | None, list[Message]]:
    """Buffer the request body, keeping the raw messages for replay.

    Returns None for the body once more than ``limit`` bytes arrive; the
    messages read so far are still returned so nothing is lost.
    """
    messages: list[Message] = []
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        messages.append(message)
        if message["type"] != "http.request":
            break
        chunk = message.get("body", b"")
        size += len(chunk)
        if size > limit:
            return None, messages
        chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks), messages


def _replay(messages: list[Message], receive: Receive) -> Receive:
    pending = list(messages)

    async def replay_receive() -> Message:
        if pending:
            return pending.pop(0)
        return await receive()

    return replay_receive
