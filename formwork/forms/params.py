"""Submitted parameter handling: nesting, allow-list filtering, method override."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping

from formwork.config import Settings, get_settings
from formwork.forms.errors import MissingScope, UnpermittedParameters

logger = logging.getLogger(__name__)

OVERRIDABLE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})

_SUBKEY = re.compile(r"\[([^\[\]]*)\]")


def extract_params(
    raw_submission: Mapping[str, Any],
    param_scope: str,
    permitted_fields: Iterable[str],
    *,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Pull a record's submitted values out of a nested submission.

    Only keys under ``param_scope`` that are in ``permitted_fields`` survive.
    Anything else, including top-level keys outside the scope, is dropped.
    Permitted fields that were not submitted are simply absent.

    Usage:
        extract_params({"post": {"title": "X", "admin": True}}, "post", {"title"})
        # -> {"title": "X"}

    Raises:
        MissingScope: the submission has no mapping under ``param_scope``.
    """
    if param_scope not in raw_submission:
        raise MissingScope(param_scope)

    scoped = raw_submission[param_scope]
    if not isinstance(scoped, Mapping):
        raise MissingScope(param_scope)

    return permit(scoped, permitted_fields, settings=settings)


def permit(
    params: Mapping[str, Any],
    permitted_fields: Iterable[str],
    *,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Restrict a mapping to the permitted keys, returning a new dict."""
    if isinstance(permitted_fields, str):
        permitted_fields = [permitted_fields]
    allowed = set(permitted_fields)

    permitted = {key: value for key, value in params.items() if key in allowed}

    dropped = [str(key) for key in params if key not in allowed]
    if dropped:
        _unpermitted(dropped, settings or get_settings())

    return permitted


def _unpermitted(keys: list[str], settings: Settings) -> None:
    if settings.unpermitted_params == "raise":
        raise UnpermittedParameters(keys)
    if settings.unpermitted_params == "log":
        logger.info("Unpermitted parameters: %s", ", ".join(keys))


def parse_nested_params(items) -> dict[str, Any]:
    """Nest flat form pairs according to their bracketed names.

        post[title]=X      -> {"post": {"title": "X"}}
        post[tags][]=a     -> {"post": {"tags": ["a"]}}
        a[b][c]=1          -> {"a": {"b": {"c": "1"}}}

    Accepts a mapping, anything with ``multi_items()`` (Litestar's
    FormMultiDict) or an iterable of (key, value) pairs. Malformed bracket
    names are kept as literal top-level keys.
    """
    params: dict[str, Any] = {}
    for key, value in _pairs(items):
        _assign(params, _split_key(str(key)), value)
    return params


def resolve_method(
    request_method: str,
    form_data: Mapping[str, Any] | None,
    *,
    field: str | None = None,
    settings: Settings | None = None,
) -> str:
    """Effective method for a request, honouring the hidden override field.

    Only POST can be overridden, and only to PUT, PATCH or DELETE. The field
    defaults to Settings.method_override_field, matching what bind() emits.
    """
    if request_method.upper() != "POST" or not form_data:
        return request_method

    if field is None:
        field = (settings or get_settings()).method_override_field

    override = form_data.get(field)
    if isinstance(override, str) and override.upper() in OVERRIDABLE_METHODS:
        return override.upper()
    return request_method


# -- Internals --


def _pairs(items) -> Iterable[tuple[Any, Any]]:
    if hasattr(items, "multi_items"):
        return items.multi_items()
    if isinstance(items, Mapping):
        return items.items()
    return items


def _split_key(key: str) -> list[str]:
    head, bracket, rest = key.partition("[")
    if not bracket or not head:
        return [key]

    tail = bracket + rest
    subkeys = _SUBKEY.findall(tail)
    if "".join(f"[{part}]" for part in subkeys) != tail:
        return [key]
    return [head, *subkeys]


def _descend(params: dict[str, Any], path: list[str]) -> dict[str, Any]:
    target = params
    for part in path:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    return target


def _assign(params: dict[str, Any], parts: list[str], value: Any) -> None:
    if len(parts) > 1 and parts[-1] == "":
        *path, key = parts[:-1]
        container = _descend(params, path)
        existing = container.get(key)
        if not isinstance(existing, list):
            existing = []
            container[key] = existing
        existing.append(value)
        return

    *path, key = parts
    _descend(params, path)[key] = value
