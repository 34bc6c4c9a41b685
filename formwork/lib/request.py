"""Litestar request helpers for reading bound-form submissions."""

from typing import Any, Iterable

from litestar import Request

from formwork.config import Settings
from formwork.forms.params import extract_params, parse_nested_params


async def submitted_params(request: Request) -> dict[str, Any]:
    """Parse the request's form body into nested params.

    post[title]=Hi&commit=Save -> {"post": {"title": "Hi"}, "commit": "Save"}
    """
    form_data = await request.form()
    return parse_nested_params(form_data)


async def permitted_params(
    request: Request,
    param_scope: str,
    permitted_fields: Iterable[str],
    *,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Scoped, allow-listed values from the request's form body.

    Raises MissingScope when nothing was submitted under ``param_scope``.
    """
    params = await submitted_params(request)
    return extract_params(params, param_scope, permitted_fields, settings=settings)
