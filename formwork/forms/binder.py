"""Resolve a record and its fields into a submission target and initial values."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence
from urllib.parse import quote

from formwork.config import Settings, get_settings
from formwork.forms.errors import FormBindingError, InvalidRecordType, UnknownField
from formwork.forms.inflection import pluralize
from formwork.forms.record import FieldSpec, Record, as_field_spec

logger = logging.getLogger(__name__)

RECORD_TYPE_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_DOM_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

# Methods a browser form can send natively
NATIVE_METHODS = frozenset({"GET", "POST"})


@dataclass(frozen=True)
class SubmissionTarget:
    path: str
    method: str


@dataclass(frozen=True)
class BoundField:
    """A field resolved against a record.

    param_name and dom_id are the name/id attributes a renderer should use:
        post[title] / post_title   (scoped to a record)
        title / title              (unscoped URL form)
    """

    name: str
    value: str
    label: str
    param_scope: str | None = None

    @property
    def param_name(self) -> str:
        if self.param_scope is None:
            return self.name
        return f"{self.param_scope}[{self.name}]"

    @property
    def dom_id(self) -> str:
        if self.param_scope is None:
            return self.name
        return f"{self.param_scope}_{self.name}"


@dataclass(frozen=True)
class BoundForm:
    target: SubmissionTarget
    bound_fields: tuple[BoundField, ...]
    param_scope: str | None
    dom_id: str | None = None
    dom_class: str | None = None
    method_override_field: str = "_method"

    @property
    def fields(self) -> list[tuple[str, str]]:
        """(name, initial value) pairs in declaration order."""
        return [(f.name, f.value) for f in self.bound_fields]

    @property
    def transport_method(self) -> str:
        """The verb the browser actually sends: get or post."""
        return "get" if self.target.method == "GET" else "post"

    @property
    def hidden_fields(self) -> dict[str, str]:
        """Hidden inputs needed to tunnel the logical method through a POST."""
        if self.target.method in NATIVE_METHODS:
            return {}
        return {self.method_override_field: self.target.method.lower()}

    def __iter__(self):
        return iter(self.bound_fields)

    def __getitem__(self, name: str) -> BoundField:
        for bound_field in self.bound_fields:
            if bound_field.name == name:
                return bound_field
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.bound_fields)

    def to_dict(self) -> dict:
        return {
            "target": {"path": self.target.path, "method": self.target.method},
            "fields": [
                {
                    "name": f.name,
                    "value": f.value,
                    "label": f.label,
                    "param_name": f.param_name,
                    "dom_id": f.dom_id,
                }
                for f in self.bound_fields
            ],
            "param_scope": self.param_scope,
            "dom_id": self.dom_id,
            "dom_class": self.dom_class,
            "transport_method": self.transport_method,
            "hidden_fields": self.hidden_fields,
        }


def resource_path(record_type: str) -> str:
    """Default collection path for a record type. post -> /posts"""
    return "/" + pluralize(record_type)


def bind(
    record: Record,
    fields: Sequence[FieldSpec | str],
    base_resource_path: str | None = None,
    *,
    settings: Settings | None = None,
) -> BoundForm:
    """Bind a record to a form.

    New records submit with POST to the collection path and start with empty
    values. Persisted records submit with PATCH to the member path and start
    with their current attribute values.

    Raises:
        InvalidRecordType: record.type is not identifier-safe.
        UnknownField: a field is missing from a persisted record's attributes.
        FormBindingError: no fields were given.
    """
    if not isinstance(record.type, str) or not RECORD_TYPE_PATTERN.fullmatch(record.type):
        raise InvalidRecordType(record.type)

    specs = [as_field_spec(f) for f in fields]
    if not specs:
        raise FormBindingError("A form needs at least one field")

    settings = settings or get_settings()
    base = base_resource_path if base_resource_path is not None else resource_path(record.type)

    if record.is_new:
        target = SubmissionTarget(path=base, method="POST")
    else:
        target = SubmissionTarget(
            path=f"{base.rstrip('/')}/{quote(record.id, safe='')}",
            method="PATCH",
        )

    bound_fields = tuple(
        BoundField(
            name=spec.name,
            value=_initial_value(record, spec),
            label=spec.display_label,
            param_scope=record.type,
        )
        for spec in specs
    )

    if record.is_new:
        dom_id = dom_class = f"new_{record.type}"
    else:
        dom_class = f"edit_{record.type}"
        dom_id = f"{dom_class}_{_DOM_UNSAFE.sub('_', record.id)}"

    logger.debug(
        "Bound %s form for %s: %s %s", len(bound_fields), record.type, target.method, target.path
    )

    return BoundForm(
        target=target,
        bound_fields=bound_fields,
        param_scope=record.type,
        dom_id=dom_id,
        dom_class=dom_class,
        method_override_field=settings.method_override_field,
    )


def bind_url(
    url: str,
    fields: Iterable[FieldSpec | str],
    method: str = "POST",
    values: Mapping[str, str] | None = None,
    *,
    settings: Settings | None = None,
) -> BoundForm:
    """Bind a form that is not backed by a record.

    Fields are unscoped, so their values arrive at the top level of the
    submission. Initial values come from ``values`` (empty when missing).
    """
    verb = method.upper()
    if verb not in HTTP_METHODS:
        raise FormBindingError(f"Unsupported form method: {method}")

    specs = [as_field_spec(f) for f in fields]
    if not specs:
        raise FormBindingError("A form needs at least one field")

    settings = settings or get_settings()
    values = values or {}

    return BoundForm(
        target=SubmissionTarget(path=url, method=verb),
        bound_fields=tuple(
            BoundField(
                name=spec.name,
                value=values.get(spec.name, ""),
                label=spec.display_label,
            )
            for spec in specs
        ),
        param_scope=None,
        method_override_field=settings.method_override_field,
    )


def _initial_value(record: Record, spec: FieldSpec) -> str:
    if record.is_new:
        return ""
    try:
        return record.attributes[spec.name]
    except KeyError:
        raise UnknownField(spec.name, record.type) from None
