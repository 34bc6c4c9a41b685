"""Record and FieldSpec input models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from formwork.forms.inflection import camel_to_snake, humanize


class Record(BaseModel):
    """A domain entity being created or edited through a form.

    A record without an id is new. Empty-string ids count as unset and
    integer ids are stored as strings, so a persisted record always carries
    a non-empty identifier.

    Usage:
        Record(type="post")                                   # new
        Record(type="post", id=7, attributes={"title": "Hi"}) # persisted
    """

    model_config = ConfigDict(frozen=True)

    type: str
    id: str | None = None
    attributes: dict[str, str] = {}

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def is_new(self) -> bool:
        return self.id is None

    @classmethod
    def from_model(
        cls,
        obj: BaseModel,
        record_type: str | None = None,
        id_field: str = "id",
    ) -> Record:
        """Build a Record from a pydantic model instance.

        The record type defaults to the snake_cased class name
        (BlogPost -> blog_post). None values become empty strings.
        """
        data = obj.model_dump()
        identifier = data.pop(id_field, None)
        return cls(
            type=record_type or camel_to_snake(obj.__class__.__name__),
            id=identifier,
            attributes={k: "" if v is None else str(v) for k, v in data.items()},
        )


class FieldSpec(BaseModel):
    """A form field: its attribute name and an optional display label."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str | None = None

    @property
    def display_label(self) -> str:
        return self.label or humanize(self.name)


def as_field_spec(field: FieldSpec | str) -> FieldSpec:
    """Accept a bare field name wherever a FieldSpec is expected."""
    if isinstance(field, FieldSpec):
        return field
    return FieldSpec(name=field)
