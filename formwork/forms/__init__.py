"""Formwork form binding - submission targets, initial values and strong parameters."""

from formwork.forms.binder import BoundField, BoundForm, SubmissionTarget, bind, bind_url, resource_path
from formwork.forms.errors import (
    FormBindingError,
    InvalidRecordType,
    MissingScope,
    UnknownField,
    UnpermittedParameters,
)
from formwork.forms.params import extract_params, parse_nested_params, permit, resolve_method
from formwork.forms.record import FieldSpec, Record

__all__ = [
    "BoundField",
    "BoundForm",
    "FieldSpec",
    "FormBindingError",
    "InvalidRecordType",
    "MissingScope",
    "Record",
    "SubmissionTarget",
    "UnknownField",
    "UnpermittedParameters",
    "bind",
    "bind_url",
    "extract_params",
    "parse_nested_params",
    "permit",
    "resolve_method",
    "resource_path",
]
