"""Errors raised by form binding and parameter extraction.

All of them are caller-input errors: the invoking layer is expected to turn
them into a user-facing message (see formwork.lib.exceptions).
"""

from __future__ import annotations


class FormBindingError(ValueError):
    """Base class for all form binding errors."""


class InvalidRecordType(FormBindingError):
    def __init__(self, record_type: object):
        self.record_type = record_type
        super().__init__(
            f"Record type {record_type!r} is not a valid identifier"
        )


class UnknownField(FormBindingError):
    def __init__(self, field: str, record_type: str):
        self.field = field
        self.record_type = record_type
        super().__init__(f"'{record_type}' record has no attribute '{field}'")


class MissingScope(FormBindingError):
    def __init__(self, param_scope: str):
        self.param_scope = param_scope
        super().__init__(f"param is missing or the value is empty: {param_scope}")


class UnpermittedParameters(FormBindingError):
    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(f"found unpermitted parameters: {', '.join(keys)}")
