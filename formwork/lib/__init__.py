from formwork.lib.exceptions import exception_handlers, form_binding_exception_handler
from formwork.lib.request import permitted_params, submitted_params

__all__ = [
    "exception_handlers",
    "form_binding_exception_handler",
    "permitted_params",
    "submitted_params",
]
