from litestar import Request, Response
from litestar.status_codes import HTTP_400_BAD_REQUEST

from formwork.forms.errors import FormBindingError


def form_binding_exception_handler(request: Request, exc: FormBindingError) -> Response:
    """Report caller-input errors from binding or parameter extraction as 400."""
    return Response(
        content={
            "status_code": HTTP_400_BAD_REQUEST,
            "detail": str(exc),
            "error": type(exc).__name__,
        },
        status_code=HTTP_400_BAD_REQUEST,
        media_type="application/json",
    )


exception_handlers = {FormBindingError: form_binding_exception_handler}
