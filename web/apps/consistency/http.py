"""Translation between orchestrator results and DRF responses."""

from typing import Any, Callable, Optional

from django.conf import settings
from django.core.paginator import Paginator
from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response

from .result import ErrorKind, Result

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_body(kind: ErrorKind, messages) -> dict:
    return {"detail": kind.value, "errors": list(messages)}


def validation_response(exc: ValidationError) -> Response:
    """400 response listing every pydantic error as 'field: message'."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
    return Response(error_body(ErrorKind.VALIDATION_FAILED, messages), status=status.HTTP_400_BAD_REQUEST)


def result_body(result: Result, serialize: Optional[Callable[[Any], Any]] = None):
    """Return ``(status_code, body)`` for a result."""
    if not result.ok:
        return STATUS_BY_KIND[result.error], error_body(result.error, result.messages)
    return status.HTTP_200_OK, (serialize(result.value) if serialize else result.value)


def to_response(
    result: Result,
    serialize: Optional[Callable[[Any], Any]] = None,
    success_status: int = status.HTTP_200_OK,
) -> Response:
    code, body = result_body(result, serialize)
    if result.ok:
        code = success_status
    return Response(body, status=code)


def paginate(request, items: list, serialize: Callable[[Any], Any]) -> Response:
    """Paginated list response using ``page``/``page_size`` query params."""
    default_size = getattr(settings, "API_PAGE_SIZE", 20)
    max_size = getattr(settings, "API_MAX_PAGE_SIZE", 100)
    try:
        page = int(request.GET.get("page", 1))
        page_size = min(max(int(request.GET.get("page_size", default_size)), 1), max_size)
    except ValueError:
        return Response(
            error_body(ErrorKind.VALIDATION_FAILED, ["page and page_size must be integers"]),
            status=status.HTTP_400_BAD_REQUEST,
        )

    p = Paginator(items, page_size)
    page_obj = p.get_page(page)
    return Response(
        {
            "count": p.count,
            "page": page_obj.number,
            "page_size": page_size,
            "results": [serialize(x) for x in page_obj.object_list],
        },
        status=status.HTTP_200_OK,
    )
