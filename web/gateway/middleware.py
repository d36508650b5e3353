"""Gateway middleware: request identifiers and API body size limit.

``RequestIdMiddleware`` makes sure every request carries an id. The id is
read from the incoming ``X-Request-ID`` header when the client sends one,
otherwise a UUIDv4 is generated. It is stored on ``request.request_id``
and in ``REQUEST_ID_CTX`` so log records and library code can reach it,
and it is echoed back in the ``X-Request-ID`` response header.

``ApiSizeLimitMiddleware`` rejects ``/api/`` requests whose declared body
is larger than ``settings.API_MAX_BYTES`` with HTTP 413.
"""

import contextvars
import logging
import uuid

from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("candles.gateway")


class RequestIdMiddleware(MiddlewareMixin):
    """Set a per-request identifier and return it on the response.

    Attributes:
        HEADER (str): Incoming header name in ``request.META`` casing.
        RESPONSE_HEADER (str): Header set on every response.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    def process_request(self, request):
        if not request.path.startswith("/api/"):
            return None
        limit = getattr(settings, "API_MAX_BYTES", 1024 * 1024)
        clen = request.META.get("CONTENT_LENGTH")
        if clen and clen.isdigit() and int(clen) > limit:
            logger.warning("payload too large", extra={"path": request.path, "bytes": int(clen)})
            return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)
        return None
