"""Logging filter that stamps records with the current request id.

The id comes from the ContextVar set by ``RequestIdMiddleware``. Adding the
filter to a handler lets the JSON formatter reference ``%(request_id)s``
without every log call passing it explicitly.
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach ``request_id`` to log records.

    Records emitted outside a request (management commands, startup) get
    a hyphen so formatters can always reference the attribute.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
