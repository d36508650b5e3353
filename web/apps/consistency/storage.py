"""Helpers shared by the Django ORM repositories.

Each repository write runs in its own savepoint. A ``DatabaseError`` rolls
back only that savepoint and is reported to the caller as a failed step
(``None`` or ``False``), which the aggregate managers turn into an
INTERNAL_FAILURE inside their outer transaction.
"""

import logging
from contextlib import AbstractContextManager
from functools import wraps

from django.db import DatabaseError, transaction

logger = logging.getLogger("candles.storage")


def guarded_write(failure_value):
    """Decorate a repository write so database errors become ``failure_value``."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                # Nested savepoint: only this step is rolled back on error.
                with transaction.atomic():
                    return fn(*args, **kwargs)
            except DatabaseError:
                logger.exception("database write failed", extra={"step": fn.__name__})
                return failure_value

        return wrapper

    return decorator


class AtomicMixin:
    """Provide ``atomic()`` backed by ``django.db.transaction``."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()
