"""Idempotency keys for order creation.

A client may send ``Idempotency-Key`` with ``POST /api/orders/``. The first
request with a key records a hash of the payload and, once processed, the
response it produced. A retry with the same key and payload replays that
response without placing a second order (and without bumping the
receiver's repeat count again). Reusing a key with a different payload is
a conflict.
"""

import hashlib
import json

from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction

from .models import IdempotencyKey


class IdempotencyConflict(Exception):
    """The key was already used with a different payload."""


def payload_hash(payload) -> str:
    """Stable SHA-256 of a JSON-serializable payload (sorted keys, compact)."""
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), cls=DjangoJSONEncoder)
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@transaction.atomic
def claim(key: str, payload) -> tuple[bool, IdempotencyKey]:
    """Get-or-create the record for ``key``.

    Returns:
        tuple[bool, IdempotencyKey]: ``(existing, record)``. ``existing`` is
        False when this call created the record; the caller must then
        ``finalize`` it with the response it sends.

    Raises:
        IdempotencyConflict: The key exists with a different payload hash.
    """
    h = payload_hash(payload)
    try:
        with transaction.atomic():
            rec = IdempotencyKey.objects.create(key=key, request_hash=h)
            return False, rec
    except IntegrityError:
        rec = IdempotencyKey.objects.select_for_update().get(key=key)
        if rec.request_hash != h:
            raise IdempotencyConflict(key)
        return True, rec


def finalize(rec: IdempotencyKey, status_code: int, body, order_id: int | None = None) -> None:
    """Store the response so later retries can replay it."""
    rec.response_status = status_code
    rec.response_body = body
    rec.order_id = order_id
    rec.save(update_fields=["response_status", "response_body", "order_id"])


def release(rec: IdempotencyKey) -> None:
    """Drop an unfinished claim so a retry with the same key runs again."""
    IdempotencyKey.objects.filter(pk=rec.pk, response_status=0).delete()
