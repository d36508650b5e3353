"""Health endpoint: database reachability plus aggregate integrity.

The integrity component counts rows that would break the aggregate
invariants: candles without an ingredient, ingredients without a candle,
orders without a receiver and receivers or line items without an order.
Any non-zero count marks the service unhealthy.
"""

import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.catalog.models import CandleIngredientModel, CandleModel
from apps.orders.models import OrderDetailsModel, OrderModel, ReceiverModel

logger = logging.getLogger("candles.monitoring")


def integrity_report() -> dict:
    """Return orphan counts per invariant."""
    return {
        "candles_without_ingredient": CandleModel.objects.filter(ingredient__isnull=True).count(),
        "ingredients_without_candle": CandleIngredientModel.objects.exclude(
            candle_id__in=CandleModel.objects.values("id")
        ).count(),
        "orders_without_receiver": OrderModel.objects.filter(receiver__isnull=True).count(),
        "receivers_without_order": ReceiverModel.objects.exclude(
            order_id__in=OrderModel.objects.values("id")
        ).count(),
        "details_without_order": OrderDetailsModel.objects.exclude(
            order_id__in=OrderModel.objects.values("id")
        ).count(),
    }


def health_view(_request):
    db_ok = False
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except DatabaseError:
        logger.exception("database health check failed")

    integrity = None
    integrity_ok = False
    if db_ok:
        integrity = integrity_report()
        integrity_ok = not any(integrity.values())
        if not integrity_ok:
            logger.warning("aggregate integrity violated", extra={"orphans": integrity})

    ok = db_ok and integrity_ok
    code = 200 if ok else 503
    return JsonResponse(
        {
            "ok": ok,
            "components": {
                "db": {"ok": db_ok},
                "integrity": {"ok": integrity_ok, "orphans": integrity},
            },
        },
        status=code,
    )
