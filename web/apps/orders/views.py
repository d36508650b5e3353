"""HTTP views for the orders app.

This module contains DRF API views for the Order aggregate. Views are kept
intentionally small: they validate requests (via Pydantic), map them to
domain DTOs, delegate to the ``ConsistencyOrchestrator`` returned by
``providers.get_orchestrator()`` and translate its ``Result`` into an HTTP
response.

Idempotency: when an ``Idempotency-Key`` header is sent with
``POST /api/orders/``, the first request records its outcome and retries
with the same payload replay it (``Idempotent-Replay: true``). The same key
with a different payload returns HTTP 409.
"""

import logging

from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.consistency import providers
from apps.consistency.http import error_body, paginate, result_body, to_response, validation_response
from apps.consistency.result import ErrorKind

from .idempotency import IdempotencyConflict, claim, finalize, release
from .schemas import (
    OrderIn,
    OrderLineIn,
    OrderLinePatch,
    OrderQuery,
    render_line,
    render_order,
    render_receiver,
)

logger = logging.getLogger("candles.orders")


class OrdersCollectionView(APIView):
    """List orders (with simple filters) or create one."""

    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before get/post
        self.throttle_scope = "orders_list" if self.request.method == "GET" else "orders_create"
        return [throttle() for throttle in self.throttle_classes]

    def get(self, request):
        """List orders.

        Query params ``customer_id``, ``phone``, ``date`` (YYYY-MM-DD),
        ``min_sum`` and ``max_sum`` narrow the list; ``page`` and
        ``page_size`` paginate it.
        """
        params = {k: v for k, v in request.GET.items() if k not in ("page", "page_size") and v != ""}
        try:
            query = OrderQuery.model_validate(params)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().list_orders(query.to_filter())
        if not result.ok:
            return to_response(result)
        return paginate(request, result.value, render_order)

    def post(self, request):
        """Create a new order.

        Args:
            request (Request): DRF request with JSON body and optional
                ``Idempotency-Key`` header.

        Returns:
            Response: One of the following responses.
            - 201 with the created order, receiver repeat count included.
            - the stored status and body when a key and payload are retried.
            - 409 with {detail: "IDEMPOTENCY_CONFLICT"} when a key is reused
              with a different payload.
            - 400 for validation errors (shape, unknown candles or customer).
            - 500 when a storage step fails; nothing is persisted. On an
              unexpected error the claimed key is released for retries.
        """
        idem_key = request.headers.get("Idempotency-Key")

        # 1) Pydantic validation
        try:
            dto = OrderIn.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        # 2) Idempotency get-or-create
        rec = None
        if idem_key:
            try:
                existing, rec = claim(idem_key, request.data)
            except IdempotencyConflict:
                return Response({"detail": "IDEMPOTENCY_CONFLICT"}, status=status.HTTP_409_CONFLICT)
            if existing:
                if not rec.response_status:
                    return Response({"detail": "IDEMPOTENCY_IN_PROGRESS"}, status=status.HTTP_409_CONFLICT)
                resp = Response(rec.response_body, status=rec.response_status)
                resp["Idempotent-Replay"] = "true"
                return resp

        # 3) Orchestrate
        try:
            result = providers.get_orchestrator().create_order(dto.to_domain())
        except Exception:
            logger.exception("order creation failed", extra={"idempotency_key": idem_key})
            # let a retry with the same key run again
            if rec:
                release(rec)
            return Response(
                error_body(ErrorKind.INTERNAL_FAILURE, ["order could not be stored"]),
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        code, body = result_body(result, render_order)
        if result.ok:
            code = status.HTTP_201_CREATED

        if rec:
            finalize(rec, code, body, order_id=result.value.id if result.ok else None)
        return Response(body, status=code)


class RetrieveOrderView(APIView):
    """Read, replace or delete one order aggregate."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_id: int):
        return to_response(providers.get_orchestrator().get_order(order_id), render_order)

    def put(self, request, order_id: int):
        """Replace the order, its receiver and its full set of line items."""
        try:
            dto = OrderIn.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().update_order(order_id, dto.to_domain())
        return to_response(result, render_order)

    def delete(self, request, order_id: int):
        result = providers.get_orchestrator().delete_order(order_id)
        if result.ok:
            return Response({"detail": f"order {order_id} deleted"}, status=status.HTTP_200_OK)
        return to_response(result)


class OrderDetailsView(APIView):
    """Line items of an order: list them or add one."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_id: int):
        result = providers.get_orchestrator().get_order_lines(order_id)
        return to_response(result, lambda lines: [render_line(l) for l in lines])

    def post(self, request, order_id: int):
        try:
            dto = OrderLineIn.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().add_order_line(order_id, dto.to_domain())
        return to_response(result, render_line, success_status=status.HTTP_201_CREATED)


class OrderLineView(APIView):
    """Change the quantity of one line item or remove it."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def patch(self, request, order_id: int, candle_id: int):
        try:
            dto = OrderLinePatch.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().change_order_line(order_id, candle_id, dto.quantity)
        return to_response(result, render_line)

    def delete(self, request, order_id: int, candle_id: int):
        result = providers.get_orchestrator().remove_order_line(order_id, candle_id)
        if result.ok:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return to_response(result)


class OrderReceiverView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_id: int):
        return to_response(providers.get_orchestrator().get_order_receiver(order_id), render_receiver)
