"""HTTP views for the candle catalog.

Views are kept small: they validate requests with pydantic, map them to
domain drafts, call the orchestrator obtained from
``providers.get_orchestrator()`` and turn its ``Result`` into a response.
Every view accepts ``?view=basic|full`` for the candle representation.
"""

from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.consistency import providers
from apps.consistency.http import error_body, paginate, to_response, validation_response
from apps.consistency.result import ErrorKind

from .schemas import CandleIn, serializer_for


def _int_param(request, name: str):
    raw = request.GET.get(name)
    if raw in (None, ""):
        return None
    return int(raw)


class CandleThrottleMixin:
    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "candles_read" if self.request.method == "GET" else "candles_write"
        return [throttle() for throttle in self.throttle_classes]


class CandlesCollectionView(CandleThrottleMixin, APIView):
    """List candles (paginated) or create one."""

    def get(self, request):
        try:
            category_id = _int_param(request, "category_id")
        except ValueError:
            return Response(
                error_body(ErrorKind.VALIDATION_FAILED, ["category_id must be an integer"]),
                status=status.HTTP_400_BAD_REQUEST,
            )
        result = providers.get_orchestrator().list_candles(category_id)
        if not result.ok:
            return to_response(result)
        return paginate(request, result.value, serializer_for(request.GET.get("view")))

    def post(self, request):
        """Create a candle in the category given by ``?category_id=``.

        Returns:
            Response: 201 with the full candle; 400 on validation errors or a
            missing category id; 404 when the category does not exist; 409
            for a duplicate name; 500 when a storage step fails.
        """
        try:
            category_id = _int_param(request, "category_id")
        except ValueError:
            category_id = None
        if category_id is None:
            return Response(
                error_body(ErrorKind.VALIDATION_FAILED, ["category_id query parameter is required"]),
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            dto = CandleIn.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().create_candle(dto.to_draft(), category_id)
        return to_response(result, serializer_for("full"), success_status=status.HTTP_201_CREATED)


class CandleDetailView(CandleThrottleMixin, APIView):
    """Read, replace or delete one candle."""

    def get(self, request, candle_id: int):
        result = providers.get_orchestrator().get_candle(candle_id)
        return to_response(result, serializer_for(request.GET.get("view")))

    def put(self, request, candle_id: int):
        try:
            dto = CandleIn.model_validate(request.data)
        except ValidationError as e:
            return validation_response(e)

        result = providers.get_orchestrator().update_candle(candle_id, dto.to_draft())
        return to_response(result, serializer_for("full"))

    def delete(self, request, candle_id: int):
        result = providers.get_orchestrator().delete_candle(candle_id)
        if result.ok:
            return Response({"detail": f"candle {candle_id} deleted"}, status=status.HTTP_200_OK)
        return to_response(result)


class CandleByNameView(CandleThrottleMixin, APIView):
    def get(self, request, name: str):
        result = providers.get_orchestrator().get_candle_by_name(name)
        return to_response(result, serializer_for(request.GET.get("view")))


class CategoryCandlesView(CandleThrottleMixin, APIView):
    def get(self, request, category_id: int):
        result = providers.get_orchestrator().candles_in_category(category_id)
        render = serializer_for(request.GET.get("view"))
        return to_response(result, lambda candles: [render(c) for c in candles])
