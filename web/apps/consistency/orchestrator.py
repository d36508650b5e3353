"""Per-request coordinator for the candle and order aggregates.

The orchestrator checks preconditions that span aggregates (a line item's
candle must exist, a sold candle cannot be deleted, a referenced customer
must exist), delegates each write to the matching aggregate manager and
returns a ``Result``. It never writes to storage itself.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from apps.catalog.domain import Candle, CandleDraft, CandleService
from apps.orders.domain import (
    Order,
    OrderFilter,
    OrderLine,
    OrderService,
    Receiver,
    validate_order,
)

from .result import AggregateError, ErrorKind, Result

logger = logging.getLogger("candles.consistency")

T = TypeVar("T")


def validate_candle(draft: CandleDraft) -> List[str]:
    """Structural checks for candle data. Returns a list of problems."""
    problems: List[str] = []
    if not draft.name or not draft.name.strip():
        problems.append("name is required")
    if draft.wick_diameter_cm is None or draft.wick_diameter_cm <= 0:
        problems.append("wick_diameter_cm must be positive")
    if draft.wax_grams is None or draft.wax_grams <= 0:
        problems.append("wax_grams must be positive")
    if draft.real_cost < 0 or draft.sell_price < 0:
        problems.append("prices must not be negative")
    return problems


class ConsistencyOrchestrator:
    """Coordinates aggregate operations and translates their outcomes.

    Args:
        candles: Aggregate manager for candles.
        orders: Aggregate manager for orders.
    """

    def __init__(self, candles: CandleService, orders: OrderService):
        self.candles = candles
        self.orders = orders

    def _run(self, operation: str, fn: Callable[[], T]) -> Result[T]:
        try:
            return Result.success(fn())
        except AggregateError as e:
            log = logger.error if e.kind is ErrorKind.INTERNAL_FAILURE else logger.info
            log("operation rejected", extra={"operation": operation, "kind": e.kind.value})
            return Result.from_error(e)

    @staticmethod
    def _found(value: Optional[T], what: str) -> T:
        if value is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"{what} not found")
        return value

    # ---- candles ----
    def list_candles(self, category_id: int | None = None) -> Result[List[Candle]]:
        return self._run("list_candles", lambda: self.candles.list_candles(category_id))

    def get_candle(self, candle_id: int) -> Result[Candle]:
        return self._run(
            "get_candle",
            lambda: self._found(self.candles.get_candle(candle_id), f"candle {candle_id}"),
        )

    def get_candle_by_name(self, name: str) -> Result[Candle]:
        return self._run(
            "get_candle_by_name",
            lambda: self._found(self.candles.get_candle_by_name(name), f"candle '{name}'"),
        )

    def candles_in_category(self, category_id: int) -> Result[List[Candle]]:
        return self._run("candles_in_category", lambda: self.candles.candles_in_category(category_id))

    def create_candle(self, draft: CandleDraft, category_id: int) -> Result[Candle]:
        problems = validate_candle(draft)
        if problems:
            return Result.failure(ErrorKind.VALIDATION_FAILED, *problems)
        return self._run("create_candle", lambda: self.candles.create_candle(draft, category_id))

    def update_candle(self, candle_id: int, draft: CandleDraft) -> Result[Candle]:
        problems = validate_candle(draft)
        if problems:
            return Result.failure(ErrorKind.VALIDATION_FAILED, *problems)
        return self._run("update_candle", lambda: self.candles.update_candle(candle_id, draft))

    def delete_candle(self, candle_id: int) -> Result[None]:
        def run():
            self._found(self.candles.get_candle(candle_id), f"candle {candle_id}")
            if self.orders.candle_in_use(candle_id):
                raise AggregateError(
                    ErrorKind.CONFLICT, f"candle {candle_id} is referenced by existing orders"
                )
            self.candles.delete_candle(candle_id)

        return self._run("delete_candle", run)

    # ---- orders ----
    def list_orders(self, flt: OrderFilter | None = None) -> Result[List[Order]]:
        return self._run("list_orders", lambda: self.orders.list_orders(flt))

    def get_order(self, order_id: int) -> Result[Order]:
        return self._run(
            "get_order",
            lambda: self._found(self.orders.get_order(order_id), f"order {order_id}"),
        )

    def get_order_lines(self, order_id: int) -> Result[List[OrderLine]]:
        return self._run("get_order_lines", lambda: self.orders.get_lines(order_id))

    def get_order_receiver(self, order_id: int) -> Result[Receiver]:
        return self._run(
            "get_order_receiver",
            lambda: self._found(self.orders.get_receiver(order_id), f"receiver for order {order_id}"),
        )

    def create_order(self, order: Order) -> Result[Order]:
        problems = self._order_problems(order)
        if problems:
            return Result.failure(ErrorKind.VALIDATION_FAILED, *problems)
        return self._run("create_order", lambda: self.orders.place_order(order))

    def update_order(self, order_id: int, order: Order) -> Result[Order]:
        if order.id != order_id:
            return Result.failure(
                ErrorKind.VALIDATION_FAILED,
                f"payload id {order.id} does not match order {order_id}",
            )
        if self.orders.get_order(order_id) is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"order {order_id} not found")
        problems = self._order_problems(order)
        if problems:
            return Result.failure(ErrorKind.VALIDATION_FAILED, *problems)
        return self._run("update_order", lambda: self.orders.replace_order(order_id, order))

    def delete_order(self, order_id: int) -> Result[None]:
        return self._run("delete_order", lambda: self.orders.delete_order(order_id))

    def add_order_line(self, order_id: int, line: OrderLine) -> Result[OrderLine]:
        problems = [] if line.quantity > 0 else ["quantity must be positive"]
        problems.extend(self._line_problems([line]))
        if problems:
            return Result.failure(ErrorKind.VALIDATION_FAILED, *problems)
        return self._run("add_order_line", lambda: self.orders.add_line(order_id, line))

    def change_order_line(self, order_id: int, candle_id: int, quantity: int) -> Result[OrderLine]:
        if quantity <= 0:
            return Result.failure(ErrorKind.VALIDATION_FAILED, "quantity must be positive")
        return self._run(
            "change_order_line", lambda: self.orders.change_line(order_id, candle_id, quantity)
        )

    def remove_order_line(self, order_id: int, candle_id: int) -> Result[None]:
        return self._run("remove_order_line", lambda: self.orders.remove_line(order_id, candle_id))

    # ---- preconditions ----
    def _order_problems(self, order: Order) -> List[str]:
        problems = validate_order(order)
        if order.customer_id is not None and not self.orders.customer_exists(order.customer_id):
            problems.append(f"customer {order.customer_id} does not exist")
        problems.extend(self._line_problems(order.lines))
        return problems

    def _line_problems(self, lines: List[OrderLine]) -> List[str]:
        problems = []
        for line in lines:
            if self.candles.get_candle(line.candle_id) is None:
                problems.append(f"candle {line.candle_id} does not exist")
        return problems
