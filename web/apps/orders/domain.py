"""Domain models, ports and aggregate service for orders.

This module contains the dataclasses used as DTOs for the Order aggregate
(order, receiver, line items), the storage port the aggregate relies on,
the repeat-recipient counter, and the ``OrderService`` that sequences every
write touching the aggregate.
"""

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Protocol

from apps.consistency.result import AggregateError, ErrorKind

logger = logging.getLogger("candles.orders")


# ---- Enums ----
class PaymentType(str, Enum):
    """How an order is paid for. The set is closed."""

    CASH = "Cash"
    CARD = "Card"
    ZD = "ZD"

    @classmethod
    def parse(cls, raw) -> "PaymentType":
        """Map a member, a name/value string or a legacy integer code.

        Legacy clients send 0, 1 or 2. Anything outside the closed set is
        rejected instead of silently falling back to cash.

        Raises:
            ValueError: With code 'UNKNOWN_PAYMENT_TYPE'.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            members = list(cls)
            if 0 <= raw < len(members):
                return members[raw]
        if isinstance(raw, str):
            wanted = raw.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        raise ValueError("UNKNOWN_PAYMENT_TYPE")


# ---- Entities / DTOs ----
@dataclass
class Receiver:
    """Recipient of an order.

    Attributes:
        repeat_count: "This is the Nth order to this phone number",
            stamped once when the order is created.
    """

    name: str
    phone_number: str
    city: str = ""
    street: str = ""
    house: str = ""
    apartment: str = ""
    repeat_count: int = 1
    order_id: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class OrderLine:
    """A single line item: a candle and how many of it."""

    candle_id: int
    quantity: int


@dataclass
class Order:
    """Container for the Order aggregate.

    Attributes:
        id: Persistent identifier, or None if not yet saved.
        receiver: The owned receiver; required for persistence.
        lines: Line items; order is irrelevant, one line per candle.
        total_sum: Amount charged, as sent by the client.
    """

    id: int | None
    receiver: Receiver | None
    lines: List[OrderLine] = field(default_factory=list)
    order_date: datetime | None = None
    promo_code: str = ""
    total_sum: Decimal = Decimal("0")
    payment_type: PaymentType = PaymentType.CASH
    is_paid: bool = False
    comments: str = ""
    customer_id: int | None = None


@dataclass(frozen=True)
class OrderFilter:
    """Simple filters for listing orders. Unset fields do not filter."""

    customer_id: int | None = None
    phone_number: str | None = None
    order_date: date | None = None
    min_sum: Decimal | None = None
    max_sum: Decimal | None = None


def normalize_phone(phone: str) -> str:
    """Normalize a phone number for storage and matching (trim only)."""
    return (phone or "").strip()


def validate_order(order: Order) -> List[str]:
    """Structural checks an order must pass before it reaches the service.

    Returns:
        A list of problems; empty when the order is acceptable.
    """
    problems: List[str] = []
    if order.receiver is None:
        problems.append("receiver is required")
    elif not normalize_phone(order.receiver.phone_number):
        problems.append("receiver.phone_number is required")
    if order.total_sum is not None and order.total_sum < 0:
        problems.append("total_sum must not be negative")

    seen = set()
    for line in order.lines:
        if line.quantity <= 0:
            problems.append(f"quantity for candle {line.candle_id} must be positive")
        if line.candle_id in seen:
            problems.append(f"candle {line.candle_id} appears in more than one line")
        seen.add(line.candle_id)
    return problems


# ---- Ports (DIP) ----
class OrderStorePort(Protocol):
    """Storage operations the order aggregate relies on.

    Writes report failure with ``None`` (creates) or ``False`` (updates and
    deletes). ``get_order(..., for_update=True)`` locks the row for the
    remainder of the surrounding ``atomic()`` block where the backend can.
    """

    def atomic(self) -> AbstractContextManager: ...

    def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]: ...

    def list_orders(self, flt: OrderFilter) -> List[Order]: ...

    def get_receiver_by_order(self, order_id: int) -> Optional[Receiver]: ...

    def count_receivers_by_phone(self, phone_number: str) -> int: ...

    def get_lines(self, order_id: int) -> List[OrderLine]: ...

    def candle_in_use(self, candle_id: int) -> bool: ...

    def customer_exists(self, customer_id: int) -> bool: ...

    def create_order(self, order: Order) -> Optional[int]: ...

    def update_order(self, order: Order) -> bool: ...

    def delete_order(self, order_id: int) -> bool: ...

    def create_receiver(self, receiver: Receiver) -> Optional[int]: ...

    def delete_receiver(self, receiver_id: int) -> bool: ...

    def create_line(self, order_id: int, line: OrderLine) -> Optional[int]: ...

    def update_line(self, order_id: int, line: OrderLine) -> bool: ...

    def delete_line(self, order_id: int, candle_id: int) -> bool: ...

    def delete_lines(self, order_id: int) -> bool: ...


# ---- Repeat-recipient counter ----
class ReceiverRepeatCounter:
    """Computes the repeat count stamped on a new receiver.

    The count is a snapshot: existing receivers with the same trimmed phone
    number, plus one. It is never recomputed afterwards.
    """

    def __init__(self, store: OrderStorePort):
        self.store = store

    def next_repeat_count(self, phone_number: str) -> int:
        return self.store.count_receivers_by_phone(normalize_phone(phone_number)) + 1


def _storage_failed(step: str, order_id: int | None = None) -> AggregateError:
    logger.error("storage step failed", extra={"step": step, "order_id": order_id})
    return AggregateError(ErrorKind.INTERNAL_FAILURE, f"storage step '{step}' did not commit")


# ---- Domain service ----
class OrderService:
    """Aggregate manager for Order + Receiver + line items.

    Every write runs inside ``store.atomic()``; a failed step raises and the
    steps already taken in the same call are rolled back with it.
    """

    def __init__(self, store: OrderStorePort, counter: ReceiverRepeatCounter | None = None):
        self.store = store
        self.counter = counter or ReceiverRepeatCounter(store)

    # reads
    def list_orders(self, flt: OrderFilter | None = None) -> List[Order]:
        return self.store.list_orders(flt or OrderFilter())

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.store.get_order(order_id)

    def get_receiver(self, order_id: int) -> Optional[Receiver]:
        return self.store.get_receiver_by_order(order_id)

    def get_lines(self, order_id: int) -> List[OrderLine]:
        """Return the line items of an order; empty for an unknown order."""
        return self.store.get_lines(order_id)

    def candle_in_use(self, candle_id: int) -> bool:
        return self.store.candle_in_use(candle_id)

    def customer_exists(self, customer_id: int) -> bool:
        return self.store.customer_exists(customer_id)

    # writes
    def place_order(self, order: Order) -> Order:
        """Persist a new order with its receiver and line items.

        The receiver's repeat count is computed before anything is written.

        Args:
            order: Order with ``id`` None and a receiver attached.

        Returns:
            A new Order with identifiers and repeat count set; the argument
            itself is not modified.

        Raises:
            AggregateError: VALIDATION_FAILED when no receiver is attached,
                INTERNAL_FAILURE when a write fails.
        """
        if order.receiver is None:
            raise AggregateError(ErrorKind.VALIDATION_FAILED, "receiver is required")

        # Work on a copy; the caller's order is left untouched if we roll back.
        receiver = replace(order.receiver, id=None, phone_number=normalize_phone(order.receiver.phone_number))
        placed = replace(
            order,
            id=None,
            receiver=receiver,
            lines=list(order.lines),
            order_date=order.order_date or datetime.now(timezone.utc),
        )

        with self.store.atomic():
            receiver.repeat_count = self.counter.next_repeat_count(receiver.phone_number)

            order_id = self.store.create_order(placed)
            if order_id is None:
                raise _storage_failed("create_order")
            placed.id = order_id

            self._write_dependents(placed)

        logger.info(
            "order placed",
            extra={"order_id": placed.id, "lines": len(placed.lines), "repeat_count": receiver.repeat_count},
        )
        return placed

    def replace_order(self, order_id: int, order: Order) -> Order:
        """Replace an order's fields, receiver and line items.

        Sequence: delete every line, delete the receiver, then write the
        replacement order (same id) with a fresh receiver and line set. The
        new receiver keeps the repeat count captured at creation.

        Raises:
            AggregateError: VALIDATION_FAILED when the payload id is missing or
                differs from ``order_id`` or no receiver is attached; NOT_FOUND
                for an unknown order; INTERNAL_FAILURE when a write fails.
        """
        if order.id != order_id:
            raise AggregateError(
                ErrorKind.VALIDATION_FAILED,
                f"payload id {order.id} does not match order {order_id}",
            )
        if order.receiver is None:
            raise AggregateError(ErrorKind.VALIDATION_FAILED, "receiver is required")
        if self.store.get_order(order_id) is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"order {order_id} not found")

        with self.store.atomic():
            # Lock the order row; concurrent replacements serialize here.
            current = self.store.get_order(order_id, for_update=True)
            if current is None:
                raise AggregateError(ErrorKind.NOT_FOUND, f"order {order_id} not found")

            # 1) Drop the previous line items
            if not self.store.delete_lines(order_id):
                raise _storage_failed("delete_lines", order_id)

            # 2) Drop the previous receiver
            previous = self.store.get_receiver_by_order(order_id)
            repeat_count = 1
            if previous is not None:
                repeat_count = previous.repeat_count
                if not self.store.delete_receiver(previous.id):
                    raise _storage_failed("delete_receiver", order_id)

            # 3) Build the replacement value
            replacement = replace(
                order,
                id=order_id,
                order_date=order.order_date or current.order_date,
                receiver=replace(
                    order.receiver,
                    id=None,
                    order_id=order_id,
                    phone_number=normalize_phone(order.receiver.phone_number),
                    repeat_count=repeat_count,
                ),
                lines=list(order.lines),
            )

            # 4) Persist it
            if not self.store.update_order(replacement):
                raise _storage_failed("update_order", order_id)
            self._write_dependents(replacement)

        logger.info("order replaced", extra={"order_id": order_id, "lines": len(replacement.lines)})
        return replacement

    def delete_order(self, order_id: int) -> None:
        """Delete an order, then its receiver, then its line items.

        The store is not assumed to cascade; dependents already gone are
        skipped without error.

        Raises:
            AggregateError: NOT_FOUND for an unknown order, INTERNAL_FAILURE
                when a write fails.
        """
        self._require(order_id)

        with self.store.atomic():
            if not self.store.delete_order(order_id):
                raise _storage_failed("delete_order", order_id)

            receiver = self.store.get_receiver_by_order(order_id)
            if receiver is not None and not self.store.delete_receiver(receiver.id):
                raise _storage_failed("delete_receiver", order_id)

            if not self.store.delete_lines(order_id):
                raise _storage_failed("delete_lines", order_id)

        logger.info("order deleted", extra={"order_id": order_id})

    def add_line(self, order_id: int, line: OrderLine) -> OrderLine:
        """Add a line for a candle not yet on the order.

        Raises:
            AggregateError: NOT_FOUND for an unknown order, CONFLICT when the
                candle already has a line, INTERNAL_FAILURE on write failure.
        """
        self._require(order_id)
        if any(l.candle_id == line.candle_id for l in self.store.get_lines(order_id)):
            raise AggregateError(
                ErrorKind.CONFLICT, f"candle {line.candle_id} is already on order {order_id}"
            )
        with self.store.atomic():
            if self.store.create_line(order_id, line) is None:
                raise _storage_failed("create_line", order_id)
        return line

    def change_line(self, order_id: int, candle_id: int, quantity: int) -> OrderLine:
        """Set the quantity of an existing line.

        Raises:
            AggregateError: NOT_FOUND when the order or the line is missing,
                INTERNAL_FAILURE on write failure.
        """
        self._require_line(order_id, candle_id)
        line = OrderLine(candle_id=candle_id, quantity=quantity)
        with self.store.atomic():
            if not self.store.update_line(order_id, line):
                raise _storage_failed("update_line", order_id)
        return line

    def remove_line(self, order_id: int, candle_id: int) -> None:
        """Remove exactly one line. The order may be left without lines.

        Raises:
            AggregateError: NOT_FOUND when the order or the line is missing,
                INTERNAL_FAILURE on write failure.
        """
        self._require_line(order_id, candle_id)
        with self.store.atomic():
            if not self.store.delete_line(order_id, candle_id):
                raise _storage_failed("delete_line", order_id)

    # helpers
    def _require(self, order_id: int) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"order {order_id} not found")
        return order

    def _require_line(self, order_id: int, candle_id: int) -> None:
        self._require(order_id)
        if not any(l.candle_id == candle_id for l in self.store.get_lines(order_id)):
            raise AggregateError(
                ErrorKind.NOT_FOUND, f"candle {candle_id} is not on order {order_id}"
            )

    def _write_dependents(self, order: Order) -> None:
        order.receiver.order_id = order.id
        receiver_id = self.store.create_receiver(order.receiver)
        if receiver_id is None:
            raise _storage_failed("create_receiver", order.id)
        order.receiver.id = receiver_id

        for line in order.lines:
            if self.store.create_line(order.id, line) is None:
                raise _storage_failed("create_line", order.id)
