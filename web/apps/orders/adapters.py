"""In-process store for the orders domain port.

``InMemoryOrderStore`` implements ``OrderStorePort`` without any database.
It is intended for unit tests where deterministic behaviour is useful: it
never cascades deletes, ``atomic()`` restores a snapshot when the block
raises, and individual writes can be forced to fail through ``fail_on``.
"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .domain import Order, OrderFilter, OrderLine, Receiver, normalize_phone


class InMemoryOrderStore:
    """Dictionary-backed implementation of ``OrderStorePort``.

    Args:
        fail_on: Names of write methods that should report failure.
        customers: Identifiers of customers that exist.
    """

    def __init__(self, fail_on: Optional[Set[str]] = None, customers: Optional[Set[int]] = None):
        self.fail_on: Set[str] = set(fail_on or ())
        self.customers: Set[int] = set(customers or ())
        self.orders: Dict[int, Order] = {}
        self.receivers: Dict[int, Receiver] = {}
        self.lines: Dict[Tuple[int, int], OrderLine] = {}
        self._next_id = 1

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = copy.deepcopy((self.orders, self.receivers, self.lines, self._next_id))
        try:
            yield
        except BaseException:
            self.orders, self.receivers, self.lines, self._next_id = snapshot
            raise

    # ---- reads ----
    def _hydrate(self, order: Order) -> Order:
        out = copy.deepcopy(order)
        out.receiver = self.get_receiver_by_order(order.id)
        out.lines = self.get_lines(order.id)
        return out

    def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        order = self.orders.get(order_id)
        return self._hydrate(order) if order else None

    def list_orders(self, flt: OrderFilter) -> List[Order]:
        out = []
        for order in sorted(self.orders.values(), key=lambda o: o.id):
            full = self._hydrate(order)
            if flt.customer_id is not None and full.customer_id != flt.customer_id:
                continue
            if flt.phone_number is not None and (
                full.receiver is None
                or full.receiver.phone_number != normalize_phone(flt.phone_number)
            ):
                continue
            if flt.order_date is not None and (
                full.order_date is None or full.order_date.date() != flt.order_date
            ):
                continue
            if flt.min_sum is not None and full.total_sum < flt.min_sum:
                continue
            if flt.max_sum is not None and full.total_sum > flt.max_sum:
                continue
            out.append(full)
        return out

    def get_receiver_by_order(self, order_id: int) -> Optional[Receiver]:
        for rec in self.receivers.values():
            if rec.order_id == order_id:
                return copy.deepcopy(rec)
        return None

    def count_receivers_by_phone(self, phone_number: str) -> int:
        return sum(1 for r in self.receivers.values() if r.phone_number == phone_number)

    def get_lines(self, order_id: int) -> List[OrderLine]:
        return [line for (oid, _), line in sorted(self.lines.items()) if oid == order_id]

    def candle_in_use(self, candle_id: int) -> bool:
        return any(cid == candle_id for (_, cid) in self.lines)

    def customer_exists(self, customer_id: int) -> bool:
        return customer_id in self.customers

    # ---- writes ----
    def create_order(self, order: Order) -> Optional[int]:
        if "create_order" in self.fail_on:
            return None
        stored = copy.deepcopy(order)
        stored.id = self._new_id()
        stored.receiver, stored.lines = None, []
        self.orders[stored.id] = stored
        return stored.id

    def update_order(self, order: Order) -> bool:
        if "update_order" in self.fail_on or order.id not in self.orders:
            return False
        stored = copy.deepcopy(order)
        stored.receiver, stored.lines = None, []
        self.orders[order.id] = stored
        return True

    def delete_order(self, order_id: int) -> bool:
        if "delete_order" in self.fail_on:
            return False
        return self.orders.pop(order_id, None) is not None

    def create_receiver(self, receiver: Receiver) -> Optional[int]:
        if "create_receiver" in self.fail_on:
            return None
        # one receiver per order
        if self.get_receiver_by_order(receiver.order_id) is not None:
            return None
        stored = copy.deepcopy(receiver)
        stored.id = self._new_id()
        self.receivers[stored.id] = stored
        return stored.id

    def delete_receiver(self, receiver_id: int) -> bool:
        if "delete_receiver" in self.fail_on:
            return False
        return self.receivers.pop(receiver_id, None) is not None

    def create_line(self, order_id: int, line: OrderLine) -> Optional[int]:
        if "create_line" in self.fail_on or (order_id, line.candle_id) in self.lines:
            return None
        self.lines[(order_id, line.candle_id)] = line
        return self._new_id()

    def update_line(self, order_id: int, line: OrderLine) -> bool:
        key = (order_id, line.candle_id)
        if "update_line" in self.fail_on or key not in self.lines:
            return False
        self.lines[key] = line
        return True

    def delete_line(self, order_id: int, candle_id: int) -> bool:
        if "delete_line" in self.fail_on:
            return False
        return self.lines.pop((order_id, candle_id), None) is not None

    def delete_lines(self, order_id: int) -> bool:
        if "delete_lines" in self.fail_on:
            return False
        for key in [k for k in self.lines if k[0] == order_id]:
            del self.lines[key]
        return True
