"""Unit tests for the order aggregate manager against the in-memory store.

The in-memory store never cascades, so receiver and line cleanup observed
here is done by ``OrderService`` itself.
"""

from decimal import Decimal

import pytest

from apps.consistency.result import AggregateError, ErrorKind
from apps.orders.adapters import InMemoryOrderStore
from apps.orders.domain import (
    Order,
    OrderFilter,
    OrderLine,
    OrderService,
    PaymentType,
    Receiver,
    ReceiverRepeatCounter,
)


def _order(phone="+1-555-0100", lines=((1, 2), (2, 1)), **kw):
    return Order(
        id=kw.pop("id", None),
        receiver=Receiver(name="Ann", phone_number=phone, city="Oslo"),
        lines=[OrderLine(candle_id=c, quantity=q) for c, q in lines],
        total_sum=kw.pop("total_sum", Decimal("25.00")),
        **kw,
    )


def _assert_consistent(store):
    """No receiver or line outlives its order; every order has one receiver."""
    order_ids = set(store.orders)
    assert {r.order_id for r in store.receivers.values()} == order_ids
    assert len(store.receivers) == len(order_ids)
    assert {oid for (oid, _) in store.lines} <= order_ids


def test_place_order_writes_order_receiver_and_lines(order_store, order_service):
    order = order_service.place_order(_order())

    assert order.id is not None
    assert order.receiver.order_id == order.id
    assert order.receiver.repeat_count == 1
    assert order_store.get_lines(order.id) == [OrderLine(1, 2), OrderLine(2, 1)]
    _assert_consistent(order_store)


def test_repeat_count_increases_per_trimmed_phone(order_store, order_service):
    phones = ["+1-555-0100", " +1-555-0100", "+1-555-0100  ", "+1-555-0199", "+1-555-0100"]
    counts = [order_service.place_order(_order(phone=p)).receiver.repeat_count for p in phones]

    assert counts == [1, 2, 3, 1, 4]
    assert all(r.phone_number.strip() == r.phone_number for r in order_store.receivers.values())


def test_repeat_counter_counts_existing_receivers(order_store, order_service):
    counter = ReceiverRepeatCounter(order_store)
    assert counter.next_repeat_count("+47 1") == 1
    order_service.place_order(_order(phone="+47 1"))
    assert counter.next_repeat_count("  +47 1 ") == 2


@pytest.mark.parametrize("step", ["create_order", "create_receiver", "create_line"])
def test_place_order_rolls_back_on_any_failed_step(step):
    store = InMemoryOrderStore(fail_on={step})

    with pytest.raises(AggregateError) as e:
        OrderService(store).place_order(_order())
    assert e.value.kind is ErrorKind.INTERNAL_FAILURE
    assert store.orders == {} and store.receivers == {} and store.lines == {}


def test_failed_place_order_leaves_the_argument_untouched():
    store = InMemoryOrderStore(fail_on={"create_line"})
    order = _order(phone="  +1-555-0100 ")

    with pytest.raises(AggregateError):
        OrderService(store).place_order(order)
    assert order.id is None
    assert order.order_date is None
    assert order.receiver.id is None
    assert order.receiver.order_id is None
    assert order.receiver.repeat_count == 1
    assert order.receiver.phone_number == "  +1-555-0100 "


def test_place_order_returns_a_new_order(order_service):
    order = _order()
    placed = order_service.place_order(order)
    assert placed is not order
    assert placed.id is not None and order.id is None


def test_place_order_without_receiver_is_rejected(order_store, order_service):
    with pytest.raises(AggregateError) as e:
        order_service.place_order(Order(id=None, receiver=None))
    assert e.value.kind is ErrorKind.VALIDATION_FAILED
    assert order_store.orders == {}


def test_replace_order_leaves_exactly_the_new_lines(order_store, order_service):
    placed = order_service.place_order(_order())
    order_service.place_order(_order())  # second order to the same phone

    updated = order_service.replace_order(
        placed.id,
        _order(id=placed.id, lines=[(1, 5)], payment_type=PaymentType.CARD, total_sum=Decimal("60")),
    )

    assert updated.id == placed.id
    assert order_store.get_lines(placed.id) == [OrderLine(1, 5)]
    stored = order_store.get_order(placed.id)
    assert stored.payment_type is PaymentType.CARD
    assert stored.total_sum == Decimal("60")
    # the receiver keeps the count stamped at creation
    assert stored.receiver.repeat_count == 1
    _assert_consistent(order_store)


def test_replace_order_rejections(order_store, order_service):
    placed = order_service.place_order(_order())
    before = (dict(order_store.orders), dict(order_store.receivers), dict(order_store.lines))

    with pytest.raises(AggregateError) as e:
        order_service.replace_order(placed.id, _order(id=placed.id + 100))
    assert e.value.kind is ErrorKind.VALIDATION_FAILED

    with pytest.raises(AggregateError) as e:
        order_service.replace_order(placed.id, _order())
    assert e.value.kind is ErrorKind.VALIDATION_FAILED

    with pytest.raises(AggregateError) as e:
        order_service.replace_order(999, _order(id=999))
    assert e.value.kind is ErrorKind.NOT_FOUND

    assert (order_store.orders, order_store.receivers, order_store.lines) == before


@pytest.mark.parametrize("step", ["delete_lines", "delete_receiver", "update_order", "create_line"])
def test_replace_order_failure_restores_previous_state(order_store, order_service, step):
    placed = order_service.place_order(_order())
    before_lines = order_store.get_lines(placed.id)
    before_receiver = order_store.get_receiver_by_order(placed.id)
    order_store.fail_on.add(step)

    with pytest.raises(AggregateError) as e:
        order_service.replace_order(placed.id, _order(id=placed.id, lines=[(3, 1)]))
    assert e.value.kind is ErrorKind.INTERNAL_FAILURE
    assert order_store.get_lines(placed.id) == before_lines
    assert order_store.get_receiver_by_order(placed.id) == before_receiver


def test_delete_order_removes_receiver_and_lines(order_store, order_service):
    keep = order_service.place_order(_order(phone="+1"))
    gone = order_service.place_order(_order(phone="+2"))

    order_service.delete_order(gone.id)

    assert order_store.get_order(gone.id) is None
    assert order_store.get_receiver_by_order(gone.id) is None
    assert order_store.get_lines(gone.id) == []
    assert order_store.get_order(keep.id) is not None
    _assert_consistent(order_store)


def test_delete_unknown_order_is_not_found_every_time(order_store, order_service):
    placed = order_service.place_order(_order())
    order_service.delete_order(placed.id)

    for _ in range(2):
        with pytest.raises(AggregateError) as e:
            order_service.delete_order(placed.id)
        assert e.value.kind is ErrorKind.NOT_FOUND


def test_delete_order_failure_keeps_everything(order_store, order_service):
    placed = order_service.place_order(_order())
    order_store.fail_on.add("delete_lines")

    with pytest.raises(AggregateError):
        order_service.delete_order(placed.id)
    assert order_store.get_order(placed.id).receiver is not None
    assert len(order_store.get_lines(placed.id)) == 2


def test_get_lines_of_unknown_order_is_empty(order_service):
    assert order_service.get_lines(42) == []


def test_line_item_operations(order_store, order_service):
    placed = order_service.place_order(_order(lines=[(1, 2)]))

    order_service.add_line(placed.id, OrderLine(2, 3))
    with pytest.raises(AggregateError) as e:
        order_service.add_line(placed.id, OrderLine(2, 1))
    assert e.value.kind is ErrorKind.CONFLICT

    order_service.change_line(placed.id, 1, 7)
    assert order_store.get_lines(placed.id) == [OrderLine(1, 7), OrderLine(2, 3)]

    order_service.remove_line(placed.id, 1)
    order_service.remove_line(placed.id, 2)
    assert order_store.get_lines(placed.id) == []
    # an order may end up with no lines but keeps its receiver
    assert order_store.get_receiver_by_order(placed.id) is not None

    with pytest.raises(AggregateError) as e:
        order_service.change_line(placed.id, 1, 2)
    assert e.value.kind is ErrorKind.NOT_FOUND
    with pytest.raises(AggregateError) as e:
        order_service.remove_line(999, 1)
    assert e.value.kind is ErrorKind.NOT_FOUND


def test_list_orders_filters(order_store, order_service):
    a = order_service.place_order(_order(phone="+1", total_sum=Decimal("10"), customer_id=7))
    b = order_service.place_order(_order(phone="+2", total_sum=Decimal("50")))

    assert [o.id for o in order_service.list_orders()] == [a.id, b.id]
    assert [o.id for o in order_service.list_orders(OrderFilter(phone_number=" +2"))] == [b.id]
    assert [o.id for o in order_service.list_orders(OrderFilter(customer_id=7))] == [a.id]
    assert [o.id for o in order_service.list_orders(OrderFilter(min_sum=Decimal("20")))] == [b.id]
    assert [o.id for o in order_service.list_orders(OrderFilter(max_sum=Decimal("20")))] == [a.id]
