"""Integration tests for ``OrderRepository`` through ``OrderService``."""

from decimal import Decimal

import pytest

from apps.consistency.result import AggregateError, ErrorKind
from apps.orders.domain import Order, OrderFilter, OrderLine, OrderService, PaymentType, Receiver
from apps.orders.models import CustomerModel, OrderDetailsModel, OrderModel, ReceiverModel
from apps.orders.repository import OrderRepository


@pytest.fixture
def service():
    return OrderService(OrderRepository())


def _order(candles, phone="+1-555-0100", quantities=(2, 1), **kw):
    return Order(
        id=None,
        receiver=Receiver(name="Ann", phone_number=phone, city="Oslo", street="Main", house="1"),
        lines=[OrderLine(candle_id=c.id, quantity=q) for c, q in zip(candles, quantities)],
        total_sum=kw.pop("total_sum", Decimal("37.50")),
        **kw,
    )


@pytest.mark.django_db
def test_place_order_round_trips(service, candle_rows):
    placed = service.place_order(_order(candle_rows, phone="  +1-555-0100 ", payment_type=PaymentType.ZD))

    row = OrderModel.objects.get(pk=placed.id)
    assert row.payment_type == "ZD"
    assert row.receiver.phone_number == "+1-555-0100"
    assert row.details.count() == 2

    loaded = service.get_order(placed.id)
    assert loaded.payment_type is PaymentType.ZD
    assert loaded.total_sum == Decimal("37.50")
    assert {l.candle_id: l.quantity for l in loaded.lines} == {candle_rows[0].id: 2, candle_rows[1].id: 1}


@pytest.mark.django_db
def test_repeat_count_is_stamped_per_phone(service, candle_rows):
    counts = [service.place_order(_order(candle_rows)).receiver.repeat_count for _ in range(3)]
    assert counts == [1, 2, 3]
    assert list(ReceiverModel.objects.order_by("id").values_list("repeat_count", flat=True)) == [1, 2, 3]


@pytest.mark.django_db
def test_place_order_rolls_back_when_line_insert_fails(service, candle_rows, monkeypatch):
    monkeypatch.setattr(OrderRepository, "create_line", lambda self, oid, line: None)

    with pytest.raises(AggregateError) as e:
        service.place_order(_order(candle_rows))
    assert e.value.kind is ErrorKind.INTERNAL_FAILURE
    assert not OrderModel.objects.exists()
    assert not ReceiverModel.objects.exists()


@pytest.mark.django_db
def test_replace_order_keeps_id_and_swaps_dependents(service, candle_rows):
    c1, _ = candle_rows
    placed = service.place_order(_order(candle_rows))

    service.replace_order(
        placed.id,
        Order(
            id=placed.id,
            receiver=Receiver(name="Bob", phone_number="+1-555-0100"),
            lines=[OrderLine(candle_id=c1.id, quantity=5)],
            total_sum=Decimal("62.50"),
            payment_type=PaymentType.CARD,
        ),
    )

    details = list(OrderDetailsModel.objects.filter(order_id=placed.id).values_list("candle_id", "quantity"))
    assert details == [(c1.id, 5)]
    assert ReceiverModel.objects.filter(order_id=placed.id).count() == 1
    receiver = ReceiverModel.objects.get(order_id=placed.id)
    assert receiver.name == "Bob"
    assert receiver.repeat_count == 1
    assert OrderModel.objects.get(pk=placed.id).payment_type == "Card"


@pytest.mark.django_db
def test_delete_order_leaves_no_dependents(service, candle_rows):
    placed = service.place_order(_order(candle_rows))
    service.delete_order(placed.id)

    assert not OrderModel.objects.filter(pk=placed.id).exists()
    assert not ReceiverModel.objects.filter(order_id=placed.id).exists()
    assert not OrderDetailsModel.objects.filter(order_id=placed.id).exists()


@pytest.mark.django_db
def test_list_filters_and_customer_lookup(service, candle_rows):
    customer = CustomerModel.objects.create(email="ann@example.com")
    a = service.place_order(_order(candle_rows, phone="+1", total_sum=Decimal("10"), customer_id=customer.id))
    b = service.place_order(_order(candle_rows, phone="+2", total_sum=Decimal("90")))

    assert service.customer_exists(customer.id)
    assert not service.customer_exists(customer.id + 1)
    assert [o.id for o in service.list_orders(OrderFilter(customer_id=customer.id))] == [a.id]
    assert [o.id for o in service.list_orders(OrderFilter(phone_number="+2"))] == [b.id]
    assert [o.id for o in service.list_orders(OrderFilter(min_sum=Decimal("50")))] == [b.id]
    assert service.candle_in_use(candle_rows[0].id)
