"""Repository layer for persisting the order aggregate.

``OrderRepository`` implements ``OrderStorePort`` with the Django ORM. It
keeps a thin interface returning domain dataclasses and primitive values so
the domain layer is not coupled to Django ORM details.
"""

from typing import List, Optional

from apps.consistency.storage import AtomicMixin, guarded_write

from .domain import Order, OrderFilter, OrderLine, PaymentType, Receiver, normalize_phone
from .models import CustomerModel, OrderDetailsModel, OrderModel, ReceiverModel


def _receiver(obj: ReceiverModel) -> Receiver:
    return Receiver(
        id=obj.id,
        order_id=obj.order_id,
        name=obj.name,
        phone_number=obj.phone_number,
        city=obj.city,
        street=obj.street,
        house=obj.house,
        apartment=obj.apartment,
        repeat_count=obj.repeat_count,
    )


def _order(obj: OrderModel) -> Order:
    try:
        receiver = _receiver(obj.receiver)
    except ReceiverModel.DoesNotExist:
        receiver = None
    return Order(
        id=obj.id,
        receiver=receiver,
        lines=[OrderLine(candle_id=d.candle_id, quantity=d.quantity) for d in obj.details.all()],
        order_date=obj.order_date,
        promo_code=obj.promo_code,
        total_sum=obj.total_sum,
        payment_type=PaymentType(obj.payment_type),
        is_paid=obj.is_paid,
        comments=obj.comments,
        customer_id=obj.customer_id,
    )


def _order_fields(order: Order) -> dict:
    fields = {
        "promo_code": order.promo_code,
        "total_sum": order.total_sum,
        "payment_type": PaymentType.parse(order.payment_type).value,
        "is_paid": order.is_paid,
        "comments": order.comments,
        "customer_id": order.customer_id,
    }
    if order.order_date is not None:
        fields["order_date"] = order.order_date
    return fields


class OrderRepository(AtomicMixin):
    """Django ORM implementation of ``OrderStorePort``."""

    def _orders(self):
        return OrderModel.objects.select_related("receiver").prefetch_related("details")

    def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        if for_update:
            # Lock only the order row; outer joins cannot be locked on every backend.
            locked = (
                OrderModel.objects.select_for_update()
                .filter(pk=order_id)
                .values_list("id", flat=True)
                .first()
            )
            if locked is None:
                return None
        obj = self._orders().filter(pk=order_id).first()
        return _order(obj) if obj else None

    def list_orders(self, flt: OrderFilter) -> List[Order]:
        qs = self._orders()
        if flt.customer_id is not None:
            qs = qs.filter(customer_id=flt.customer_id)
        if flt.phone_number is not None:
            qs = qs.filter(receiver__phone_number=normalize_phone(flt.phone_number))
        if flt.order_date is not None:
            qs = qs.filter(order_date__date=flt.order_date)
        if flt.min_sum is not None:
            qs = qs.filter(total_sum__gte=flt.min_sum)
        if flt.max_sum is not None:
            qs = qs.filter(total_sum__lte=flt.max_sum)
        return [_order(o) for o in qs]

    def get_receiver_by_order(self, order_id: int) -> Optional[Receiver]:
        obj = ReceiverModel.objects.filter(order_id=order_id).first()
        return _receiver(obj) if obj else None

    def count_receivers_by_phone(self, phone_number: str) -> int:
        return ReceiverModel.objects.filter(phone_number=phone_number).count()

    def get_lines(self, order_id: int) -> List[OrderLine]:
        return [
            OrderLine(candle_id=d.candle_id, quantity=d.quantity)
            for d in OrderDetailsModel.objects.filter(order_id=order_id).order_by("id")
        ]

    def candle_in_use(self, candle_id: int) -> bool:
        return OrderDetailsModel.objects.filter(candle_id=candle_id).exists()

    def customer_exists(self, customer_id: int) -> bool:
        return CustomerModel.objects.filter(pk=customer_id).exists()

    @guarded_write(None)
    def create_order(self, order: Order) -> Optional[int]:
        return OrderModel.objects.create(**_order_fields(order)).id

    @guarded_write(False)
    def update_order(self, order: Order) -> bool:
        return OrderModel.objects.filter(pk=order.id).update(**_order_fields(order)) == 1

    @guarded_write(False)
    def delete_order(self, order_id: int) -> bool:
        deleted, _ = OrderModel.objects.filter(pk=order_id).delete()
        return deleted > 0

    @guarded_write(None)
    def create_receiver(self, receiver: Receiver) -> Optional[int]:
        obj = ReceiverModel.objects.create(
            order_id=receiver.order_id,
            name=receiver.name,
            phone_number=receiver.phone_number,
            city=receiver.city,
            street=receiver.street,
            house=receiver.house,
            apartment=receiver.apartment,
            repeat_count=receiver.repeat_count,
        )
        return obj.id

    @guarded_write(False)
    def delete_receiver(self, receiver_id: int) -> bool:
        deleted, _ = ReceiverModel.objects.filter(pk=receiver_id).delete()
        return deleted > 0

    @guarded_write(None)
    def create_line(self, order_id: int, line: OrderLine) -> Optional[int]:
        obj = OrderDetailsModel.objects.create(
            order_id=order_id, candle_id=line.candle_id, quantity=line.quantity
        )
        return obj.id

    @guarded_write(False)
    def update_line(self, order_id: int, line: OrderLine) -> bool:
        updated = OrderDetailsModel.objects.filter(
            order_id=order_id, candle_id=line.candle_id
        ).update(quantity=line.quantity)
        return updated == 1

    @guarded_write(False)
    def delete_line(self, order_id: int, candle_id: int) -> bool:
        deleted, _ = OrderDetailsModel.objects.filter(order_id=order_id, candle_id=candle_id).delete()
        return deleted > 0

    @guarded_write(False)
    def delete_lines(self, order_id: int) -> bool:
        OrderDetailsModel.objects.filter(order_id=order_id).delete()
        return True
