from django.db import models
from django.utils import timezone


class CustomerModel(models.Model):
    name = models.CharField(max_length=200, blank=True, default="")
    email = models.EmailField(unique=True)

    class Meta:
        db_table = "customers"

    def __str__(self):
        return self.email


class OrderModel(models.Model):
    class PaymentType(models.TextChoices):
        CASH = "Cash"
        CARD = "Card"
        ZD = "ZD"

    order_date = models.DateTimeField(default=timezone.now)
    promo_code = models.CharField(max_length=50, blank=True, default="")
    total_sum = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_type = models.CharField(
        max_length=8, choices=PaymentType.choices, default=PaymentType.CASH
    )
    is_paid = models.BooleanField(default=False)
    comments = models.TextField(blank=True, default="")
    customer = models.ForeignKey(
        CustomerModel, null=True, blank=True, on_delete=models.SET_NULL, related_name="orders"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "orders"
        ordering = ["-order_date", "-id"]


class ReceiverModel(models.Model):
    order = models.OneToOneField(OrderModel, on_delete=models.CASCADE, related_name="receiver")
    name = models.CharField(max_length=200)
    # Stored trimmed; the repeat counter matches on equality
    phone_number = models.CharField(max_length=32, db_index=True)
    city = models.CharField(max_length=100, blank=True, default="")
    street = models.CharField(max_length=200, blank=True, default="")
    house = models.CharField(max_length=20, blank=True, default="")
    apartment = models.CharField(max_length=20, blank=True, default="")
    repeat_count = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "receivers"


class OrderDetailsModel(models.Model):
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="details")
    # Candles that were sold cannot be deleted out from under an order
    candle = models.ForeignKey(
        "catalog.CandleModel", on_delete=models.PROTECT, related_name="order_details"
    )
    quantity = models.PositiveIntegerField()

    class Meta:
        db_table = "order_details"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["order", "candle"], name="uniq_order_details_candle"),
        ]


class IdempotencyKey(models.Model):
    key = models.CharField(max_length=128, unique=True)
    request_hash = models.CharField(max_length=64)
    response_status = models.PositiveSmallIntegerField(default=0)
    response_body = models.JSONField(default=dict)
    # Plain id, not a FK: the record outlives a later deletion of the order
    order_id = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "idempotency_keys"
