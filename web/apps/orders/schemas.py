"""Pydantic schemas for orders.

This module exposes the request/validation schemas used by the orders API
and the response schemas that render the Order aggregate.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

from .domain import Order, OrderFilter, OrderLine, PaymentType, Receiver

# Digits with optional leading '+', and the usual separators.
PHONE_RE = re.compile(r"^\+?[0-9][0-9 ()\-]{3,30}$")


class ReceiverIn(BaseModel):
    """Input schema for the order's receiver.

    Attributes:
        phone_number: Trimmed, then checked to be structurally a phone
            number (digits, optional leading '+', spaces, dashes, brackets).
    """

    name: str = Field(min_length=1, max_length=200)
    phone_number: str = Field(min_length=1, max_length=32)
    city: str = Field(default="", max_length=100)
    street: str = Field(default="", max_length=200)
    house: str = Field(default="", max_length=20)
    apartment: str = Field(default="", max_length=20)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("name must not be blank")
        return v2

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Trim and validate the phone number.

        Raises:
            ValueError: When the value does not look like a phone number.
        """
        v2 = v.strip()
        if not PHONE_RE.match(v2):
            raise ValueError("Invalid phone number format")
        return v2

    def to_domain(self) -> Receiver:
        return Receiver(
            name=self.name,
            phone_number=self.phone_number,
            city=self.city,
            street=self.street,
            house=self.house,
            apartment=self.apartment,
        )


class OrderLineIn(BaseModel):
    """Input schema for a single line item."""

    candle_id: int = Field(gt=0)
    quantity: int = Field(gt=0)

    def to_domain(self) -> OrderLine:
        return OrderLine(candle_id=self.candle_id, quantity=self.quantity)


class OrderLinePatch(BaseModel):
    quantity: int = Field(gt=0)


class OrderIn(BaseModel):
    """Schema for creating or replacing an order.

    Attributes:
        id: Omitted on create; required on update, where it must match the
            order in the URL.
        payment_type: "Cash", "Card" or "ZD" (any case) or the legacy codes
            0, 1, 2. Other values are rejected.
        order_details: Line items; each candle may appear once.
    """

    id: int | None = None
    order_date: datetime | None = None
    promo_code: str = Field(default="", max_length=50)
    total_sum: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    payment_type: PaymentType = PaymentType.CASH
    is_paid: bool = False
    comments: str = ""
    customer_id: int | None = Field(default=None, gt=0)
    receiver: ReceiverIn
    order_details: List[OrderLineIn] = Field(default_factory=list)

    @field_validator("payment_type", mode="before")
    @classmethod
    def parse_payment_type(cls, v):
        return PaymentType.parse(v)

    @model_validator(mode="after")
    def unique_candles(self) -> "OrderIn":
        seen = set()
        for line in self.order_details:
            if line.candle_id in seen:
                raise ValueError(f"candle {line.candle_id} appears in more than one line")
            seen.add(line.candle_id)
        return self

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            receiver=self.receiver.to_domain(),
            lines=[d.to_domain() for d in self.order_details],
            order_date=self.order_date,
            promo_code=self.promo_code,
            total_sum=self.total_sum,
            payment_type=self.payment_type,
            is_paid=self.is_paid,
            comments=self.comments,
            customer_id=self.customer_id,
        )


class OrderQuery(BaseModel):
    """Query-string filters for listing orders."""

    customer_id: int | None = None
    phone: str | None = None
    order_date: date | None = Field(default=None, alias="date")
    min_sum: Decimal | None = None
    max_sum: Decimal | None = None

    def to_filter(self) -> OrderFilter:
        return OrderFilter(
            customer_id=self.customer_id,
            phone_number=self.phone,
            order_date=self.order_date,
            min_sum=self.min_sum,
            max_sum=self.max_sum,
        )


# ---- Read DTOs ----
class ReceiverOut(BaseModel):
    name: str
    phone_number: str
    city: str
    street: str
    house: str
    apartment: str
    repeat_count: int

    @classmethod
    def from_domain(cls, receiver: Receiver) -> "ReceiverOut":
        return cls(
            name=receiver.name,
            phone_number=receiver.phone_number,
            city=receiver.city,
            street=receiver.street,
            house=receiver.house,
            apartment=receiver.apartment,
            repeat_count=receiver.repeat_count,
        )


class OrderLineOut(BaseModel):
    candle_id: int
    quantity: int


class OrderReadDTO(BaseModel):
    id: int
    order_date: datetime | None = None
    promo_code: str
    total_sum: Decimal
    payment_type: PaymentType
    is_paid: bool
    comments: str
    customer_id: int | None = None
    receiver: ReceiverOut | None = None
    order_details: List[OrderLineOut]

    @classmethod
    def from_domain(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            order_date=order.order_date,
            promo_code=order.promo_code,
            total_sum=order.total_sum,
            payment_type=order.payment_type,
            is_paid=order.is_paid,
            comments=order.comments,
            customer_id=order.customer_id,
            receiver=ReceiverOut.from_domain(order.receiver) if order.receiver else None,
            order_details=[OrderLineOut(candle_id=l.candle_id, quantity=l.quantity) for l in order.lines],
        )


def render_order(order: Order) -> dict:
    return OrderReadDTO.from_domain(order).model_dump(mode="json")


def render_line(line: OrderLine) -> dict:
    return OrderLineOut(candle_id=line.candle_id, quantity=line.quantity).model_dump(mode="json")


def render_receiver(receiver: Receiver) -> dict:
    return ReceiverOut.from_domain(receiver).model_dump(mode="json")
