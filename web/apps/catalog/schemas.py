"""Pydantic schemas for candles.

Request schemas validate the shape of incoming JSON and map it onto the
domain ``CandleDraft``; response schemas render domain candles in the
``basic`` or ``full`` view.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from .domain import Candle, CandleDraft


class CandleIn(BaseModel):
    """Input schema for creating or updating a candle.

    Attributes:
        id: Optional; on update it must match the candle in the URL.
        category: Category *name*; used on update to move the candle.
            Creation takes the category id from the query string instead.
        wick_diameter_cm: Ingredient field, diameter the wick is sized for.
        wax_needed_gram: Ingredient field, grams of wax per candle.
    """

    id: int | None = None
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    photo_link: str = Field(default="", max_length=500)
    category: str | None = None
    real_cost: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    sell_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    height_cm: int | None = Field(default=None, gt=0)
    burning_time_mins: int | None = Field(default=None, gt=0)
    wick_diameter_cm: int = Field(gt=0)
    wax_needed_gram: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank names.

        Raises:
            ValueError: When only whitespace was sent.
        """
        v2 = v.strip()
        if not v2:
            raise ValueError("name must not be blank")
        return v2

    def to_draft(self) -> CandleDraft:
        return CandleDraft(
            id=self.id,
            name=self.name,
            description=self.description,
            photo_link=self.photo_link,
            category_name=self.category,
            real_cost=self.real_cost,
            sell_price=self.sell_price,
            height_cm=self.height_cm,
            burning_time_mins=self.burning_time_mins,
            wick_diameter_cm=self.wick_diameter_cm,
            wax_grams=self.wax_needed_gram,
        )


class CandleBasicOut(BaseModel):
    id: int
    name: str
    category: str
    sell_price: Decimal
    photo_link: str = ""

    @classmethod
    def from_domain(cls, candle: Candle) -> "CandleBasicOut":
        return cls(
            id=candle.id,
            name=candle.name,
            category=candle.category.name,
            sell_price=candle.sell_price,
            photo_link=candle.photo_link,
        )


class CandleFullOut(CandleBasicOut):
    description: str = ""
    real_cost: Decimal
    height_cm: int | None = None
    burning_time_mins: int | None = None
    wick_diameter_cm: int | None = None
    wax_needed_gram: int | None = None

    @classmethod
    def from_domain(cls, candle: Candle) -> "CandleFullOut":
        ingredient = candle.ingredient
        return cls(
            id=candle.id,
            name=candle.name,
            category=candle.category.name,
            sell_price=candle.sell_price,
            photo_link=candle.photo_link,
            description=candle.description,
            real_cost=candle.real_cost,
            height_cm=candle.height_cm,
            burning_time_mins=candle.burning_time_mins,
            wick_diameter_cm=ingredient.wick_diameter_cm if ingredient else None,
            wax_needed_gram=ingredient.wax_grams if ingredient else None,
        )


VIEWS = {"basic": CandleBasicOut, "full": CandleFullOut}


def serializer_for(view: str | None):
    """Return a function rendering a candle in the requested view.

    Unknown view names fall back to ``basic``.
    """
    schema = VIEWS.get((view or "basic").lower(), CandleBasicOut)
    return lambda candle: schema.from_domain(candle).model_dump(mode="json")
