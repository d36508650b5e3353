"""Repository layer for persisting the candle aggregate.

``CandleRepository`` implements ``CandleStorePort`` on top of the Django
ORM and maps between ORM rows and the domain dataclasses so the domain
layer never sees model instances.
"""

from typing import List, Optional

from apps.consistency.storage import AtomicMixin, guarded_write

from .domain import Candle, Category, Ingredient
from .models import CandleCategoryModel, CandleIngredientModel, CandleModel


def _category(obj: CandleCategoryModel) -> Category:
    return Category(id=obj.id, name=obj.name)


def _ingredient(obj: CandleIngredientModel) -> Ingredient:
    return Ingredient(
        id=obj.id,
        candle_id=obj.candle_id,
        wick_diameter_cm=obj.wick_diameter_cm,
        wax_grams=obj.wax_grams,
    )


def _candle(obj: CandleModel) -> Candle:
    try:
        ingredient = _ingredient(obj.ingredient)
    except CandleIngredientModel.DoesNotExist:
        ingredient = None
    return Candle(
        id=obj.id,
        name=obj.name,
        category=_category(obj.category),
        description=obj.description,
        photo_link=obj.photo_link,
        real_cost=obj.real_cost,
        sell_price=obj.sell_price,
        height_cm=obj.height_cm,
        burning_time_mins=obj.burning_time_mins,
        ingredient=ingredient,
    )


class CandleRepository(AtomicMixin):
    """Django ORM implementation of ``CandleStorePort``."""

    def _candles(self):
        return CandleModel.objects.select_related("category", "ingredient")

    def get_category(self, category_id: int) -> Optional[Category]:
        obj = CandleCategoryModel.objects.filter(pk=category_id).first()
        return _category(obj) if obj else None

    def get_category_by_name(self, name: str) -> Optional[Category]:
        obj = CandleCategoryModel.objects.filter(name=name).first()
        return _category(obj) if obj else None

    def get_candle(self, candle_id: int) -> Optional[Candle]:
        obj = self._candles().filter(pk=candle_id).first()
        return _candle(obj) if obj else None

    def get_candle_by_name(self, name: str) -> Optional[Candle]:
        obj = self._candles().filter(name=name).first()
        return _candle(obj) if obj else None

    def list_candles(self, category_id: int | None = None) -> List[Candle]:
        qs = self._candles().order_by("id")
        if category_id is not None:
            qs = qs.filter(category_id=category_id)
        return [_candle(o) for o in qs]

    def get_ingredient_by_candle(self, candle_id: int) -> Optional[Ingredient]:
        obj = CandleIngredientModel.objects.filter(candle_id=candle_id).first()
        return _ingredient(obj) if obj else None

    @guarded_write(None)
    def create_candle(self, candle: Candle) -> Optional[int]:
        obj = CandleModel.objects.create(
            name=candle.name,
            description=candle.description,
            photo_link=candle.photo_link,
            real_cost=candle.real_cost,
            sell_price=candle.sell_price,
            height_cm=candle.height_cm,
            burning_time_mins=candle.burning_time_mins,
            category_id=candle.category.id,
        )
        return obj.id

    @guarded_write(False)
    def update_candle(self, candle: Candle) -> bool:
        updated = CandleModel.objects.filter(pk=candle.id).update(
            name=candle.name,
            description=candle.description,
            photo_link=candle.photo_link,
            real_cost=candle.real_cost,
            sell_price=candle.sell_price,
            height_cm=candle.height_cm,
            burning_time_mins=candle.burning_time_mins,
            category_id=candle.category.id,
        )
        return updated == 1

    @guarded_write(False)
    def delete_candle(self, candle_id: int) -> bool:
        deleted, _ = CandleModel.objects.filter(pk=candle_id).delete()
        return deleted > 0

    @guarded_write(None)
    def create_ingredient(self, ingredient: Ingredient) -> Optional[int]:
        obj = CandleIngredientModel.objects.create(
            candle_id=ingredient.candle_id,
            wick_diameter_cm=ingredient.wick_diameter_cm,
            wax_grams=ingredient.wax_grams,
        )
        return obj.id

    @guarded_write(False)
    def delete_ingredient(self, ingredient_id: int) -> bool:
        deleted, _ = CandleIngredientModel.objects.filter(pk=ingredient_id).delete()
        return deleted > 0
