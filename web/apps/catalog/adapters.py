"""In-process store for the catalog ports.

``InMemoryCandleStore`` implements ``CandleStorePort`` without a database.
It never cascades: deleting a candle leaves its ingredient behind unless the
caller removes it, which is what the aggregate tests rely on. ``atomic()``
takes a snapshot and restores it when the block raises, giving the same
all-or-nothing view the ORM transaction gives.

Write failures can be scripted through ``fail_on`` for tests.
"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set

from .domain import Candle, Category, Ingredient


class InMemoryCandleStore:
    """Dictionary-backed implementation of ``CandleStorePort``.

    Args:
        fail_on: Names of write methods that should report failure.
    """

    def __init__(self, fail_on: Optional[Set[str]] = None):
        self.fail_on: Set[str] = set(fail_on or ())
        self.categories: Dict[int, Category] = {}
        self.candles: Dict[int, Candle] = {}
        self.ingredients: Dict[int, Ingredient] = {}
        self._next_id = 1

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = copy.deepcopy((self.categories, self.candles, self.ingredients, self._next_id))
        try:
            yield
        except BaseException:
            self.categories, self.candles, self.ingredients, self._next_id = snapshot
            raise

    # ---- seeding helpers ----
    def add_category(self, name: str) -> Category:
        cat = Category(id=self._new_id(), name=name)
        self.categories[cat.id] = cat
        return copy.deepcopy(cat)

    # ---- reads ----
    def get_category(self, category_id: int) -> Optional[Category]:
        cat = self.categories.get(category_id)
        return copy.deepcopy(cat) if cat else None

    def get_category_by_name(self, name: str) -> Optional[Category]:
        for cat in self.categories.values():
            if cat.name == name:
                return copy.deepcopy(cat)
        return None

    def _hydrate(self, candle: Candle) -> Candle:
        out = copy.deepcopy(candle)
        out.ingredient = self.get_ingredient_by_candle(candle.id)
        return out

    def get_candle(self, candle_id: int) -> Optional[Candle]:
        candle = self.candles.get(candle_id)
        return self._hydrate(candle) if candle else None

    def get_candle_by_name(self, name: str) -> Optional[Candle]:
        for candle in self.candles.values():
            if candle.name == name:
                return self._hydrate(candle)
        return None

    def list_candles(self, category_id: int | None = None) -> List[Candle]:
        return [
            self._hydrate(c)
            for c in sorted(self.candles.values(), key=lambda c: c.id)
            if category_id is None or c.category.id == category_id
        ]

    def get_ingredient_by_candle(self, candle_id: int) -> Optional[Ingredient]:
        for ing in self.ingredients.values():
            if ing.candle_id == candle_id:
                return copy.deepcopy(ing)
        return None

    # ---- writes ----
    def create_candle(self, candle: Candle) -> Optional[int]:
        if "create_candle" in self.fail_on:
            return None
        if any(c.name == candle.name for c in self.candles.values()):
            return None
        stored = copy.deepcopy(candle)
        stored.id = self._new_id()
        stored.ingredient = None
        self.candles[stored.id] = stored
        return stored.id

    def update_candle(self, candle: Candle) -> bool:
        if "update_candle" in self.fail_on or candle.id not in self.candles:
            return False
        stored = copy.deepcopy(candle)
        stored.ingredient = None
        self.candles[candle.id] = stored
        return True

    def delete_candle(self, candle_id: int) -> bool:
        if "delete_candle" in self.fail_on:
            return False
        return self.candles.pop(candle_id, None) is not None

    def create_ingredient(self, ingredient: Ingredient) -> Optional[int]:
        if "create_ingredient" in self.fail_on:
            return None
        # one composition record per candle
        if any(i.candle_id == ingredient.candle_id for i in self.ingredients.values()):
            return None
        stored = copy.deepcopy(ingredient)
        stored.id = self._new_id()
        self.ingredients[stored.id] = stored
        return stored.id

    def delete_ingredient(self, ingredient_id: int) -> bool:
        if "delete_ingredient" in self.fail_on:
            return False
        return self.ingredients.pop(ingredient_id, None) is not None
