"""Domain models, storage port and aggregate service for candles.

A ``Candle`` owns exactly one ``Ingredient`` (its composition record). The
``CandleService`` is the only place that creates, replaces or removes the
pair, and it always does so inside the store's transaction scope so a
reader never observes a candle without its ingredient or the reverse.
"""

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Protocol

from apps.consistency.result import AggregateError, ErrorKind

logger = logging.getLogger("candles.catalog")


# ---- Entities / DTOs ----
@dataclass
class Category:
    """A candle category. Names are unique."""

    id: int | None
    name: str


@dataclass
class Ingredient:
    """Composition record owned by a single candle.

    Attributes:
        wick_diameter_cm: Diameter the wick is sized for, in centimetres.
        wax_grams: Wax needed to pour one candle, in grams.
        candle_id: Back-reference to the owning candle (unique).
        id: Storage identifier, or None if not yet saved.
    """

    wick_diameter_cm: int
    wax_grams: int
    candle_id: int | None = None
    id: int | None = None


@dataclass
class Candle:
    """A sellable candle together with its category and ingredient."""

    id: int | None
    name: str
    category: Category
    description: str = ""
    photo_link: str = ""
    real_cost: Decimal = Decimal("0")
    sell_price: Decimal = Decimal("0")
    height_cm: int | None = None
    burning_time_mins: int | None = None
    ingredient: Ingredient | None = None


@dataclass
class CandleDraft:
    """Incoming candle data for create and update.

    ``category_name`` is only consulted on update; creation resolves the
    category from an explicit id. ``id`` is optional and, when present on an
    update, must match the target candle.
    """

    name: str
    wick_diameter_cm: int
    wax_grams: int
    description: str = ""
    photo_link: str = ""
    real_cost: Decimal = Decimal("0")
    sell_price: Decimal = Decimal("0")
    height_cm: int | None = None
    burning_time_mins: int | None = None
    category_name: str | None = None
    id: int | None = None

    def build_ingredient(self, candle_id: int | None = None) -> Ingredient:
        return Ingredient(
            wick_diameter_cm=self.wick_diameter_cm,
            wax_grams=self.wax_grams,
            candle_id=candle_id,
        )


# ---- Ports (DIP) ----
class CandleStorePort(Protocol):
    """Storage operations the candle aggregate relies on.

    Every write commits on its own unless it runs inside ``atomic()``.
    Writes report failure with ``None`` (creates) or ``False`` (updates and
    deletes) instead of raising.
    """

    def atomic(self) -> AbstractContextManager: ...

    def get_category(self, category_id: int) -> Optional[Category]: ...

    def get_category_by_name(self, name: str) -> Optional[Category]: ...

    def get_candle(self, candle_id: int) -> Optional[Candle]: ...

    def get_candle_by_name(self, name: str) -> Optional[Candle]: ...

    def list_candles(self, category_id: int | None = None) -> List[Candle]: ...

    def get_ingredient_by_candle(self, candle_id: int) -> Optional[Ingredient]: ...

    def create_candle(self, candle: Candle) -> Optional[int]: ...

    def update_candle(self, candle: Candle) -> bool: ...

    def delete_candle(self, candle_id: int) -> bool: ...

    def create_ingredient(self, ingredient: Ingredient) -> Optional[int]: ...

    def delete_ingredient(self, ingredient_id: int) -> bool: ...


def _storage_failed(step: str) -> AggregateError:
    logger.error("storage step failed", extra={"step": step})
    return AggregateError(ErrorKind.INTERNAL_FAILURE, f"storage step '{step}' did not commit")


# ---- Domain service ----
class CandleService:
    """Aggregate manager for the Candle + Ingredient pair."""

    def __init__(self, store: CandleStorePort):
        self.store = store

    # reads
    def list_candles(self, category_id: int | None = None) -> List[Candle]:
        return self.store.list_candles(category_id)

    def get_candle(self, candle_id: int) -> Optional[Candle]:
        return self.store.get_candle(candle_id)

    def get_candle_by_name(self, name: str) -> Optional[Candle]:
        return self.store.get_candle_by_name(name.strip())

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.store.get_category(category_id)

    def candles_in_category(self, category_id: int) -> List[Candle]:
        """Return the candles of a category.

        Raises:
            AggregateError: NOT_FOUND when the category does not exist.
        """
        if self.store.get_category(category_id) is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"category {category_id} not found")
        return self.store.list_candles(category_id)

    # writes
    def create_candle(self, draft: CandleDraft, category_id: int) -> Candle:
        """Create a candle and its ingredient as one unit.

        Args:
            draft: Candle fields plus the ingredient fields.
            category_id: Identifier of an existing category.

        Returns:
            The persisted ``Candle`` with identifiers filled in.

        Raises:
            AggregateError: CONFLICT for a duplicate name, NOT_FOUND for an
                unknown category, INTERNAL_FAILURE when a write fails (no row
                of the pair survives in that case).
        """
        name = draft.name.strip()
        if self.store.get_candle_by_name(name) is not None:
            raise AggregateError(ErrorKind.CONFLICT, f"candle '{name}' already exists")

        category = self.store.get_category(category_id)
        if category is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"category {category_id} not found")

        candle = self._apply(Candle(id=None, name=name, category=category), draft, category)

        with self.store.atomic():
            candle_id = self.store.create_candle(candle)
            if candle_id is None:
                raise _storage_failed("create_candle")
            candle.id = candle_id

            ingredient = draft.build_ingredient(candle_id)
            ingredient_id = self.store.create_ingredient(ingredient)
            if ingredient_id is None:
                raise _storage_failed("create_ingredient")
            ingredient.id = ingredient_id
            candle.ingredient = ingredient

        logger.info("candle created", extra={"candle_id": candle.id, "category_id": category.id})
        return candle

    def update_candle(self, candle_id: int, draft: CandleDraft) -> Candle:
        """Update candle fields and replace its ingredient wholesale.

        The old ingredient is deleted before the new one is written so two
        ingredient rows never point at the same candle, even transiently.

        Raises:
            AggregateError: VALIDATION_FAILED when ``draft.id`` disagrees with
                ``candle_id``; NOT_FOUND for an unknown candle or category
                name; CONFLICT when the new name belongs to another candle;
                INTERNAL_FAILURE when a write fails.
        """
        if draft.id is not None and draft.id != candle_id:
            raise AggregateError(
                ErrorKind.VALIDATION_FAILED,
                f"payload id {draft.id} does not match candle {candle_id}",
            )

        candle = self.store.get_candle(candle_id)
        if candle is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"candle {candle_id} not found")

        category = candle.category
        if draft.category_name:
            category = self.store.get_category_by_name(draft.category_name.strip())
            if category is None:
                raise AggregateError(
                    ErrorKind.NOT_FOUND, f"category '{draft.category_name}' not found"
                )

        name = draft.name.strip()
        same_name = self.store.get_candle_by_name(name)
        if same_name is not None and same_name.id != candle_id:
            raise AggregateError(ErrorKind.CONFLICT, f"candle '{name}' already exists")

        with self.store.atomic():
            # 1) Drop the current composition record
            current = self.store.get_ingredient_by_candle(candle_id)
            if current is not None and not self.store.delete_ingredient(current.id):
                raise _storage_failed("delete_ingredient")

            # 2) Mutate the candle in place
            candle.name = name
            self._apply(candle, draft, category)
            if not self.store.update_candle(candle):
                raise _storage_failed("update_candle")

            # 3) Attach a fresh composition record
            ingredient = draft.build_ingredient(candle_id)
            ingredient_id = self.store.create_ingredient(ingredient)
            if ingredient_id is None:
                raise _storage_failed("create_ingredient")
            ingredient.id = ingredient_id
            candle.ingredient = ingredient

        logger.info("candle updated", extra={"candle_id": candle_id})
        return candle

    def delete_candle(self, candle_id: int) -> None:
        """Delete a candle, then its ingredient.

        The store is not assumed to cascade; the ingredient lookup finding
        nothing (because the store did cascade) is not an error.

        Raises:
            AggregateError: NOT_FOUND for an unknown candle, INTERNAL_FAILURE
                when a write fails.
        """
        if self.store.get_candle(candle_id) is None:
            raise AggregateError(ErrorKind.NOT_FOUND, f"candle {candle_id} not found")

        with self.store.atomic():
            if not self.store.delete_candle(candle_id):
                raise _storage_failed("delete_candle")

            ingredient = self.store.get_ingredient_by_candle(candle_id)
            if ingredient is not None and not self.store.delete_ingredient(ingredient.id):
                raise _storage_failed("delete_ingredient")

        logger.info("candle deleted", extra={"candle_id": candle_id})

    @staticmethod
    def _apply(candle: Candle, draft: CandleDraft, category: Category) -> Candle:
        candle.description = draft.description
        candle.photo_link = draft.photo_link
        candle.real_cost = draft.real_cost
        candle.sell_price = draft.sell_price
        candle.height_cm = draft.height_cm
        candle.burning_time_mins = draft.burning_time_mins
        candle.category = category
        return candle
