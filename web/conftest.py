"""Shared fixtures: in-memory stores for domain tests, seed rows for ORM tests."""

from decimal import Decimal

import pytest
from django.core.cache import cache

from apps.catalog.adapters import InMemoryCandleStore
from apps.catalog.domain import CandleDraft, CandleService
from apps.consistency.orchestrator import ConsistencyOrchestrator
from apps.orders.adapters import InMemoryOrderStore
from apps.orders.domain import OrderService


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    # Throttle counters live in the local-memory cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def candle_store():
    return InMemoryCandleStore()


@pytest.fixture
def order_store():
    return InMemoryOrderStore(customers={7})


@pytest.fixture
def candle_service(candle_store):
    return CandleService(candle_store)


@pytest.fixture
def order_service(order_store):
    return OrderService(order_store)


@pytest.fixture
def orchestrator(candle_service, order_service):
    return ConsistencyOrchestrator(candles=candle_service, orders=order_service)


@pytest.fixture
def make_draft():
    def _make(name="Lavender Dream", wick=2, wax=50, **kw):
        kw.setdefault("sell_price", Decimal("12.50"))
        kw.setdefault("real_cost", Decimal("4.10"))
        return CandleDraft(name=name, wick_diameter_cm=wick, wax_grams=wax, **kw)

    return _make


@pytest.fixture
def seeded_candles(candle_store, candle_service, make_draft):
    """Two candles in one category; returns (category, candle_1, candle_2)."""
    category = candle_store.add_category("Aroma")
    c1 = candle_service.create_candle(make_draft("Lavender Dream"), category.id)
    c2 = candle_service.create_candle(make_draft("Vanilla Sky", wick=3, wax=80), category.id)
    return category, c1, c2


@pytest.fixture
def category_row(db):
    from apps.catalog.models import CandleCategoryModel

    return CandleCategoryModel.objects.create(name="Aroma")


@pytest.fixture
def candle_rows(category_row, make_draft):
    """Two persisted candles (with ingredients) for order tests."""
    from apps.catalog.repository import CandleRepository

    service = CandleService(CandleRepository())
    return (
        service.create_candle(make_draft("Lavender Dream"), category_row.id),
        service.create_candle(make_draft("Vanilla Sky", wick=3, wax=80), category_row.id),
    )
