"""API tests for the candle endpoints.

These go through the Django test client and the ORM-backed orchestrator.
"""

from decimal import Decimal

import pytest

from apps.catalog.models import CandleCategoryModel, CandleIngredientModel, CandleModel

LIST_URL = "/api/candles/"
DETAIL_URL = "/api/candles/{cid}/"


def _payload(name="Lavender Dream", **kw):
    body = {
        "name": name,
        "description": "Calming lavender",
        "real_cost": "4.10",
        "sell_price": "12.50",
        "height_cm": 10,
        "burning_time_mins": 240,
        "wick_diameter_cm": 2,
        "wax_needed_gram": 50,
    }
    body.update(kw)
    return body


def _create(client, category_id, **kw):
    return client.post(
        f"{LIST_URL}?category_id={category_id}", data=_payload(**kw), content_type="application/json"
    )


@pytest.mark.django_db
def test_create_candle_returns_201_then_duplicate_is_409(client, category_row):
    r1 = _create(client, category_row.id)
    assert r1.status_code == 201
    body = r1.json()
    assert body["name"] == "Lavender Dream"
    assert body["wax_needed_gram"] == 50
    assert body["category"] == "Aroma"
    assert Decimal(body["sell_price"]) == Decimal("12.50")

    r2 = _create(client, category_row.id)
    assert r2.status_code == 409
    assert r2.json()["detail"] == "CONFLICT"
    assert CandleModel.objects.count() == 1


@pytest.mark.django_db
def test_create_candle_requires_existing_category(client):
    r = _create(client, 4242)
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


@pytest.mark.django_db
def test_create_candle_without_category_param_is_400(client):
    r = client.post(LIST_URL, data=_payload(), content_type="application/json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_create_candle_validation_error(client, category_row):
    r = _create(client, category_row.id, name="  ", wax_needed_gram=0)
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "VALIDATION_FAILED"
    assert any(e.startswith("wax_needed_gram") for e in body["errors"])


@pytest.mark.django_db
def test_get_candle_basic_and_full_views(client, category_row):
    cid = _create(client, category_row.id).json()["id"]

    basic = client.get(DETAIL_URL.format(cid=cid)).json()
    assert set(basic) == {"id", "name", "category", "sell_price", "photo_link"}

    full = client.get(DETAIL_URL.format(cid=cid) + "?view=full").json()
    assert full["wick_diameter_cm"] == 2
    assert full["burning_time_mins"] == 240


@pytest.mark.django_db
def test_get_by_name_and_by_category(client, category_row):
    _create(client, category_row.id)
    other = CandleCategoryModel.objects.create(name="Empty")

    r = client.get("/api/candles/by-name/Lavender Dream/")
    assert r.status_code == 200
    assert r.json()["name"] == "Lavender Dream"
    assert client.get("/api/candles/by-name/Nope/").status_code == 404

    r = client.get(f"/api/categories/{category_row.id}/candles/")
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Lavender Dream"]
    assert client.get(f"/api/categories/{other.id}/candles/").json() == []
    assert client.get("/api/categories/9999/candles/").status_code == 404


@pytest.mark.django_db
def test_list_candles_is_paginated(client, category_row):
    for name in ("A candle", "B candle", "C candle"):
        _create(client, category_row.id, name=name)

    r = client.get(LIST_URL + "?page_size=2")
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 3
    assert len(body["results"]) == 2


@pytest.mark.django_db
def test_update_candle_moves_category_and_replaces_ingredient(client, category_row):
    CandleCategoryModel.objects.create(name="Seasonal")
    cid = _create(client, category_row.id).json()["id"]

    r = client.put(
        DETAIL_URL.format(cid=cid),
        data=_payload(id=cid, category="Seasonal", wax_needed_gram=90),
        content_type="application/json",
    )
    assert r.status_code == 200
    assert r.json()["category"] == "Seasonal"
    assert CandleIngredientModel.objects.get(candle_id=cid).wax_grams == 90


@pytest.mark.django_db
def test_update_candle_mismatched_id_is_400_and_unknown_is_404(client, category_row):
    cid = _create(client, category_row.id).json()["id"]

    r = client.put(DETAIL_URL.format(cid=cid), data=_payload(id=cid + 1), content_type="application/json")
    assert r.status_code == 400

    r = client.put(DETAIL_URL.format(cid=9999), data=_payload(), content_type="application/json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_delete_candle(client, category_row):
    cid = _create(client, category_row.id).json()["id"]

    assert client.delete(DETAIL_URL.format(cid=cid)).status_code == 200
    assert client.get(DETAIL_URL.format(cid=cid)).status_code == 404
    assert not CandleIngredientModel.objects.exists()
    assert client.delete(DETAIL_URL.format(cid=cid)).status_code == 404
