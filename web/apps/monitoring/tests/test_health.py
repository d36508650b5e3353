import pytest

from apps.catalog.models import CandleModel
from apps.orders.models import OrderModel

HEALTH_URL = "/api/health/"


@pytest.mark.django_db
def test_health_ok_on_empty_database(client):
    r = client.get(HEALTH_URL)
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["components"]["db"]["ok"] is True
    assert body["components"]["integrity"]["ok"] is True
    assert not any(body["components"]["integrity"]["orphans"].values())


@pytest.mark.django_db
def test_health_ok_after_aggregate_writes(client, candle_rows):
    c1, _ = candle_rows
    r = client.post(
        "/api/orders/",
        data={
            "total_sum": "12.50",
            "receiver": {"name": "Ann", "phone_number": "+1-555-0100"},
            "order_details": [{"candle_id": c1.id, "quantity": 1}],
        },
        content_type="application/json",
    )
    assert r.status_code == 201
    assert client.get(HEALTH_URL).status_code == 200


@pytest.mark.django_db
def test_health_reports_order_without_receiver(client):
    OrderModel.objects.create(total_sum=10)

    r = client.get(HEALTH_URL)
    assert r.status_code == 503
    integrity = r.json()["components"]["integrity"]
    assert integrity["ok"] is False
    assert integrity["orphans"]["orders_without_receiver"] == 1


@pytest.mark.django_db
def test_health_reports_candle_without_ingredient(client, category_row):
    CandleModel.objects.create(name="Bare", category=category_row)

    r = client.get(HEALTH_URL)
    assert r.status_code == 503
    assert r.json()["components"]["integrity"]["orphans"]["candles_without_ingredient"] == 1


@pytest.mark.django_db
def test_request_id_is_echoed_or_generated(client):
    r = client.get(HEALTH_URL, HTTP_X_REQUEST_ID="req-123")
    assert r["X-Request-ID"] == "req-123"

    r = client.get(HEALTH_URL)
    assert len(r["X-Request-ID"]) == 36


@pytest.mark.django_db
def test_oversized_api_body_is_rejected(client, settings):
    settings.API_MAX_BYTES = 32

    r = client.post("/api/orders/", data={"comments": "x" * 100}, content_type="application/json")
    assert r.status_code == 413
    assert r.json()["detail"] == "PAYLOAD_TOO_LARGE"
