"""Integration tests for Cancellations API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

from cancellations.api.routes import cancellation_router, register_conflict_handler


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cancellation_router)
    register_exception_handlers(app)
    register_conflict_handler(app)
    return TestClient(app)


@pytest.fixture(autouse=True)
def _order(clock, seeded_order):
    return seeded_order


def _submit(client, **overrides):
    defaults = {
        "order_id": "ORD-1001",
        "cancellation_type": "FULL_ORDER",
        "reason": "Changed mind",
    }
    defaults.update(overrides)
    response = client.post("/cancellations", json=defaults)
    assert response.status_code == 201
    return response.json()["request_id"]


class TestPreviewAPI:
    def test_full_order_preview(self, client):
        response = client.post("/cancellations/preview", json={"order_id": "ORD-1001"})
        assert response.status_code == 200
        body = response.json()
        assert body["refund_percentage"] == 90
        assert body["refund_amount"] == 900.0
        assert body["is_live"] is True
        assert body["breakdown"][0]["kind"] == "BASE"

    def test_partial_preview(self, client):
        response = client.post(
            "/cancellations/preview",
            json={"order_id": "ORD-1001", "cancellation_type": "PARTIAL_ITEMS", "items_to_cancel": ["item-1"]},
        )
        body = response.json()
        assert body["cancellation_type"] == "PARTIAL_ITEMS"
        assert body["refund_amount"] == 600.0
        assert body["delivery_refund_component"] == 60.0

    def test_preview_with_customer_bonus(self, client):
        response = client.post(
            "/cancellations/preview",
            json={"order_id": "ORD-1001", "customer": {"order_count": 8}},
        )
        assert response.json()["refund_percentage"] == 95

    def test_preview_does_not_create_a_request(self, client):
        client.post("/cancellations/preview", json={"order_id": "ORD-1001"})
        assert client.get("/cancellations").json() == []

    def test_partial_without_items(self, client):
        response = client.post(
            "/cancellations/preview",
            json={"order_id": "ORD-1001", "cancellation_type": "PARTIAL_ITEMS"},
        )
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client):
        response = client.post("/cancellations/preview", json={"order_id": "ORD-404"})
        assert response.status_code == 404


class TestSubmitAPI:
    def test_submit_returns_201(self, client):
        assert _submit(client)

    def test_invalid_reason_is_400(self, client):
        response = client.post(
            "/cancellations",
            json={"order_id": "ORD-1001", "cancellation_type": "FULL_ORDER", "reason": "Bored"},
        )
        assert response.status_code == 400

    def test_additional_reason_too_long_is_422(self, client):
        response = client.post(
            "/cancellations",
            json={"order_id": "ORD-1001", "reason": "Changed mind", "additional_reason": "x" * 501},
        )
        assert response.status_code == 422


class TestDetailAPI:
    def test_pending_detail_has_live_quote(self, client, clock):
        request_id = _submit(client)
        clock.advance(days=2)
        body = client.get(f"/cancellations/{request_id}").json()
        assert body["status"] == "PENDING"
        assert body["version"] == 1
        assert body["quote"]["is_live"] is True
        assert body["quote"]["refund_percentage"] == 75
        assert body["admin_decision"] is None

    def test_unknown_request_is_404(self, client):
        assert client.get("/cancellations/does-not-exist").status_code == 404


class TestDecisionAPI:
    def test_approve_then_detail_is_frozen(self, client, clock):
        request_id = _submit(client)
        response = client.put(
            f"/cancellations/{request_id}/approve",
            json={"expected_version": 1, "decided_by": "admin-007", "refund_percentage_override": 80},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": 2}

        clock.advance(days=30)
        body = client.get(f"/cancellations/{request_id}").json()
        assert body["status"] == "APPROVED"
        assert body["quote"]["is_live"] is False
        assert body["quote"]["refund_percentage"] == 80
        assert body["quote"]["refund_amount"] == 800.0
        assert body["admin_decision"]["refund_percentage_override"] == 80

    def test_second_approval_is_409(self, client):
        request_id = _submit(client)
        client.put(f"/cancellations/{request_id}/approve", json={"expected_version": 1, "decided_by": "admin-1"})
        response = client.put(
            f"/cancellations/{request_id}/approve",
            json={"expected_version": 1, "decided_by": "admin-2"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["current_version"] == 2
        assert body["status"] == "APPROVED"

    def test_override_out_of_range_is_422(self, client):
        request_id = _submit(client)
        response = client.put(
            f"/cancellations/{request_id}/approve",
            json={"expected_version": 1, "decided_by": "admin-1", "refund_percentage_override": 150},
        )
        assert response.status_code == 422

    def test_reject(self, client):
        request_id = _submit(client)
        response = client.put(
            f"/cancellations/{request_id}/reject",
            json={"expected_version": 1, "decided_by": "admin-1", "notes": "Already packed"},
        )
        assert response.json()["version"] == 2
        body = client.get(f"/cancellations/{request_id}").json()
        assert body["admin_decision"]["decision"] == "REJECT"

    def test_processed(self, client):
        request_id = _submit(client)
        client.put(f"/cancellations/{request_id}/approve", json={"expected_version": 1, "decided_by": "admin-1"})
        response = client.put(f"/cancellations/{request_id}/processed", json={"refund_reference": "RF-1"})
        assert response.json()["version"] == 3
        body = client.get(f"/cancellations/{request_id}").json()
        assert body["status"] == "PROCESSED"
        assert body["refund_details"]["refund_reference"] == "RF-1"

    def test_processing_pending_request_is_400(self, client):
        request_id = _submit(client)
        response = client.put(f"/cancellations/{request_id}/processed", json={"refund_reference": "RF-1"})
        assert response.status_code == 400


class TestQueueAPI:
    def test_queue_filters_by_status(self, client, orders, order_factory):
        orders.save(order_factory(order_id="ORD-2002"))
        first = _submit(client)
        _submit(client, order_id="ORD-2002")
        client.put(f"/cancellations/{first}/reject", json={"expected_version": 1, "decided_by": "admin-1"})

        everything = client.get("/cancellations").json()
        assert len(everything) == 2

        pending = client.get("/cancellations", params={"status": "pending"}).json()
        assert [row["order_id"] for row in pending] == ["ORD-2002"]

    def test_queue_filters_by_customer(self, client, orders, order_factory):
        orders.save(order_factory(order_id="ORD-2002", customer_id="cust-777"))
        mine = _submit(client)
        _submit(client, order_id="ORD-2002")

        rows = client.get("/cancellations", params={"customer_id": "cust-042"}).json()
        assert [row["request_id"] for row in rows] == [mine]
        assert rows[0]["customer_id"] == "cust-042"

    def test_queue_filters_by_order(self, client, clock, orders, order_factory):
        orders.save(order_factory(order_id="ORD-2002"))
        first = _submit(client)
        client.put(f"/cancellations/{first}/reject", json={"expected_version": 1, "decided_by": "admin-1"})
        clock.advance(hours=1)
        second = _submit(client)
        _submit(client, order_id="ORD-2002")

        rows = client.get("/cancellations", params={"order_id": "ORD-1001"}).json()
        assert [row["request_id"] for row in rows] == [first, second]
        assert [row["status"] for row in rows] == ["REJECTED", "PENDING"]

    def test_queue_filters_combine(self, client, orders, order_factory):
        orders.save(order_factory(order_id="ORD-2002"))
        first = _submit(client)
        client.put(f"/cancellations/{first}/reject", json={"expected_version": 1, "decided_by": "admin-1"})
        _submit(client, order_id="ORD-2002")

        rows = client.get("/cancellations", params={"customer_id": "cust-042", "status": "rejected"}).json()
        assert [row["request_id"] for row in rows] == [first]
        assert client.get("/cancellations", params={"customer_id": "cust-999"}).json() == []

    def test_policy_endpoint(self, client):
        body = client.get("/cancellations/policy").json()
        assert body["min_percentage"] == 25
        assert body["base_percentages"]["early"] == 90


class TestSeedOrderAPI:
    def _payload(self):
        return {
            "order_date": "2026-03-11T06:00:00+00:00",
            "order_status": "Placed",
            "total_amt": 549.0,
            "delivery_charge": 49.0,
            "items": [{"id": "sku-1", "quantity": 2, "original_price": 250.0}],
        }

    def test_seed_then_preview(self, client):
        response = client.put("/cancellations/orders/ORD-SEED", json=self._payload())
        assert response.status_code == 200
        assert response.json() == {"order_id": "ORD-SEED", "active_items": 1}

        preview = client.post("/cancellations/preview", json={"order_id": "ORD-SEED"}).json()
        assert preview["items_total"] == 500.0
        assert preview["refund_amount"] == 494.1

    def test_invalid_order_is_400(self, client):
        payload = self._payload()
        payload["items"][0]["quantity"] = 0
        assert client.put("/cancellations/orders/ORD-BAD", json=payload).status_code == 400

    def test_refused_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert client.put("/cancellations/orders/ORD-SEED", json=self._payload()).status_code == 403
