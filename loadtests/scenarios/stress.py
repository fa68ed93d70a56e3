"""Stress test scenarios for the refund engine and request pipeline.

QuoteFloodUser hammers the pure pricing path (preview never writes).
SubmissionSpikeUser simulates a burst of customers cancelling at once,
each on a fresh order so no two submissions contend.
"""

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import (
    customer_attributes,
    seed_order_data,
    submit_cancellation_data,
    unique_order_id,
)


class QuoteFloodUser(HttpUser):
    """Stress test: preview throughput.

    Seeds a handful of orders once, then previews them as fast as the pacing
    allows. Exercises the order cache and the refund engine; no events.
    """

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    def on_start(self):
        self.orders = []
        for _ in range(5):
            order_id = unique_order_id()
            payload = seed_order_data()
            resp = self.client.put(
                f"/cancellations/orders/{order_id}",
                json=payload,
                name="[STRESS] PUT /cancellations/orders/{id}",
            )
            if resp.status_code == 200:
                self.orders.append((order_id, [item["id"] for item in payload["items"]]))

    @task(3)
    def preview_full(self):
        if not self.orders:
            return
        order_id, _ = self.orders[0]
        self.client.post(
            "/cancellations/preview",
            json={"order_id": order_id, "customer": customer_attributes()},
            name="[STRESS] POST /cancellations/preview (full)",
        )

    @task(2)
    def preview_partial(self):
        if not self.orders:
            return
        order_id, item_ids = self.orders[-1]
        self.client.post(
            "/cancellations/preview",
            json={"order_id": order_id, "cancellation_type": "PARTIAL_ITEMS", "items_to_cancel": item_ids[:1]},
            name="[STRESS] POST /cancellations/preview (partial)",
        )


class SubmissionSpikeUser(HttpUser):
    """Spike test: rapid-fire cancellation submissions.

    Spawn 50-100 of these at once. Each iteration raises one
    CancellationRequested event.
    """

    wait_time = constant_pacing(0.05)  # ~20 req/sec per user

    @task
    def seed_and_submit(self):
        order_id = unique_order_id()
        resp = self.client.put(
            f"/cancellations/orders/{order_id}",
            json=seed_order_data(),
            name="[STRESS] PUT /cancellations/orders/{id}",
        )
        if resp.status_code == 200:
            self.client.post(
                "/cancellations",
                json=submit_cancellation_data(order_id),
                name="[STRESS] POST /cancellations",
            )
