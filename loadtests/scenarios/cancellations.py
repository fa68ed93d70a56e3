"""Cancellations load test scenarios.

Stateful SequentialTaskSet journeys covering quote previews, approval with
payout, rejection, and admins racing to decide the same request. Every
journey seeds its own order through the development seeding endpoint, so the
target API must not run with PROTEAN_ENV=production.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    admin_id,
    customer_attributes,
    seed_order_data,
    submit_cancellation_data,
    unique_order_id,
)
from loadtests.helpers.response import conflict_version, extract_error_detail
from loadtests.helpers.state import CancellationState


class _SeededOrderJourney(SequentialTaskSet):
    """Seeds an order on start; subclasses cancel against it."""

    partial = False

    def on_start(self):
        self.state = CancellationState(order_id=unique_order_id())
        payload = seed_order_data()
        self.state.item_ids = [item["id"] for item in payload["items"]]
        with self.client.put(
            f"/cancellations/orders/{self.state.order_id}",
            json=payload,
            catch_response=True,
            name="PUT /cancellations/orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Seed order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _selection(self):
        if self.partial and len(self.state.item_ids) > 1:
            return random.sample(self.state.item_ids, k=1)
        return None

    def _submit(self):
        with self.client.post(
            "/cancellations",
            json=submit_cancellation_data(self.state.order_id, self._selection()),
            catch_response=True,
            name="POST /cancellations",
        ) as resp:
            if resp.status_code == 201:
                self.state.request_id = resp.json()["request_id"]
                self.state.current_status = "PENDING"
            else:
                resp.failure(f"Submit cancellation failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _view(self):
        with self.client.get(
            f"/cancellations/{self.state.request_id}",
            catch_response=True,
            name="GET /cancellations/{id}",
        ) as resp:
            if resp.status_code == 200:
                body = resp.json()
                self.state.version = body["version"]
                self.state.quoted_percentage = body["quote"]["refund_percentage"]
            else:
                resp.failure(f"View cancellation failed: {resp.status_code}: {extract_error_detail(resp)}")


class CancellationApprovalJourney(_SeededOrderJourney):
    """Preview -> Submit -> View -> Approve -> Refund Processed.

    Generates events: CancellationRequested, CancellationApproved, RefundProcessed.
    """

    @task
    def preview(self):
        self.client.post(
            "/cancellations/preview",
            json={"order_id": self.state.order_id, "customer": customer_attributes()},
            name="POST /cancellations/preview",
        )

    @task
    def submit(self):
        self._submit()

    @task
    def view(self):
        self._view()

    @task
    def approve(self):
        payload = {"expected_version": self.state.version, "decided_by": admin_id()}
        if random.random() < 0.2:
            payload["refund_percentage_override"] = random.choice([50, 80, 100])
        with self.client.put(
            f"/cancellations/{self.state.request_id}/approve",
            json=payload,
            catch_response=True,
            name="PUT /cancellations/{id}/approve",
        ) as resp:
            if resp.status_code == 200:
                self.state.version = resp.json()["version"]
                self.state.current_status = "APPROVED"
            else:
                resp.failure(f"Approve failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def mark_processed(self):
        with self.client.put(
            f"/cancellations/{self.state.request_id}/processed",
            json={"refund_reference": f"RF-{self.state.request_id[:8]}", "expected_version": self.state.version},
            catch_response=True,
            name="PUT /cancellations/{id}/processed",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "PROCESSED"
            else:
                resp.failure(f"Mark processed failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class PartialCancellationJourney(CancellationApprovalJourney):
    """Same as the approval journey, cancelling one line of a multi-line order."""

    partial = True


class CancellationRejectionJourney(_SeededOrderJourney):
    """Submit -> View -> Reject."""

    @task
    def submit(self):
        self._submit()

    @task
    def view(self):
        self._view()

    @task
    def reject(self):
        with self.client.put(
            f"/cancellations/{self.state.request_id}/reject",
            json={"expected_version": self.state.version, "decided_by": admin_id(), "notes": "Already dispatched"},
            catch_response=True,
            name="PUT /cancellations/{id}/reject",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "REJECTED"
            else:
                resp.failure(f"Reject failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class DecisionRaceJourney(_SeededOrderJourney):
    """Submit -> two admins decide against the same version.

    Exactly one decision must win; the other must get 409 with the winner's
    version. Any other outcome is reported as a failure.
    """

    @task
    def submit(self):
        self._submit()

    @task
    def race(self):
        winner = None
        for action in ("approve", "reject"):
            with self.client.put(
                f"/cancellations/{self.state.request_id}/{action}",
                json={"expected_version": 1, "decided_by": admin_id()},
                catch_response=True,
                name=f"PUT /cancellations/{{id}}/{action} (race)",
            ) as resp:
                if resp.status_code == 200 and winner is None:
                    winner = action
                    resp.success()
                elif resp.status_code == 409 and winner is not None and conflict_version(resp) == 2:
                    resp.success()
                else:
                    resp.failure(f"Race {action} unexpected: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CancellationUser(HttpUser):
    """Customers and admins working through cancellations.

    Weights favour the approval path, with partial cancellations, rejections
    and decision races in the tail.
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        CancellationApprovalJourney: 5,
        PartialCancellationJourney: 3,
        CancellationRejectionJourney: 2,
        DecisionRaceJourney: 1,
    }


class QueueBrowserUser(HttpUser):
    """Admins refreshing the review queue."""

    wait_time = between(1.0, 5.0)

    @task(3)
    def pending_queue(self):
        self.client.get("/cancellations", params={"status": "PENDING"}, name="GET /cancellations?status=PENDING")

    @task(1)
    def full_queue(self):
        self.client.get("/cancellations", name="GET /cancellations")

    @task(1)
    def policy(self):
        self.client.get("/cancellations/policy", name="GET /cancellations/policy")
