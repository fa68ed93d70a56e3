"""Cancellation store: persistence with optimistic concurrency on decisions.

Two admins can open the same pending request and press approve at the same
moment. Each decision names the version it was made against; the store
compares and sets that version under a lock so exactly one of them wins and
the other gets ``ConcurrencyConflict``.
"""

import threading

from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from cancellations.domain import cancellations
from cancellations.request.errors import ConcurrencyConflict
from cancellations.request.events import CancellationApproved, CancellationRejected, RefundProcessed
from cancellations.request.request import CancellationRequest, CancellationStatus
from cancellations.utils.logging import get_logger

logger = get_logger(__name__)

_DECISIONS = {CancellationStatus.APPROVED, CancellationStatus.REJECTED}


class CancellationStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        # Last version granted per request, held only until its unit of work commits
        self._granted: dict[str, int] = {}

    @property
    def repository(self):
        return current_domain.repository_for(CancellationRequest)

    def create_request(self, request: CancellationRequest) -> CancellationRequest:
        self.repository.add(request)
        return request

    def get_request(self, request_id: str) -> CancellationRequest:
        """Load a request; raises ``ObjectNotFoundError`` when it does not exist."""
        return self.repository.get(request_id)

    def pending_for_order(self, order_id: str) -> list[CancellationRequest]:
        results = self.repository._dao.query.filter(
            order_id=str(order_id),
            status=CancellationStatus.PENDING.value,
        ).all()
        return list(results.items)

    def update_status(self, request_id: str, decision: CancellationStatus, expected_version: int, apply):
        """Apply a status change if the request is still at ``expected_version``.

        ``apply`` receives the loaded aggregate and performs the transition.
        Admin decisions on a request that has left PENDING are conflicts, not
        validation errors: the caller was looking at stale data.
        """
        with self._lock:
            key = str(request_id)
            request = self.get_request(request_id)
            committed = request.version or 1
            if self._granted.get(key, 0) <= committed:
                self._granted.pop(key, None)
            current_version = max(committed, self._granted.get(key, 0))

            stale = current_version != expected_version
            already_decided = decision in _DECISIONS and request.status != CancellationStatus.PENDING.value
            if stale or already_decided:
                logger.warning(
                    "cancellation_decision_conflict",
                    request_id=str(request_id),
                    decision=decision.value,
                    expected_version=expected_version,
                    actual_version=current_version,
                    status=request.status,
                )
                raise ConcurrencyConflict(str(request_id), expected_version, current_version, request.status)

            apply(request)
            previous = self._granted.get(key)
            self._granted[key] = request.version
            try:
                self.repository.add(request)
            except Exception:
                if previous is None:
                    self._granted.pop(key, None)
                else:
                    self._granted[key] = previous
                raise
            return request

    def forget(self, request_id: str, committed_version: int | None = None) -> None:
        """Drop the granted version once its unit of work has committed.

        Without ``committed_version`` the entry is dropped unconditionally.
        """
        key = str(request_id)
        with self._lock:
            granted = self._granted.get(key)
            if granted is not None and (committed_version is None or committed_version >= granted):
                del self._granted[key]

    def reset(self) -> None:
        with self._lock:
            self._granted.clear()


_store = CancellationStore()


def get_cancellation_store() -> CancellationStore:
    return _store


@cancellations.event_handler(part_of=CancellationRequest)
class GrantedVersionHandler:
    """Releases granted versions once the decision that raised them is committed."""

    @handle(CancellationApproved)
    def on_cancellation_approved(self, event: CancellationApproved) -> None:
        get_cancellation_store().forget(event.request_id, event.version)

    @handle(CancellationRejected)
    def on_cancellation_rejected(self, event: CancellationRejected) -> None:
        get_cancellation_store().forget(event.request_id)

    @handle(RefundProcessed)
    def on_refund_processed(self, event: RefundProcessed) -> None:
        get_cancellation_store().forget(event.request_id)
