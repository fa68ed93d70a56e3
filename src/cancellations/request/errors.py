"""Errors raised by the cancellation request lifecycle."""


class ConcurrencyConflict(Exception):
    """An admin decision lost a race, or targeted a request already decided.

    Callers should reload the request and retry with its current version.
    """

    def __init__(self, request_id: str, expected_version: int, actual_version: int, status: str) -> None:
        self.request_id = request_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.status = status
        super().__init__(
            f"Cancellation request {request_id} is at version {actual_version} ({status}), "
            f"expected version {expected_version}"
        )
