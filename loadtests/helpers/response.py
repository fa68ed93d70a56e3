"""Readable failure messages from Cancellations API error bodies.

The API answers errors in four shapes:

- Lost decision race (409): {"error": "msg", "current_version": 2, "status": "APPROVED"}
- Domain validation (400): {"error": {"field": ["msg", ...]}}; not found (404): {"error": "msg"}
- Route guards (400/403): {"detail": "msg"}
- Pydantic request validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def _json(response: Response):
    try:
        return response.json()
    except ValueError:
        return None


def _field_messages(errors: dict) -> str:
    parts = []
    for field, messages in errors.items():
        if isinstance(messages, (list, tuple)):
            messages = "; ".join(str(m) for m in messages)
        parts.append(f"{field}: {messages}")
    return " | ".join(parts)


def conflict_version(response: Response) -> int | None:
    """Version the request had moved to when a decision lost a race."""
    body = _json(response)
    if response.status_code != 409 or not isinstance(body, dict):
        return None
    return body.get("current_version")


def extract_error_detail(response: Response) -> str:
    """Compact message for Locust failures and log lines."""
    body = _json(response)
    if not isinstance(body, dict):
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "current_version" in body:
        return f"{body.get('error')} (current version {body['current_version']}, {body.get('status')})"

    error = body.get("error")
    if isinstance(error, dict):
        return _field_messages(error)
    if error is not None:
        return str(error)

    detail = body.get("detail")
    if isinstance(detail, list):
        parts = []
        for err in detail:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)
    if detail is not None:
        return str(detail)

    return str(body)[:300]
