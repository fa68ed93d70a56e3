"""Notifier factory.

Provides get_notifier() / set_notifier() to swap delivery implementations.
Defaults to FakeNotifier.
"""

from cancellations.notifier.fake_adapter import FakeNotifier
from cancellations.notifier.port import Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
