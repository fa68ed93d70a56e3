"""Shared BDD fixtures and step definitions for the Cancellations domain."""

import pytest
from pytest_bdd import parsers, then


@pytest.fixture()
def error():
    """Container for captured conflicts and validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the refund percentage is {percentage:d}"))
def refund_percentage_is(quote, percentage):
    assert quote.refund_percentage == percentage


@then(parsers.cfparse("the refund amount is {amount:f}"))
def refund_amount_is(quote, amount):
    assert quote.refund_amount == pytest.approx(amount)
