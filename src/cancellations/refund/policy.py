"""Refund policy parameters.

Every number the refund engine uses comes from a ``RefundPolicy`` instance
passed in by the caller. The defaults below are the storefront's published
policy; deployments override them under ``[custom.refund_policy]`` in the
domain configuration.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_CANCELLATION_REASONS = (
    "Changed mind",
    "Found better price",
    "Wrong item ordered",
    "Delivery delay",
    "Product defect expected",
    "Financial constraints",
    "Duplicate order",
    "Other",
)


class BasePercentages(BaseModel):
    """Refund percentage before penalties, by how long ago the order was placed."""

    model_config = ConfigDict(frozen=True)

    early: float = Field(default=90, ge=0, le=100)
    standard: float = Field(default=75, ge=0, le=100)
    late: float = Field(default=50, ge=0, le=100)
    early_window_hours: float = Field(default=24, gt=0)
    standard_window_days: int = Field(default=7, ge=0)


class PenaltyRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_after_delivery: float = Field(default=20, ge=0)
    month_after_delivery: float = Field(default=30, ge=0)
    extended_after_delivery: float = Field(default=25, ge=0)
    delivered_status: float = Field(default=25, ge=0)
    past_estimated_date: float = Field(default=15, ge=0)
    late_request: float = Field(default=15, ge=0)
    week_window_days: int = Field(default=7, ge=0)
    month_window_days: int = Field(default=30, ge=0)
    late_request_after_days: int = Field(default=7, ge=0)


class BonusRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    vip: float = Field(default=10, ge=0)
    regular_customer: float = Field(default=5, ge=0)
    regular_customer_min_orders: int = Field(default=5, ge=1)
    vip_tiers: tuple[str, ...] = ("VIP", "PREMIUM")


class RefundPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_time_hours: int = Field(default=48, ge=1)
    base_percentages: BasePercentages = BasePercentages()
    penalty_rates: PenaltyRates = PenaltyRates()
    bonus_rates: BonusRates = BonusRates()
    min_percentage: float = Field(default=25, ge=0, le=100)
    max_percentage: float = Field(default=100, ge=0, le=100)
    allowed_reasons: tuple[str, ...] = DEFAULT_CANCELLATION_REASONS
    non_cancellable_statuses: tuple[str, ...] = ("Cancelled",)

    @model_validator(mode="after")
    def bounds_must_be_ordered(self):
        if self.min_percentage > self.max_percentage:
            raise ValueError(
                f"min_percentage ({self.min_percentage}) cannot exceed max_percentage ({self.max_percentage})"
            )
        return self


DEFAULT_POLICY = RefundPolicy()


def load_refund_policy(domain=None) -> RefundPolicy:
    """Build the policy from the domain's ``custom.refund_policy`` settings.

    Falls back to ``DEFAULT_POLICY`` when nothing is configured. Invalid
    settings raise pydantic's ``ValidationError`` at load time rather than
    producing a silently wrong refund later.
    """
    if domain is None:
        from protean.utils.globals import current_domain

        domain = current_domain

    custom = domain.config.get("custom") or {}
    overrides = custom.get("refund_policy") or {}
    if not overrides:
        return DEFAULT_POLICY
    return RefundPolicy.model_validate(dict(overrides))
