"""Data models for DealBook."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCHEMA_VERSION = 1


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    RENOVATION_PROJECT = "renovation_project"
    COMMERCIAL = "commercial"

    @property
    def label(self) -> str:
        return _PROPERTY_TYPE_LABELS[self]


class InvestmentStrategy(str, Enum):
    BUY_AND_HOLD = "buy_and_hold"
    FIX_AND_FLIP = "fix_and_flip"
    OWNER_OCCUPIED = "owner_occupied"

    @property
    def label(self) -> str:
        return _STRATEGY_LABELS[self]


class QualityTier(str, Enum):
    NEGATIVE = "negative"
    WEAK = "weak"
    OKAY = "okay"
    GOOD = "good"
    TOP_DEAL = "top_deal"

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]


_PROPERTY_TYPE_LABELS = {
    PropertyType.APARTMENT: "Apartment",
    PropertyType.HOUSE: "House",
    PropertyType.RENOVATION_PROJECT: "Renovation project",
    PropertyType.COMMERCIAL: "Commercial",
}

_STRATEGY_LABELS = {
    InvestmentStrategy.BUY_AND_HOLD: "Buy & Hold",
    InvestmentStrategy.FIX_AND_FLIP: "Fix & Flip",
    InvestmentStrategy.OWNER_OCCUPIED: "Owner-occupied",
}

_TIER_LABELS = {
    QualityTier.NEGATIVE: "Negative",
    QualityTier.WEAK: "Weak",
    QualityTier.OKAY: "Okay",
    QualityTier.GOOD: "Good",
    QualityTier.TOP_DEAL: "Top-deal",
}

_NUMERIC_FIELDS = (
    "purchase_price",
    "equity",
    "monthly_rent",
    "monthly_expenses",
    "annual_interest_rate_percent",
    "loan_term_years",
    "broker_fee_percent",
    "other_costs_percent",
)


def coerce_number(value: Any) -> float:
    """Best-effort conversion of user input to a finite float.

    Blank, missing, unparseable and non-finite values all become 0.0.
    """
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def split_photo_urls(value: Any) -> list[str]:
    """Split a newline/comma separated string (or list) into clean URLs."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = re.split(r"[\n,]", value)
    elif isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if v is not None]
    else:
        return []
    return [p.strip() for p in parts if p.strip()]


class DealInput(BaseModel):
    """Deal parameters as entered by the user."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    purchase_price: float = 0.0
    equity: float = 0.0
    monthly_rent: float = 0.0
    monthly_expenses: float = 0.0
    annual_interest_rate_percent: float = 0.0  # 4 means 4 %
    loan_term_years: float = 0.0
    broker_fee_percent: float = 0.0
    other_costs_percent: float = 0.0
    property_type: PropertyType = PropertyType.APARTMENT
    strategy: InvestmentStrategy = InvestmentStrategy.BUY_AND_HOLD
    photos: list[str] = Field(default_factory=list)

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _zero_fallback(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("title", mode="before")
    @classmethod
    def _title_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("property_type", mode="before")
    @classmethod
    def _known_property_type(cls, value: Any) -> PropertyType:
        try:
            return PropertyType(value)
        except ValueError:
            return PropertyType.APARTMENT

    @field_validator("strategy", mode="before")
    @classmethod
    def _known_strategy(cls, value: Any) -> InvestmentStrategy:
        try:
            return InvestmentStrategy(value)
        except ValueError:
            return InvestmentStrategy.BUY_AND_HOLD

    @field_validator("photos", mode="before")
    @classmethod
    def _photo_list(cls, value: Any) -> list[str]:
        return split_photo_urls(value)


class ValuationResult(BaseModel):
    """Financial metrics derived from a DealInput."""

    model_config = ConfigDict(frozen=True)

    loan_amount: float
    monthly_loan_payment: float
    monthly_cashflow: float
    gross_yield_percent: float
    equity_return_percent: float  # 0 when no equity was contributed
    broker_fee_amount: float
    other_buying_costs_amount: float
    total_purchase_costs: float
    total_investment: float


class Deal(BaseModel):
    """A committed evaluation: input, computed metrics and identifier."""

    model_config = ConfigDict(frozen=True)

    id: int
    schema_version: int = SCHEMA_VERSION
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    input: DealInput
    result: ValuationResult

    @property
    def title(self) -> str:
        return self.input.title

    @property
    def property_type(self) -> PropertyType:
        return self.input.property_type

    @property
    def strategy(self) -> InvestmentStrategy:
        return self.input.strategy

    @property
    def monthly_cashflow(self) -> float:
        return self.result.monthly_cashflow

    @property
    def gross_yield_percent(self) -> float:
        return self.result.gross_yield_percent

    @property
    def equity_return_percent(self) -> float:
        return self.result.equity_return_percent


class PortfolioSummary(BaseModel):
    """Totals, averages and best-of picks over a deal collection.

    Averages and best-of picks are None when there are no deals.
    """

    count: int = 0
    total_monthly_cashflow: float = 0.0
    avg_gross_yield_percent: Optional[float] = None
    avg_equity_return_percent: Optional[float] = None
    best_by_equity_return: Optional[Deal] = None
    best_by_monthly_cashflow: Optional[Deal] = None


class TypeBreakdown(BaseModel):
    """Aggregates for one property type bucket (or "all")."""

    key: str
    label: str
    count: int = 0
    total_monthly_cashflow: float = 0.0
    avg_gross_yield_percent: Optional[float] = None
    avg_equity_return_percent: Optional[float] = None


class RankedDeal(BaseModel):
    """One row of a ranking view."""

    rank: int
    deal: Deal
    value: float
    bar_width: float  # percentage of the list maximum
    tier: Optional[QualityTier] = None
    positive: bool = True


class Scenario(BaseModel):
    """A what-if variant of a valuation."""

    label: str
    monthly_cashflow: float
    equity_return_percent: float


class CommitOutcome(BaseModel):
    """Result of a collaborator-level action that may be rejected."""

    ok: bool
    deal: Optional[Deal] = None
    reason: str = ""
