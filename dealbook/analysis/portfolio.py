"""Portfolio aggregation over a collection of committed deals.

All functions treat the given sequence as read-only and return new values.
Reductions that have no meaning for an empty collection return None so
callers can tell "no deals yet" apart from a genuine 0 %.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

from dealbook.models import Deal, PortfolioSummary, PropertyType, TypeBreakdown

ALL_TYPES = "all"


def total_monthly_cashflow(deals: Sequence[Deal]) -> float:
    return sum((d.monthly_cashflow for d in deals), 0.0)


def _mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def average_gross_yield(deals: Sequence[Deal]) -> Optional[float]:
    return _mean([d.gross_yield_percent for d in deals])


def average_equity_return(deals: Sequence[Deal]) -> Optional[float]:
    return _mean([d.equity_return_percent for d in deals])


def _best_by(deals: Sequence[Deal], key: Callable[[Deal], float]) -> Optional[Deal]:
    best: Optional[Deal] = None
    for deal in deals:
        # Strictly greater keeps the first deal on ties
        if best is None or key(deal) > key(best):
            best = deal
    return best


def best_by_equity_return(deals: Sequence[Deal]) -> Optional[Deal]:
    return _best_by(deals, lambda d: d.equity_return_percent)


def best_by_monthly_cashflow(deals: Sequence[Deal]) -> Optional[Deal]:
    return _best_by(deals, lambda d: d.monthly_cashflow)


def summarize(deals: Sequence[Deal]) -> PortfolioSummary:
    """Dashboard figures for the whole collection."""
    return PortfolioSummary(
        count=len(deals),
        total_monthly_cashflow=total_monthly_cashflow(deals),
        avg_gross_yield_percent=average_gross_yield(deals),
        avg_equity_return_percent=average_equity_return(deals),
        best_by_equity_return=best_by_equity_return(deals),
        best_by_monthly_cashflow=best_by_monthly_cashflow(deals),
    )


def count_by_type(deals: Sequence[Deal]) -> dict[str, int]:
    """Deal counts per property type, plus an "all" total.

    Every known type is listed, with 0 where no deal has it.
    """
    counts = {ALL_TYPES: len(deals)}
    counts.update({pt.value: 0 for pt in PropertyType})
    for deal in deals:
        counts[deal.property_type.value] += 1
    return counts


def filter_by_type(
    deals: Sequence[Deal], property_type: PropertyType | str | None = None
) -> list[Deal]:
    """Deals of one property type in insertion order.

    "all" or None keeps every deal; an unknown type matches nothing.
    """
    if property_type is None or property_type == ALL_TYPES:
        return list(deals)
    return [d for d in deals if d.property_type == property_type]


def _bucket(key: str, label: str, members: list[Deal]) -> TypeBreakdown:
    return TypeBreakdown(
        key=key,
        label=label,
        count=len(members),
        total_monthly_cashflow=total_monthly_cashflow(members),
        avg_gross_yield_percent=average_gross_yield(members),
        avg_equity_return_percent=average_equity_return(members),
    )


def breakdown_by_type(deals: Sequence[Deal]) -> list[TypeBreakdown]:
    """Aggregates for the whole portfolio followed by one bucket per type.

    Type buckets appear in order of first occurrence in the collection.
    """
    groups: dict[PropertyType, list[Deal]] = {}
    for deal in deals:
        groups.setdefault(deal.property_type, []).append(deal)

    buckets = [_bucket(ALL_TYPES, "Whole portfolio", list(deals))]
    for property_type, members in groups.items():
        buckets.append(_bucket(property_type.value, property_type.label, members))
    return buckets
