"""Ranked views of a deal collection, display bar scaling and deal quality."""

from __future__ import annotations

from collections.abc import Sequence

from dealbook.models import Deal, QualityTier, RankedDeal

DEFAULT_MIN_BAR_WIDTH = 6.0


def quality_tier(equity_return_percent: float) -> QualityTier:
    """Classify a deal by its equity return; lower bounds are inclusive."""
    if equity_return_percent <= 0:
        return QualityTier.NEGATIVE
    if equity_return_percent < 4:
        return QualityTier.WEAK
    if equity_return_percent < 7:
        return QualityTier.OKAY
    if equity_return_percent < 10:
        return QualityTier.GOOD
    return QualityTier.TOP_DEAL


def bar_width(value: float, max_value: float, min_width: float = DEFAULT_MIN_BAR_WIDTH) -> float:
    """Width of a display bar as a percentage of the list maximum.

    Floored at ``min_width`` so zero and negative values stay visible, and
    capped at 100. Without a positive maximum there is no bar at all.
    """
    if max_value <= 0:
        return 0.0
    return min(100.0, max(min_width, value / max_value * 100))


def rank_by_equity_return(deals: Sequence[Deal]) -> list[Deal]:
    # sorted() is stable, so equal returns keep insertion order
    return sorted(deals, key=lambda d: d.equity_return_percent, reverse=True)


def rank_by_monthly_cashflow(deals: Sequence[Deal]) -> list[Deal]:
    return sorted(deals, key=lambda d: d.monthly_cashflow, reverse=True)


def equity_ranking(
    deals: Sequence[Deal], min_width: float = DEFAULT_MIN_BAR_WIDTH
) -> list[RankedDeal]:
    """Deals ranked by equity return, with quality tier and bar width."""
    ranked = rank_by_equity_return(deals)
    max_return = max((d.equity_return_percent for d in ranked), default=0.0)
    return [
        RankedDeal(
            rank=i,
            deal=deal,
            value=deal.equity_return_percent,
            bar_width=bar_width(deal.equity_return_percent, max_return, min_width),
            tier=quality_tier(deal.equity_return_percent),
            positive=deal.equity_return_percent > 0,
        )
        for i, deal in enumerate(ranked, 1)
    ]


def cashflow_ranking(
    deals: Sequence[Deal], min_width: float = DEFAULT_MIN_BAR_WIDTH
) -> list[RankedDeal]:
    """Deals ranked by monthly cashflow; bars scale by absolute cashflow."""
    ranked = rank_by_monthly_cashflow(deals)
    max_abs = max((abs(d.monthly_cashflow) for d in ranked), default=0.0)
    return [
        RankedDeal(
            rank=i,
            deal=deal,
            value=deal.monthly_cashflow,
            bar_width=bar_width(abs(deal.monthly_cashflow), max_abs, min_width),
            positive=deal.monthly_cashflow >= 0,
        )
        for i, deal in enumerate(ranked, 1)
    ]
