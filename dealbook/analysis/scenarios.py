"""Worst / realistic / best what-if variants of a valuation."""

from __future__ import annotations

from typing import Optional

from dealbook.config import ScenarioConfig
from dealbook.models import Scenario, ValuationResult


def scenarios(
    result: Optional[ValuationResult], cfg: ScenarioConfig | None = None
) -> list[Scenario]:
    cfg = cfg or ScenarioConfig()
    shock = f"{cfg.rent_shock_pct:g}%"
    if result is None:
        return [
            Scenario(label="Worst case", monthly_cashflow=0.0, equity_return_percent=0.0),
            Scenario(label="Realistic", monthly_cashflow=0.0, equity_return_percent=0.0),
            Scenario(label="Best case", monthly_cashflow=0.0, equity_return_percent=0.0),
        ]

    return [
        Scenario(
            label=f"Worst case (-{shock} rent)",
            monthly_cashflow=result.monthly_cashflow * cfg.worst_cashflow_factor,
            equity_return_percent=result.equity_return_percent * cfg.worst_equity_return_factor,
        ),
        Scenario(
            label="Realistic",
            monthly_cashflow=result.monthly_cashflow,
            equity_return_percent=result.equity_return_percent,
        ),
        Scenario(
            label=f"Best case (+{shock} rent)",
            monthly_cashflow=result.monthly_cashflow * cfg.best_cashflow_factor,
            equity_return_percent=result.equity_return_percent * cfg.best_equity_return_factor,
        ),
    ]
