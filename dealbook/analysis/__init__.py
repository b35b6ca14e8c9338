"""Valuation engine and portfolio analytics."""

from dealbook.analysis.valuation import evaluate, amortized_payment
from dealbook.analysis.portfolio import summarize, breakdown_by_type, count_by_type
from dealbook.analysis.ranking import quality_tier, bar_width, equity_ranking, cashflow_ranking
from dealbook.analysis.scenarios import scenarios
