"""Valuation engine: turns deal inputs into financing and return metrics."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from dealbook.models import DealInput, ValuationResult, coerce_number

logger = logging.getLogger(__name__)


def amortized_payment(principal: float, monthly_rate: float, months: float) -> float:
    """Fixed monthly payment that retires ``principal`` over ``months``.

    Falls back to straight-line repayment when the rate is zero and returns 0
    when there is nothing to amortize.
    """
    if principal <= 0 or months <= 0:
        return 0.0
    if monthly_rate <= 0:
        return principal / months
    try:
        growth = (1 + monthly_rate) ** months
    except OverflowError:
        growth = math.inf
    if not math.isfinite(growth):
        # Limit of the annuity formula as the term grows without bound
        return principal * monthly_rate
    if growth <= 1:
        # Rate too small to register in float precision
        return principal / months
    return principal * monthly_rate * growth / (growth - 1)


def evaluate(deal_input: DealInput | Mapping[str, Any]) -> ValuationResult:
    """Compute the metric snapshot for one deal.

    Never raises: blank or invalid numbers have already been coerced to 0 by
    DealInput, and every division below is guarded.
    """
    if not isinstance(deal_input, DealInput):
        deal_input = DealInput.model_validate(dict(deal_input))

    price = deal_input.purchase_price
    equity = deal_input.equity
    rent = deal_input.monthly_rent
    expenses = deal_input.monthly_expenses
    rate = deal_input.annual_interest_rate_percent
    years = deal_input.loan_term_years

    # Financing
    loan_amount = max(price - equity, 0.0)
    monthly_rate = rate / 100 / 12 if rate > 0 else 0.0
    total_months = years * 12 if years > 0 else 0.0
    monthly_payment = amortized_payment(loan_amount, monthly_rate, total_months)

    # Acquisition costs
    broker_fee = price * deal_input.broker_fee_percent / 100
    other_costs = price * deal_input.other_costs_percent / 100
    total_purchase_costs = broker_fee + other_costs
    total_investment = price + total_purchase_costs

    monthly_cashflow = rent - expenses - monthly_payment

    # Gross yield is measured against all capital deployed, not just the price
    gross_base = total_investment if total_investment > 0 else price
    gross_yield = (rent * 12) / gross_base * 100 if gross_base > 0 else 0.0

    # Fully debt-financed deals report 0 % rather than an infinite return
    equity_return = (monthly_cashflow * 12) / equity * 100 if equity > 0 else 0.0

    metrics = {
        "loan_amount": loan_amount,
        "monthly_loan_payment": monthly_payment,
        "monthly_cashflow": monthly_cashflow,
        "gross_yield_percent": gross_yield,
        "equity_return_percent": equity_return,
        "broker_fee_amount": broker_fee,
        "other_buying_costs_amount": other_costs,
        "total_purchase_costs": total_purchase_costs,
        "total_investment": total_investment,
    }
    # Finite but extreme inputs can still overflow; same zero fallback as the inputs
    result = ValuationResult(**{name: coerce_number(v) for name, v in metrics.items()})
    logger.debug(
        "Evaluated %r: loan=%.2f payment=%.2f cashflow=%.2f gross=%.2f%% equity=%.2f%%",
        deal_input.title,
        result.loan_amount,
        result.monthly_loan_payment,
        result.monthly_cashflow,
        result.gross_yield_percent,
        result.equity_return_percent,
    )
    return result
