"""Tests for the valuation engine."""

import math

import pytest

from dealbook.analysis.valuation import amortized_payment, evaluate
from dealbook.models import DealInput


def _make_input(**overrides) -> DealInput:
    defaults = {
        "title": "Flat on Linden Street",
        "purchase_price": 250_000,
        "equity": 50_000,
        "monthly_rent": 900,
        "monthly_expenses": 350,
        "annual_interest_rate_percent": 4,
        "loan_term_years": 30,
        "broker_fee_percent": 3,
        "other_costs_percent": 4.5,
    }
    defaults.update(overrides)
    return DealInput(**defaults)


class TestReferenceDeal:
    def setup_method(self):
        self.result = evaluate(_make_input())

    def test_loan_amount(self):
        assert self.result.loan_amount == 200_000

    def test_monthly_payment(self):
        assert self.result.monthly_loan_payment == pytest.approx(954.83, abs=0.01)

    def test_monthly_cashflow(self):
        assert self.result.monthly_cashflow == pytest.approx(-404.83, abs=0.01)

    def test_purchase_costs(self):
        assert self.result.broker_fee_amount == pytest.approx(7_500)
        assert self.result.other_buying_costs_amount == pytest.approx(11_250)
        assert self.result.total_purchase_costs == pytest.approx(18_750)
        assert self.result.total_investment == pytest.approx(268_750)

    def test_gross_yield_uses_total_investment(self):
        assert self.result.gross_yield_percent == pytest.approx(900 * 12 / 268_750 * 100)
        assert round(self.result.gross_yield_percent, 2) == 4.02

    def test_equity_return(self):
        expected = self.result.monthly_cashflow * 12 / 50_000 * 100
        assert self.result.equity_return_percent == pytest.approx(expected)
        assert self.result.equity_return_percent < 0


class TestFinancingBranches:
    def test_zero_interest_is_straight_line(self):
        result = evaluate(
            _make_input(purchase_price=120_000, equity=0, annual_interest_rate_percent=0, loan_term_years=10)
        )
        assert result.loan_amount == 120_000
        assert result.monthly_loan_payment == 1000.00

    def test_negative_rate_treated_as_zero(self):
        result = evaluate(
            _make_input(purchase_price=120_000, equity=0, annual_interest_rate_percent=-2, loan_term_years=10)
        )
        assert result.monthly_loan_payment == 1000.00

    def test_zero_term_means_no_payment(self):
        result = evaluate(_make_input(loan_term_years=0))
        assert result.loan_amount == 200_000
        assert result.monthly_loan_payment == 0

    @pytest.mark.parametrize("equity", [250_000, 300_000])
    def test_equity_covering_price_means_no_loan(self, equity):
        result = evaluate(_make_input(equity=equity))
        assert result.loan_amount == 0
        assert result.monthly_loan_payment == 0

    def test_cashflow_without_loan(self):
        result = evaluate(_make_input(equity=250_000))
        assert result.monthly_cashflow == 550


class TestZeroInputs:
    def test_zero_price(self):
        result = evaluate(_make_input(purchase_price=0))
        assert result.loan_amount == 0
        assert result.broker_fee_amount == 0
        assert result.other_buying_costs_amount == 0
        assert result.total_investment == 0
        assert result.gross_yield_percent == 0

    def test_zero_equity_reports_zero_return(self):
        result = evaluate(_make_input(equity=0))
        assert result.equity_return_percent == 0
        assert result.loan_amount == 250_000

    def test_empty_input_is_all_zero(self):
        result = evaluate(DealInput())
        for value in result.model_dump().values():
            assert value == 0

    def test_all_fields_finite(self):
        result = evaluate(_make_input(annual_interest_rate_percent=10_000, loan_term_years=10_000))
        for value in result.model_dump().values():
            assert math.isfinite(value)

    def test_overflowing_metrics_become_zero(self):
        result = evaluate(
            {
                "purchase_price": 1e308,
                "broker_fee_percent": 300,
                "other_costs_percent": -300,
                "monthly_rent": 1e308,
            }
        )
        for value in result.model_dump().values():
            assert math.isfinite(value)
        assert result.broker_fee_amount == 0
        assert result.other_buying_costs_amount == 0

    def test_missing_cost_percentages_are_zero(self):
        result = evaluate({"purchase_price": 100_000})
        assert result.broker_fee_amount == 0
        assert result.other_buying_costs_amount == 0
        assert result.total_investment == 100_000


class TestInputCoercion:
    def test_mapping_with_strings(self):
        result = evaluate(
            {
                "purchase_price": "120000",
                "equity": "",
                "annual_interest_rate_percent": " 0 ",
                "loan_term_years": "10",
                "monthly_rent": None,
                "monthly_expenses": "n/a",
            }
        )
        assert result.loan_amount == 120_000
        assert result.monthly_loan_payment == 1000.00
        assert result.monthly_cashflow == -1000.00

    def test_nan_and_infinity_become_zero(self):
        result = evaluate({"purchase_price": float("nan"), "equity": float("inf")})
        assert result.loan_amount == 0
        assert result.total_investment == 0

    def test_negative_values_propagate(self):
        result = evaluate(_make_input(monthly_rent=-100, equity=250_000))
        assert result.monthly_cashflow == -450

    def test_non_list_photos_are_ignored(self):
        result = evaluate({"purchase_price": 1000, "photos": 5})
        assert result.total_investment == 1000


class TestAmortizedPayment:
    def test_no_principal(self):
        assert amortized_payment(0, 0.01, 120) == 0

    def test_no_term(self):
        assert amortized_payment(1000, 0.01, 0) == 0

    def test_overflow_degrades_to_interest_only(self):
        assert amortized_payment(100_000, 0.5, 1_000_000) == pytest.approx(50_000)

    def test_rate_below_float_precision(self):
        assert amortized_payment(1200, 1e-18, 12) == pytest.approx(100)
