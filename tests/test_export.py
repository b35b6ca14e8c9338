"""Tests for JSON export and import."""

import json
import math

import pytest

from dealbook.analysis.valuation import evaluate
from dealbook.export import InterchangeError, dump_deals, export_to_file, import_from_file, load_deals
from dealbook.models import Deal, DealInput, InvestmentStrategy, PropertyType


def _make_deal(deal_id: int, **overrides) -> Deal:
    values = {
        "title": f"Deal {deal_id}",
        "purchase_price": 180_000.5,
        "equity": 40_000,
        "monthly_rent": 780,
        "monthly_expenses": 120.25,
        "annual_interest_rate_percent": 3.7,
        "loan_term_years": 25,
    }
    values.update(overrides)
    deal_input = DealInput(**values)
    return Deal(id=deal_id, input=deal_input, result=evaluate(deal_input))


LEGACY_RECORD = {
    "id": 1712345678901,
    "title": "Altbau Lindenstr.",
    "propertyType": "sanierung",
    "strategy": "flip",
    "photos": [],
    "photoUrl": "https://img.example/old.jpg",
    "purchasePrice": 250000,
    "equity": 50000,
    "rent": 900,
    "expenses": 350,
    "interestRate": 4,
    "loanYears": 30,
    "brokerPercent": 3,
    "otherCostsPercent": 4.5,
    "monthlyCashflow": 12345,
    "equityReturn": 99,
}


def test_dump_is_pretty_json_list():
    text = dump_deals([_make_deal(1)])
    data = json.loads(text)
    assert isinstance(data, list)
    assert data[0]["id"] == 1
    assert data[0]["input"]["property_type"] == "apartment"
    assert "\n  " in text


def test_round_trip_is_lossless():
    deals = [_make_deal(1), _make_deal(2, property_type="commercial", photos="https://x.example/a.jpg")]
    assert load_deals(dump_deals(deals)) == deals


def test_file_round_trip(tmp_path):
    deals = [_make_deal(7)]
    path = tmp_path / "deals.json"
    export_to_file(deals, path)
    assert import_from_file(path) == deals


class TestLegacyImport:
    def test_maps_fields_and_reevaluates(self):
        [deal] = load_deals(json.dumps([LEGACY_RECORD]))
        assert deal.id == 1712345678901
        assert deal.title == "Altbau Lindenstr."
        assert deal.property_type == PropertyType.RENOVATION_PROJECT
        assert deal.strategy == InvestmentStrategy.FIX_AND_FLIP
        assert deal.input.monthly_rent == 900
        assert deal.result.monthly_cashflow == pytest.approx(-404.83, abs=0.01)
        assert deal.created_at.year == 2024

    def test_empty_photo_list_is_kept(self):
        [deal] = load_deals(json.dumps([LEGACY_RECORD]))
        assert deal.input.photos == []

    def test_single_photo_url(self):
        record = {k: v for k, v in LEGACY_RECORD.items() if k != "photos"}
        [deal] = load_deals(json.dumps([record]))
        assert deal.input.photos == ["https://img.example/old.jpg"]

    def test_missing_type_and_strategy_use_defaults(self):
        record = {"id": 1, "title": "Bare", "purchasePrice": "100000"}
        [deal] = load_deals(json.dumps([record]))
        assert deal.property_type == PropertyType.APARTMENT
        assert deal.strategy == InvestmentStrategy.BUY_AND_HOLD
        assert deal.input.purchase_price == 100_000
        assert deal.result.total_investment == 100_000

    def test_owner_occupied_mapping(self):
        record = dict(LEGACY_RECORD, propertyType="gewerbe", strategy="eigennutzung")
        [deal] = load_deals(json.dumps([record]))
        assert deal.property_type == PropertyType.COMMERCIAL
        assert deal.strategy == InvestmentStrategy.OWNER_OCCUPIED


class TestMalformedInput:
    def test_invalid_json(self):
        with pytest.raises(InterchangeError):
            load_deals("{not json")

    def test_not_a_list(self):
        with pytest.raises(InterchangeError):
            load_deals('{"id": 1}')

    def test_bad_records_are_skipped(self, caplog):
        good = _make_deal(3).model_dump(mode="json")
        text = json.dumps([42, {"title": "no id"}, {"id": "abc"}, good])
        deals = load_deals(text)
        assert [d.id for d in deals] == [3]
        assert "Skipping record" in caplog.text

    def test_non_finite_metrics_are_reevaluated(self, caplog):
        record = _make_deal(4).model_dump(mode="json")
        record["result"]["monthly_cashflow"] = float("nan")
        record["result"]["gross_yield_percent"] = float("inf")
        [deal] = load_deals(json.dumps([record]))
        assert deal.result == evaluate(deal.input)
        assert all(math.isfinite(v) for v in deal.result.model_dump().values())
        assert "non-finite metrics" in caplog.text
