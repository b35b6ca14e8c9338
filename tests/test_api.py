"""Tests for the HTTP API."""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from dealbook.api.server import create_app
from dealbook.config import AppConfig, DatabaseConfig

REFERENCE_DEAL = {
    "title": "Flat on Linden Street",
    "purchase_price": 250_000,
    "equity": 50_000,
    "monthly_rent": 900,
    "monthly_expenses": 350,
    "annual_interest_rate_percent": 4,
    "loan_term_years": 30,
}


@pytest.fixture
def client():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    cfg = AppConfig(database=DatabaseConfig(url=f"sqlite:///{path}"))
    with TestClient(create_app(cfg)) as c:
        yield c
    os.unlink(path)


def test_evaluate(client):
    resp = client.post("/api/evaluate", json=REFERENCE_DEAL)
    assert resp.status_code == 200
    body = resp.json()
    assert body["result"]["loan_amount"] == 200_000
    assert body["result"]["monthly_loan_payment"] == pytest.approx(954.83, abs=0.01)
    assert body["quality"] == "negative"
    assert len(body["scenarios"]) == 3
    assert client.get("/api/deals").json()["deals"] == []


def test_evaluate_applies_configured_cost_defaults(client):
    body = client.post("/api/evaluate", json=REFERENCE_DEAL).json()
    assert body["input"]["broker_fee_percent"] == 3.0
    assert body["input"]["other_costs_percent"] == 4.5
    assert body["result"]["total_purchase_costs"] == pytest.approx(18_750)

    explicit = dict(REFERENCE_DEAL, broker_fee_percent=0, other_costs_percent=0)
    body = client.post("/api/evaluate", json=explicit).json()
    assert body["result"]["total_purchase_costs"] == 0


def test_evaluate_ignores_non_list_photos(client):
    resp = client.post("/api/evaluate", json=dict(REFERENCE_DEAL, photos=5))
    assert resp.status_code == 200
    assert resp.json()["input"]["photos"] == []


def test_evaluate_coerces_blank_numbers(client):
    resp = client.post("/api/evaluate", json={"purchase_price": "", "equity": "abc"})
    assert resp.status_code == 200
    assert resp.json()["result"]["total_investment"] == 0


def test_add_list_get_delete(client):
    resp = client.post("/api/deals", json=REFERENCE_DEAL)
    assert resp.status_code == 201
    deal = resp.json()
    assert deal["input"]["title"] == "Flat on Linden Street"

    listing = client.get("/api/deals").json()
    assert [d["id"] for d in listing["deals"]] == [deal["id"]]
    assert listing["counts"]["all"] == 1

    assert client.get(f"/api/deals/{deal['id']}").json() == deal
    assert client.delete(f"/api/deals/{deal['id']}").status_code == 200
    assert client.get(f"/api/deals/{deal['id']}").status_code == 404
    assert client.delete(f"/api/deals/{deal['id']}").status_code == 404


def test_add_without_title_rejected(client):
    resp = client.post("/api/deals", json=dict(REFERENCE_DEAL, title=" "))
    assert resp.status_code == 422
    assert "name" in resp.json()["detail"]


def test_filter_by_type(client):
    client.post("/api/deals", json=dict(REFERENCE_DEAL, title="A", property_type="house"))
    client.post("/api/deals", json=dict(REFERENCE_DEAL, title="B"))
    houses = client.get("/api/deals", params={"type": "house"}).json()["deals"]
    assert [d["input"]["title"] for d in houses] == ["A"]
    assert client.get("/api/deals", params={"type": "castle"}).status_code == 422


def test_portfolio_empty_reports_no_data(client):
    summary = client.get("/api/portfolio").json()["summary"]
    assert summary["count"] == 0
    assert summary["avg_gross_yield_percent"] is None
    assert summary["avg_equity_return_percent"] is None
    assert summary["best_by_equity_return"] is None


def test_portfolio_and_ranking(client):
    client.post("/api/deals", json=dict(REFERENCE_DEAL, title="Leveraged"))
    client.post("/api/deals", json=dict(REFERENCE_DEAL, title="Cash buy", equity=250_000))

    portfolio = client.get("/api/portfolio").json()
    assert portfolio["summary"]["count"] == 2
    assert portfolio["summary"]["best_by_monthly_cashflow"]["input"]["title"] == "Cash buy"
    assert portfolio["by_type"][0]["key"] == "all"

    ranking = client.get("/api/ranking").json()
    assert [r["title"] for r in ranking["by_equity_return"]] == ["Cash buy", "Leveraged"]
    assert ranking["by_equity_return"][0]["bar_width"] == 100
    assert ranking["by_monthly_cashflow"][1]["positive"] is False


def test_export_and_clear(client):
    assert client.get("/api/export").status_code == 404
    client.post("/api/deals", json=REFERENCE_DEAL)
    exported = client.get("/api/export").json()
    assert len(exported) == 1
    assert client.delete("/api/deals").json() == {"deleted": 1}


def test_config_endpoint(client):
    body = client.get("/api/config").json()
    assert body["analytics"]["min_bar_width"] == 6.0
