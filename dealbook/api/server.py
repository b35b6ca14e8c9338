"""FastAPI app exposing the valuation engine and the saved deal collection."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from dealbook.analysis.portfolio import breakdown_by_type, count_by_type, filter_by_type, summarize
from dealbook.analysis.ranking import cashflow_ranking, equity_ranking, quality_tier
from dealbook.analysis.scenarios import scenarios
from dealbook.config import AppConfig
from dealbook.db.repository import Repository
from dealbook.models import DealInput
from dealbook.service import NOTHING_TO_EXPORT, DealDesk


def create_app(cfg: AppConfig) -> FastAPI:
    app = FastAPI(title="DealBook", version="0.1.0")
    desk = DealDesk(Repository(cfg.database.url))
    min_width = cfg.analytics.min_bar_width

    def _with_defaults(payload: dict) -> DealInput:
        # Keys left out of the request get the configured pre-fill values
        values = {
            "broker_fee_percent": cfg.defaults.broker_fee_percent,
            "other_costs_percent": cfg.defaults.other_costs_percent,
            "property_type": cfg.defaults.property_type,
            "strategy": cfg.defaults.strategy,
        }
        values.update(payload)
        return DealInput.model_validate(values)

    @app.post("/api/evaluate")
    async def evaluate_deal(payload: dict):
        """Evaluate a deal without saving it. Invalid numbers count as 0."""
        deal_input = _with_defaults(payload)
        result = desk.evaluate(deal_input)
        return {
            "input": deal_input.model_dump(mode="json"),
            "result": result.model_dump(),
            "quality": quality_tier(result.equity_return_percent).value,
            "scenarios": [s.model_dump() for s in scenarios(result, cfg.scenarios)],
        }

    @app.get("/api/deals")
    async def get_deals(property_type: str = Query("all", alias="type")):
        """Saved deals in insertion order, optionally filtered by type."""
        deals = desk.deals()
        counts = count_by_type(deals)
        if property_type not in counts:
            raise HTTPException(status_code=422, detail=f"Unknown property type: {property_type}")
        return {
            "counts": counts,
            "deals": [d.model_dump(mode="json") for d in filter_by_type(deals, property_type)],
        }

    @app.post("/api/deals", status_code=201)
    async def add_deal(payload: dict):
        """Evaluate and commit a deal."""
        outcome = desk.commit(_with_defaults(payload))
        if not outcome.ok:
            raise HTTPException(status_code=422, detail=outcome.reason)
        return outcome.deal.model_dump(mode="json")

    @app.get("/api/deals/{deal_id}")
    async def get_deal(deal_id: int):
        deal = desk.get(deal_id)
        if deal is None:
            raise HTTPException(status_code=404, detail="Deal not found")
        return deal.model_dump(mode="json")

    @app.delete("/api/deals/{deal_id}")
    async def delete_deal(deal_id: int):
        if not desk.delete(deal_id):
            raise HTTPException(status_code=404, detail="Deal not found")
        return {"deleted": deal_id}

    @app.delete("/api/deals")
    async def clear_deals():
        return {"deleted": desk.clear()}

    @app.get("/api/portfolio")
    async def get_portfolio():
        """Dashboard totals; averages and best deals are null with no deals."""
        deals = desk.deals()
        return {
            "summary": summarize(deals).model_dump(mode="json"),
            "by_type": [b.model_dump() for b in breakdown_by_type(deals)],
        }

    @app.get("/api/ranking")
    async def get_ranking(limit: int = Query(20)):
        deals = desk.deals()

        def _rows(ranked):
            return [
                {
                    "rank": r.rank,
                    "id": r.deal.id,
                    "title": r.deal.title,
                    "value": r.value,
                    "bar_width": r.bar_width,
                    "positive": r.positive,
                    "tier": r.tier.value if r.tier else None,
                }
                for r in ranked[:limit]
            ]

        return {
            "by_equity_return": _rows(equity_ranking(deals, min_width)),
            "by_monthly_cashflow": _rows(cashflow_ranking(deals, min_width)),
        }

    @app.get("/api/export")
    async def export_deals():
        deals = desk.deals()
        if not deals:
            raise HTTPException(status_code=404, detail=NOTHING_TO_EXPORT)
        return [d.model_dump(mode="json") for d in deals]

    @app.get("/api/config")
    async def get_config():
        return cfg.model_dump()

    return app
