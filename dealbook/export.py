"""JSON export and import of deal collections.

Two record shapes are understood on import: the current nested schema
(``{"id", "schema_version", "created_at", "input", "result"}``) and the flat
records written by the old browser app, e.g.::

    {"id": 1712345678901, "title": "Flat Lindenstr.", "purchasePrice": 250000,
     "equity": 50000, "rent": 900, "expenses": 350, "interestRate": 4,
     "loanYears": 30, "brokerPercent": 3, "otherCostsPercent": 4.5,
     "propertyType": "wohnung", "strategy": "buy_and_hold",
     "photoUrl": "https://...", "monthlyCashflow": -404.83, ...}

Legacy records are re-evaluated from their inputs; the stored metrics are
ignored. Current records keep their stored metrics unless one is not finite.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dealbook.analysis.valuation import evaluate
from dealbook.models import Deal, DealInput

logger = logging.getLogger(__name__)

LEGACY_PROPERTY_TYPES = {
    "wohnung": "apartment",
    "haus": "house",
    "sanierung": "renovation_project",
    "gewerbe": "commercial",
}

LEGACY_STRATEGIES = {
    "buy_and_hold": "buy_and_hold",
    "flip": "fix_and_flip",
    "eigennutzung": "owner_occupied",
}

LEGACY_FIELDS = {
    "title": "title",
    "purchasePrice": "purchase_price",
    "equity": "equity",
    "rent": "monthly_rent",
    "expenses": "monthly_expenses",
    "interestRate": "annual_interest_rate_percent",
    "loanYears": "loan_term_years",
    "brokerPercent": "broker_fee_percent",
    "otherCostsPercent": "other_costs_percent",
}


class InterchangeError(ValueError):
    """Raised when an export document cannot be read at all."""


def dump_deals(deals: list[Deal]) -> str:
    """Serialize deals as a pretty-printed JSON list."""
    return json.dumps([d.model_dump(mode="json") for d in deals], indent=2, ensure_ascii=False)


def _legacy_created_at(deal_id: int) -> datetime:
    # Legacy ids are millisecond timestamps
    try:
        return datetime.fromtimestamp(deal_id / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.now(timezone.utc)


def _from_legacy(record: dict[str, Any]) -> Deal:
    if "id" not in record:
        raise ValueError("record has no id")
    deal_id = int(record["id"])

    values = {new: record[old] for old, new in LEGACY_FIELDS.items() if old in record}
    raw_type = record.get("propertyType") or "wohnung"
    values["property_type"] = LEGACY_PROPERTY_TYPES.get(raw_type, raw_type)
    raw_strategy = record.get("strategy") or "buy_and_hold"
    values["strategy"] = LEGACY_STRATEGIES.get(raw_strategy, raw_strategy)
    photos = record.get("photos")
    if not isinstance(photos, list):
        photos = [record["photoUrl"]] if record.get("photoUrl") else []
    values["photos"] = photos

    deal_input = DealInput.model_validate(values)
    return Deal(
        id=deal_id,
        created_at=_legacy_created_at(deal_id),
        input=deal_input,
        result=evaluate(deal_input),
    )


def _parse_record(record: Any) -> Deal:
    if not isinstance(record, dict):
        raise ValueError(f"expected an object, got {type(record).__name__}")
    if "input" in record and "result" in record:
        deal = Deal.model_validate(record)
        if not all(math.isfinite(v) for v in deal.result.model_dump().values()):
            logger.warning("Record %s has non-finite metrics; re-evaluating", deal.id)
            deal = deal.model_copy(update={"result": evaluate(deal.input)})
        return deal
    return _from_legacy(record)


def load_deals(text: str) -> list[Deal]:
    """Parse an export document into deals, skipping malformed records."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InterchangeError(f"Not a valid JSON document: {e}") from e
    if not isinstance(data, list):
        raise InterchangeError("Expected a JSON list of deals")

    deals: list[Deal] = []
    for index, record in enumerate(data):
        try:
            deals.append(_parse_record(record))
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("Skipping record %d: %s", index, e)
    return deals


def export_to_file(deals: list[Deal], path: Path) -> None:
    Path(path).write_text(dump_deals(deals), encoding="utf-8")
    logger.info("Exported %d deal(s) to %s", len(deals), path)


def import_from_file(path: Path) -> list[Deal]:
    return load_deals(Path(path).read_text(encoding="utf-8"))
