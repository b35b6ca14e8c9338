"""Database repository for storing and retrieving committed deals."""

from __future__ import annotations

import logging
from datetime import timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from dealbook.db.tables import DealRow, init_db
from dealbook.models import Deal, DealInput, ValuationResult

logger = logging.getLogger(__name__)

_INPUT_FIELDS = tuple(f for f in DealInput.model_fields if f not in ("property_type", "strategy"))
_RESULT_FIELDS = tuple(ValuationResult.model_fields)


def _to_row(deal: Deal) -> DealRow:
    values = {name: getattr(deal.input, name) for name in _INPUT_FIELDS}
    values.update({name: getattr(deal.result, name) for name in _RESULT_FIELDS})
    return DealRow(
        id=deal.id,
        schema_version=deal.schema_version,
        created_at=deal.created_at,
        property_type=deal.input.property_type.value,
        strategy=deal.input.strategy.value,
        **values,
    )


def _to_deal(row: DealRow) -> Deal:
    created_at = row.created_at
    if created_at is not None and created_at.tzinfo is None:
        # SQLite drops the offset; values are always written in UTC
        created_at = created_at.replace(tzinfo=timezone.utc)
    deal_input = DealInput(
        property_type=row.property_type,
        strategy=row.strategy,
        **{name: getattr(row, name) for name in _INPUT_FIELDS},
    )
    result = ValuationResult(**{name: getattr(row, name) for name in _RESULT_FIELDS})
    return Deal(
        id=row.id,
        schema_version=row.schema_version,
        created_at=created_at,
        input=deal_input,
        result=result,
    )


class Repository:
    """Handles all database operations for the deal collection.

    Every write runs in its own session; reads return detached Deal snapshots.
    """

    def __init__(self, db_url: str = "sqlite:///dealbook.db"):
        self._session_factory = init_db(db_url)

    def _session(self) -> Session:
        return self._session_factory()

    def add(self, deal: Deal) -> Deal:
        """Persist a committed deal."""
        with self._session() as session:
            session.add(_to_row(deal))
            session.commit()
        logger.info("Saved deal %d (%s)", deal.id, deal.title)
        return deal

    def list_deals(self) -> list[Deal]:
        """All deals in insertion order."""
        with self._session() as session:
            rows = session.query(DealRow).order_by(DealRow.seq).all()
            return [_to_deal(r) for r in rows]

    def get(self, deal_id: int) -> Deal | None:
        with self._session() as session:
            row = session.query(DealRow).filter_by(id=deal_id).first()
            return _to_deal(row) if row else None

    def delete(self, deal_id: int) -> bool:
        """Remove a deal by id. Returns False if no such deal exists."""
        with self._session() as session:
            removed = session.query(DealRow).filter_by(id=deal_id).delete()
            session.commit()
        if removed:
            logger.info("Deleted deal %d", deal_id)
        return bool(removed)

    def clear(self) -> int:
        """Remove every deal. Returns the number removed."""
        with self._session() as session:
            removed = session.query(DealRow).delete()
            session.commit()
        logger.info("Cleared %d deal(s)", removed)
        return removed

    def count(self) -> int:
        with self._session() as session:
            return session.query(func.count(DealRow.seq)).scalar() or 0

    def max_id(self) -> int:
        """Largest identifier in use, or 0 for an empty store."""
        with self._session() as session:
            return session.query(func.max(DealRow.id)).scalar() or 0
