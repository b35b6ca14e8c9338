"""Evaluate-then-commit workflow around the valuation engine and deal store."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from dealbook.analysis.valuation import evaluate
from dealbook.db.repository import Repository
from dealbook.export import export_to_file, import_from_file
from dealbook.models import CommitOutcome, Deal, DealInput, ValuationResult

logger = logging.getLogger(__name__)

NOT_CALCULATED = "Calculate the deal before adding it."
MISSING_TITLE = "Give the property a name before adding it."
NOTHING_TO_EXPORT = "There are no deals to export."


class DealDesk:
    """Holds the transient valuation of the deal being edited and commits it.

    Validation failures come back as a CommitOutcome with a reason instead of
    an exception. Commits are serialized by a lock so ids stay unique.
    """

    def __init__(self, repository: Repository):
        self.repo = repository
        self.last_input: Optional[DealInput] = None
        self.last_result: Optional[ValuationResult] = None
        self._lock = threading.Lock()
        self._last_id = 0

    def evaluate(self, raw: DealInput | Mapping[str, Any]) -> ValuationResult:
        deal_input = raw if isinstance(raw, DealInput) else DealInput.model_validate(dict(raw))
        result = evaluate(deal_input)
        self.last_input = deal_input
        self.last_result = result
        return result

    def _next_id(self) -> int:
        candidate = int(time.time() * 1000)
        floor = max(self._last_id, self.repo.max_id())
        self._last_id = max(candidate, floor + 1)
        return self._last_id

    def commit(
        self,
        deal_input: DealInput | Mapping[str, Any] | None = None,
        result: Optional[ValuationResult] = None,
    ) -> CommitOutcome:
        """Store a valuated deal.

        Without arguments the last evaluated deal is committed. Passing an
        input without a result evaluates it first.
        """
        if deal_input is None:
            deal_input, result = self.last_input, self.last_result
        elif not isinstance(deal_input, DealInput):
            deal_input = DealInput.model_validate(dict(deal_input))

        if deal_input is None:
            return CommitOutcome(ok=False, reason=NOT_CALCULATED)
        title = deal_input.title.strip()
        if not title:
            return CommitOutcome(ok=False, reason=MISSING_TITLE)
        if result is None:
            result = evaluate(deal_input)

        with self._lock:
            deal = Deal(
                id=self._next_id(),
                input=deal_input.model_copy(update={"title": title}),
                result=result,
            )
            self.repo.add(deal)
        return CommitOutcome(ok=True, deal=deal)

    def deals(self) -> list[Deal]:
        return self.repo.list_deals()

    def get(self, deal_id: int) -> Optional[Deal]:
        return self.repo.get(deal_id)

    def delete(self, deal_id: int) -> bool:
        with self._lock:
            return self.repo.delete(deal_id)

    def clear(self) -> int:
        with self._lock:
            return self.repo.clear()

    def export(self, path: Path) -> CommitOutcome:
        deals = self.deals()
        if not deals:
            return CommitOutcome(ok=False, reason=NOTHING_TO_EXPORT)
        export_to_file(deals, path)
        return CommitOutcome(ok=True)

    def import_deals(self, path: Path) -> list[Deal]:
        """Add deals from an export file, skipping ids already present."""
        imported: list[Deal] = []
        with self._lock:
            for deal in import_from_file(path):
                if self.repo.get(deal.id) is not None:
                    logger.warning("Skipping deal %d: id already present", deal.id)
                    continue
                imported.append(self.repo.add(deal))
        logger.info("Imported %d deal(s) from %s", len(imported), path)
        return imported
