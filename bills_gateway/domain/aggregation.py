"""Bills view aggregation - merge every source adapter into one ordered timeline"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from bills_gateway.domain.exceptions import AdapterFetchError
from bills_gateway.domain.models import (
    BillsFilters,
    ObligationStatus,
    ObligationSummary,
    SourceTotals,
    SourceType,
    UnifiedObligationRecord,
    UpcomingView,
    Window,
)
from bills_gateway.domain.sources import SourceAdapter
from bills_gateway.domain.status import get_days_until


def _sort_key(record: UnifiedObligationRecord) -> Tuple[str, str, str, str]:
    # due date first; ties broken by source so repeated calls order identically
    return (record.due_date.isoformat(), record.source_type.value, record.source_id, record.id)


def _matches(record: UnifiedObligationRecord, filters: BillsFilters) -> bool:
    if record.status == ObligationStatus.PAID and not filters.include_paid:
        return False
    if record.status == ObligationStatus.CANCELLED and not filters.include_cancelled:
        return False
    if filters.statuses and record.status not in filters.statuses:
        return False
    if filters.category_id and record.category_id != filters.category_id:
        return False
    if filters.account_id and record.account_id != filters.account_id:
        return False
    if filters.search:
        needle = filters.search.lower()
        haystacks = [record.title or "", record.description or ""]
        if not any(needle in text.lower() for text in haystacks):
            return False
    return True


class AggregationService:
    """
    Entry point for the Bills view.

    Adapters run concurrently; a failing adapter is recorded in
    failed_sources and the view is marked partial instead of failing.
    """

    def __init__(self, adapters: Sequence[SourceAdapter]):
        self.adapters: Dict[SourceType, SourceAdapter] = {a.source_type: a for a in adapters}

    def _selected(self, filters: BillsFilters) -> List[SourceAdapter]:
        if not filters.source_types:
            return list(self.adapters.values())
        return [a for t, a in self.adapters.items() if t in filters.source_types]

    async def fetch_all_upcoming(
        self,
        user_id: str,
        window: Window,
        filters: Optional[BillsFilters] = None,
    ) -> UpcomingView:
        """
        Fetch, filter and order every obligation in the window.

        Flow:
        1. Fan out to the selected adapters
        2. Drop paid/cancelled unless requested, then status/category/account/search
        3. Sort by (due_date, source_type, source_id)
        4. Compute days_until against window.as_of_date
        """
        filters = filters or BillsFilters()
        adapters = self._selected(filters)

        results = await asyncio.gather(
            *(adapter.fetch_occurrences_in_window(user_id, window, filters) for adapter in adapters),
            return_exceptions=True,
        )

        records: List[UnifiedObligationRecord] = []
        failed: List[SourceType] = []
        for adapter, result in zip(adapters, results):
            if isinstance(result, AdapterFetchError):
                logging.warning(
                    f"Source adapter failed: {result}",
                    extra={"user_id": user_id, "source_type": adapter.source_type.value},
                )
                failed.append(adapter.source_type)
                continue
            if isinstance(result, BaseException):
                raise result
            records.extend(result)

        filtered = [r for r in records if _matches(r, filters)]
        filtered.sort(key=_sort_key)

        return UpcomingView(
            records=[replace(r, days_until=get_days_until(r.due_date, window.as_of_date)) for r in filtered],
            partial=bool(failed),
            failed_sources=failed,
        )

    async def get_summary(
        self,
        user_id: str,
        window: Window,
        filters: Optional[BillsFilters] = None,
    ) -> ObligationSummary:
        """Totals by status and by source over the Bills view (paid/cancelled excluded by default)"""
        view = await self.fetch_all_upcoming(user_id, window, filters or BillsFilters())

        counts: Dict[ObligationStatus, int] = {
            ObligationStatus.UPCOMING: 0,
            ObligationStatus.DUE_TODAY: 0,
            ObligationStatus.OVERDUE: 0,
        }
        by_source: Dict[SourceType, SourceTotals] = {}
        total_amount = 0.0

        for record in view.records:
            amount = record.amount or 0.0
            total_amount += amount
            counts[record.status] = counts.get(record.status, 0) + 1
            totals = by_source.setdefault(record.source_type, SourceTotals())
            totals.count += 1
            totals.amount = round(totals.amount + amount, 2)

        return ObligationSummary(
            total=len(view.records),
            total_amount=round(total_amount, 2),
            counts_by_status=counts,
            amounts_by_source=by_source,
            partial=view.partial,
        )
