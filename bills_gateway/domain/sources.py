"""
Source adapters - normalize each obligation source into UnifiedObligationRecord.

Four sources feed the Bills view:
1. Recurring transactions (Netflix, rent) - occurrences projected from a rule
2. Liability schedules (loan EMIs) - installments already materialized as rows
3. Scheduled payments - one-off future payments
4. Goal contributions - monthly targets synthesized from a goal's shortfall

Accessors and the name resolver are injected; adapters never talk to storage
directly.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from bills_gateway.domain.exceptions import AdapterFetchError
from bills_gateway.domain.models import (
    BillsFilters,
    Frequency,
    Goal,
    LiabilityScheduleEntry,
    RecurrenceDefinition,
    RecurringObligation,
    ScheduledPayment,
    SourceType,
    UnifiedObligationRecord,
    Window,
)
from bills_gateway.domain.recurrence import (
    MAX_SCHEDULE_ITERATIONS,
    decode_recurrence,
    generate_schedule,
)
from bills_gateway.domain.status import calculate_status, get_days_until

DEFAULT_CURRENCY = "INR"
DAYS_PER_GOAL_MONTH = 30


class RecurringObligationAccessor(Protocol):
    async def list_recurring_obligations(self, user_id: str) -> List[RecurringObligation]: ...


class LiabilityScheduleAccessor(Protocol):
    async def list_schedule_entries(self, user_id: str) -> List[LiabilityScheduleEntry]: ...


class ScheduledPaymentAccessor(Protocol):
    async def list_scheduled_payments(self, user_id: str) -> List[ScheduledPayment]: ...


class GoalAccessor(Protocol):
    async def list_open_goals(self, user_id: str) -> List[Goal]: ...


class NameResolver(Protocol):
    """Display-label lookups; returns None for unknown ids"""

    async def category_name(self, category_id: str) -> Optional[str]: ...

    async def account_name(self, account_id: str) -> Optional[str]: ...


class SourceAdapter:
    """
    Shared fetch contract.

    Subclasses implement _load (accessor call) and _normalize (one row ->
    zero or more records). Accessor failures surface as AdapterFetchError;
    a malformed row is logged and skipped.
    """

    source_type: SourceType

    def __init__(self, resolver: Optional[NameResolver] = None, default_currency: str = DEFAULT_CURRENCY):
        self.resolver = resolver
        self.default_currency = default_currency

    async def fetch_occurrences_in_window(
        self,
        user_id: str,
        window: Window,
        filters: Optional[BillsFilters] = None,
    ) -> List[UnifiedObligationRecord]:
        filters = filters or BillsFilters()
        try:
            rows = await self._load(user_id)
        except Exception as e:
            raise AdapterFetchError(
                self.source_type.value,
                f"Failed to load {self.source_type.value} rows: {e}",
            ) from e

        records: List[UnifiedObligationRecord] = []
        for row in rows:
            try:
                records.extend(await self._normalize(row, window, filters))
            except (ValueError, TypeError, ArithmeticError) as e:
                logging.warning(
                    f"Skipping malformed {self.source_type.value} row: {e}",
                    extra={"source_type": self.source_type.value, "source_id": getattr(row, "id", None)},
                )
        return records

    async def _load(self, user_id: str) -> List[Any]:
        raise NotImplementedError

    async def _normalize(self, row: Any, window: Window, filters: BillsFilters) -> List[UnifiedObligationRecord]:
        raise NotImplementedError

    @staticmethod
    def _excluded_by(filters: BillsFilters, category_id: Optional[str], account_id: Optional[str]) -> bool:
        """Cheap pre-check so rows that the post-filter would drop are not expanded"""
        if filters.category_id and category_id != filters.category_id:
            return True
        if filters.account_id and account_id != filters.account_id:
            return True
        return False

    async def _category_name(self, category_id: Optional[str]) -> Optional[str]:
        if self.resolver is None or not category_id:
            return None
        try:
            return await self.resolver.category_name(category_id)
        except Exception as e:
            logging.debug(f"Category lookup failed: {e}", extra={"category_id": category_id})
            return None

    async def _account_name(self, account_id: Optional[str]) -> Optional[str]:
        if self.resolver is None or not account_id:
            return None
        try:
            return await self.resolver.account_name(account_id)
        except Exception as e:
            logging.debug(f"Account lookup failed: {e}", extra={"account_id": account_id})
            return None


class RecurringObligationAdapter(SourceAdapter):
    """Projects each active recurring transaction over the window"""

    source_type = SourceType.RECURRING_TRANSACTION

    def __init__(
        self,
        accessor: RecurringObligationAccessor,
        resolver: Optional[NameResolver] = None,
        default_currency: str = DEFAULT_CURRENCY,
        max_iterations: int = MAX_SCHEDULE_ITERATIONS,
    ):
        super().__init__(resolver, default_currency)
        self.accessor = accessor
        self.max_iterations = max_iterations

    async def _load(self, user_id: str) -> List[RecurringObligation]:
        return await self.accessor.list_recurring_obligations(user_id)

    async def _normalize(
        self, row: RecurringObligation, window: Window, filters: BillsFilters
    ) -> List[UnifiedObligationRecord]:
        if row.status != "active" or self._excluded_by(filters, row.category_id, row.account_id):
            return []

        definition = decode_recurrence(row.recurrence)
        amount = resolve_amount(row)
        occurrences = generate_schedule(definition, window, amount=amount, max_iterations=self.max_iterations)
        if not occurrences:
            return []

        category_name = await self._category_name(row.category_id)
        account_name = await self._account_name(row.account_id)
        metadata: Dict[str, Any] = {
            "nature": row.nature,
            "amount_type": row.amount_type,
            "estimated_amount": row.estimated_amount,
            **row.metadata,
        }

        return [
            UnifiedObligationRecord(
                # Occurrences are not rows of their own; identity is derived
                id=f"{row.id}_{occurrence.date.isoformat()}",
                source_type=self.source_type,
                source_id=row.id,
                title=row.title,
                amount=occurrence.amount,
                currency=row.currency or self.default_currency,
                due_date=occurrence.date,
                status=occurrence.status,
                days_until=occurrence.days_from_now,
                description=row.description,
                category_id=row.category_id,
                category_name=category_name,
                account_id=row.account_id,
                account_name=account_name,
                color=row.color,
                icon=row.icon,
                metadata=dict(metadata),
            )
            for occurrence in occurrences
        ]


def resolve_amount(row: RecurringObligation) -> Optional[float]:
    """Variable amounts resolve to their estimate, falling back to the nominal amount"""
    if row.amount_type == "variable":
        if row.estimated_amount is not None:
            return row.estimated_amount
        return row.amount
    return row.amount


class LiabilityScheduleAdapter(SourceAdapter):
    """Liability installments; rows are already 1:1 with occurrences"""

    source_type = SourceType.LIABILITY

    def __init__(
        self,
        accessor: LiabilityScheduleAccessor,
        resolver: Optional[NameResolver] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(resolver, default_currency)
        self.accessor = accessor

    async def _load(self, user_id: str) -> List[LiabilityScheduleEntry]:
        return await self.accessor.list_schedule_entries(user_id)

    async def _normalize(
        self, row: LiabilityScheduleEntry, window: Window, filters: BillsFilters
    ) -> List[UnifiedObligationRecord]:
        if not window.contains(row.due_date) or self._excluded_by(filters, None, row.account_id):
            return []

        metadata: Dict[str, Any] = {"nature": "payment", "amount_type": "fixed"}
        for key in ("principal_amount", "interest_amount", "payment_number"):
            value = getattr(row, key)
            if value is not None:
                metadata[key] = value
        metadata.update(row.metadata)

        return [
            UnifiedObligationRecord(
                id=row.id,
                source_type=self.source_type,
                source_id=row.liability_id,
                title=f"{row.liability_title} - Payment",
                amount=row.amount,
                currency=row.currency or self.default_currency,
                due_date=row.due_date,
                status=calculate_status(row.due_date, window.as_of_date, row.status),
                days_until=get_days_until(row.due_date, window.as_of_date),
                description=row.description,
                account_id=row.account_id,
                account_name=await self._account_name(row.account_id),
                color=row.color or "#EF4444",
                icon=row.icon or "card",
                metadata=metadata,
            )
        ]


class ScheduledPaymentAdapter(SourceAdapter):
    """One-off scheduled payments"""

    source_type = SourceType.SCHEDULED_PAYMENT

    def __init__(
        self,
        accessor: ScheduledPaymentAccessor,
        resolver: Optional[NameResolver] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(resolver, default_currency)
        self.accessor = accessor

    async def _load(self, user_id: str) -> List[ScheduledPayment]:
        return await self.accessor.list_scheduled_payments(user_id)

    async def _normalize(
        self, row: ScheduledPayment, window: Window, filters: BillsFilters
    ) -> List[UnifiedObligationRecord]:
        if not window.contains(row.due_date) or self._excluded_by(filters, row.category_id, row.account_id):
            return []

        return [
            UnifiedObligationRecord(
                id=row.id,
                source_type=self.source_type,
                source_id=row.id,
                title=row.title,
                amount=row.amount,
                currency=row.currency or self.default_currency,
                due_date=row.due_date,
                status=calculate_status(row.due_date, window.as_of_date, row.status),
                days_until=get_days_until(row.due_date, window.as_of_date),
                description=row.description,
                category_id=row.category_id,
                category_name=await self._category_name(row.category_id),
                account_id=row.account_id,
                account_name=await self._account_name(row.account_id),
                color=row.color,
                icon=row.icon,
                metadata=dict(row.metadata),
            )
        ]


class GoalContributionAdapter(SourceAdapter):
    """
    Monthly contribution targets for open goals.

    The shortfall (target - current) is spread over the months left until the
    goal's target date, counted as elapsed days over a 30-day month.
    """

    source_type = SourceType.GOAL_CONTRIBUTION

    def __init__(
        self,
        accessor: GoalAccessor,
        resolver: Optional[NameResolver] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(resolver, default_currency)
        self.accessor = accessor

    async def _load(self, user_id: str) -> List[Goal]:
        return await self.accessor.list_open_goals(user_id)

    async def _normalize(self, row: Goal, window: Window, filters: BillsFilters) -> List[UnifiedObligationRecord]:
        # Goals carry no category or account, so any such filter excludes them
        if filters.category_id or filters.account_id:
            return []

        as_of = window.as_of_date
        remaining = (row.target_amount or 0) - (row.current_amount or 0)
        if row.target_date is None or remaining <= 0 or row.target_date <= as_of:
            return []

        definition = contribution_schedule(as_of, row.target_date)
        months_remaining = max(1, get_days_until(row.target_date, as_of) / DAYS_PER_GOAL_MONTH)
        monthly_amount = round(remaining / months_remaining, 2)

        return [
            UnifiedObligationRecord(
                id=f"{row.id}_{occurrence.date.isoformat()}",
                source_type=self.source_type,
                source_id=row.id,
                title=f"{row.title} - Target Payment",
                amount=monthly_amount,
                currency=row.currency or self.default_currency,
                due_date=occurrence.date,
                status=occurrence.status,
                days_until=occurrence.days_from_now,
                description=f"Contribution to reach {row.title} target",
                color=row.color or "#10B981",
                icon=row.icon or "target",
                metadata={
                    "nature": "payment",
                    "amount_type": "fixed",
                    "target_amount": row.target_amount,
                    "current_amount": row.current_amount,
                    "remaining_amount": remaining,
                    "months_remaining": months_remaining,
                },
            )
            for occurrence in generate_schedule(definition, window)
        ]


def contribution_schedule(as_of: date, target_date: date) -> RecurrenceDefinition:
    """Monthly series on as_of's day of month, ending at the target date"""
    return RecurrenceDefinition(
        frequency=Frequency.MONTH,
        interval=1,
        start_date=as_of,
        end_date=target_date,
        date_of_occurrence=as_of.day,
    )
