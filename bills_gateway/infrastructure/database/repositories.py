"""
Data access layer for obligation sources.

Each repository implements one accessor protocol from domain.sources. Queries
are blocking SQLAlchemy calls run in a worker thread, each with its own
session, so the aggregation fan-out can await them concurrently.
"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from bills_gateway.domain.exceptions import InvalidRecurrenceDefinition
from bills_gateway.domain.models import Goal, LiabilityScheduleEntry, RecurringObligation, ScheduledPayment
from bills_gateway.domain.recurrence import calculate_next_occurrence, decode_recurrence
from bills_gateway.infrastructure.database.models import (
    Account,
    Category,
    GoalRecord,
    Liability,
    LiabilitySchedule,
    RecurringTransaction,
    ScheduledTransaction,
)


class RecurringTransactionRepository:
    """Repository for recurring obligations"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def list_recurring_obligations(self, user_id: str) -> List[RecurringObligation]:
        """Fetch every non-deleted recurring transaction for a user (any status)"""
        return await asyncio.to_thread(self._list, user_id)

    def _query(self, db: Session, user_id: str):
        return (
            db.query(RecurringTransaction)
            .filter(RecurringTransaction.user_id == user_id)
            .filter(RecurringTransaction.is_deleted.is_(False))
        )

    def _list(self, user_id: str) -> List[RecurringObligation]:
        with self.session_factory() as db:
            rows = (
                self._query(db, user_id)
                .order_by(RecurringTransaction.next_due_date, RecurringTransaction.id)
                .all()
            )
            return [to_recurring_obligation(row) for row in rows]

    async def refresh_next_due_dates(self, user_id: str, as_of: date) -> int:
        """
        Recompute the cached next_due_date of every active recurring transaction.

        Rows whose rule no longer yields a date (series ended or malformed)
        get None. Returns the number of rows whose cached value changed.
        """
        return await asyncio.to_thread(self._refresh, user_id, as_of)

    def _refresh(self, user_id: str, as_of: date) -> int:
        changed = 0
        with self.session_factory() as db:
            rows = self._query(db, user_id).filter(RecurringTransaction.status == "active").all()
            for row in rows:
                try:
                    next_due = calculate_next_occurrence(decode_recurrence(recurrence_fields(row)), as_of)
                except InvalidRecurrenceDefinition as e:
                    logging.warning(
                        f"Invalid recurrence on recurring transaction: {e}",
                        extra={"source_id": row.id},
                    )
                    next_due = None
                if row.next_due_date != next_due:
                    row.next_due_date = next_due
                    changed += 1
            db.commit()
        return changed


def recurrence_fields(row: RecurringTransaction) -> Dict[str, object]:
    """Undecoded recurrence columns, handed to the domain as-is"""
    return {
        "frequency": row.frequency,
        "interval": row.interval,
        "start_date": row.start_date,
        "end_date": row.end_date,
        "date_of_occurrence": row.date_of_occurrence,
        "custom_unit": row.custom_unit,
        "custom_interval": row.custom_interval,
    }


def to_recurring_obligation(row: RecurringTransaction) -> RecurringObligation:
    return RecurringObligation(
        id=row.id,
        title=row.title,
        amount=row.amount,
        currency=row.currency,
        recurrence=recurrence_fields(row),
        status=row.status,
        amount_type=row.amount_type or "fixed",
        estimated_amount=row.estimated_amount,
        nature=row.nature,
        description=row.description,
        category_id=row.category_id,
        account_id=row.account_id,
        color=row.color,
        icon=row.icon,
        next_due_date=row.next_due_date,
        metadata=dict(row.extra or {}),
    )


class LiabilityScheduleRepository:
    """Repository for installments of active liabilities"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def list_schedule_entries(self, user_id: str) -> List[LiabilityScheduleEntry]:
        """Fetch installments of the user's active, non-deleted liabilities"""
        return await asyncio.to_thread(self._list, user_id)

    def _list(self, user_id: str) -> List[LiabilityScheduleEntry]:
        with self.session_factory() as db:
            rows = (
                db.query(LiabilitySchedule, Liability)
                .join(Liability, LiabilitySchedule.liability_id == Liability.id)
                .filter(LiabilitySchedule.user_id == user_id)
                .filter(Liability.status == "active")
                .filter(Liability.is_deleted.is_(False))
                .order_by(LiabilitySchedule.due_date, LiabilitySchedule.id)
                .all()
            )
            return [
                LiabilityScheduleEntry(
                    id=schedule.id,
                    liability_id=liability.id,
                    liability_title=liability.title,
                    due_date=schedule.due_date,
                    amount=schedule.amount,
                    currency=liability.currency,
                    status=schedule.status,
                    account_id=schedule.account_id,
                    principal_amount=schedule.principal_amount,
                    interest_amount=schedule.interest_amount,
                    payment_number=schedule.payment_number,
                    description=(schedule.extra or {}).get("description"),
                    color=liability.color,
                    icon=liability.icon,
                    metadata=dict(schedule.extra or {}),
                )
                for schedule, liability in rows
            ]


class ScheduledPaymentRepository:
    """Repository for one-off scheduled payments"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def list_scheduled_payments(self, user_id: str) -> List[ScheduledPayment]:
        return await asyncio.to_thread(self._list, user_id)

    def _list(self, user_id: str) -> List[ScheduledPayment]:
        with self.session_factory() as db:
            rows = (
                db.query(ScheduledTransaction)
                .filter(ScheduledTransaction.user_id == user_id)
                .order_by(ScheduledTransaction.due_date, ScheduledTransaction.id)
                .all()
            )
            return [
                ScheduledPayment(
                    id=row.id,
                    title=row.title,
                    amount=row.amount,
                    currency=row.currency,
                    due_date=row.due_date,
                    status=row.status,
                    description=row.description,
                    category_id=row.category_id,
                    account_id=row.linked_account_id,
                    color=row.color,
                    icon=row.icon,
                    metadata=dict(row.extra or {}),
                )
                for row in rows
            ]


class GoalRepository:
    """Repository for savings goals that still need contributions"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def list_open_goals(self, user_id: str) -> List[Goal]:
        return await asyncio.to_thread(self._list, user_id)

    def _list(self, user_id: str) -> List[Goal]:
        with self.session_factory() as db:
            rows = (
                db.query(GoalRecord)
                .filter(GoalRecord.user_id == user_id)
                .filter(GoalRecord.is_deleted.is_(False))
                .filter(GoalRecord.is_achieved.is_(False))
                .order_by(GoalRecord.id)
                .all()
            )
            return [
                Goal(
                    id=row.id,
                    title=row.title,
                    target_amount=row.target_amount,
                    current_amount=row.current_amount or 0,
                    currency=row.currency,
                    target_date=row.target_date,
                    description=row.description,
                    color=row.color,
                    icon=row.icon,
                )
                for row in rows
            ]


class LookupRepository:
    """Category/account display names, cached for the lifetime of the instance"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._categories: Dict[str, Optional[str]] = {}
        self._accounts: Dict[str, Optional[str]] = {}

    async def category_name(self, category_id: str) -> Optional[str]:
        if category_id not in self._categories:
            self._categories[category_id] = await asyncio.to_thread(self._name, Category, category_id)
        return self._categories[category_id]

    async def account_name(self, account_id: str) -> Optional[str]:
        if account_id not in self._accounts:
            self._accounts[account_id] = await asyncio.to_thread(self._name, Account, account_id)
        return self._accounts[account_id]

    def _name(self, model, key: str) -> Optional[str]:
        with self.session_factory() as db:
            row = db.query(model.name).filter(model.id == key).first()
            return row[0] if row else None
