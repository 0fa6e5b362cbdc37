"""SQLAlchemy ORM models for the obligation source tables read by the Bills view"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Date, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Category(Base):
    """Transaction category (display label lookup only)"""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=True, index=True)
    name = Column(Text, nullable=False)


class Account(Base):
    """Ledger account (display label lookup only)"""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)


class RecurringTransaction(Base):
    """Recurring obligation with its recurrence rule stored as flat columns"""

    __tablename__ = "recurring_transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    nature = Column(Text, nullable=True)
    amount = Column(Float, nullable=True)
    amount_type = Column(Text, nullable=False, default="fixed")
    estimated_amount = Column(Float, nullable=True)
    currency = Column(String(3), nullable=True)
    frequency = Column(Text, nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    date_of_occurrence = Column(Integer, nullable=True)
    custom_unit = Column(Text, nullable=True)
    custom_interval = Column(Integer, nullable=True)
    status = Column(Text, nullable=False, default="active")
    next_due_date = Column(Date, nullable=True, index=True)
    category_id = Column(String(36), nullable=True)
    account_id = Column(String(36), nullable=True)
    color = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Liability(Base):
    """Loan-like liability; its installments live in liability_schedules"""

    __tablename__ = "liabilities"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    currency = Column(String(3), nullable=True)
    current_balance = Column(Float, nullable=False, default=0)
    interest_rate_apy = Column(Float, nullable=True)
    periodical_payment = Column(Float, nullable=True)
    status = Column(Text, nullable=False, default="active")
    color = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    schedules = relationship("LiabilitySchedule", back_populates="liability", cascade="all, delete-orphan")


class LiabilitySchedule(Base):
    """Materialized liability installment"""

    __tablename__ = "liability_schedules"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    liability_id = Column(String(36), ForeignKey("liabilities.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(String(36), nullable=True)
    due_date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    principal_amount = Column(Float, nullable=True)
    interest_amount = Column(Float, nullable=True)
    payment_number = Column(Integer, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    liability = relationship("Liability", back_populates="schedules")


class ScheduledTransaction(Base):
    """One-off future payment"""

    __tablename__ = "scheduled_transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(String(36), nullable=True)
    linked_account_id = Column(String(36), nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=True)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="scheduled")
    color = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class GoalRecord(Base):
    """Savings goal"""

    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    target_amount = Column(Float, nullable=False)
    current_amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3), nullable=True)
    target_date = Column(Date, nullable=True)
    color = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    is_achieved = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
