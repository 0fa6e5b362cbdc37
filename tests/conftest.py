"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from bills_gateway.api.main import create_app
from bills_gateway.domain.models import Window
from bills_gateway.infrastructure.database.models import (
    Account,
    Base,
    Category,
    GoalRecord,
    Liability,
    LiabilitySchedule,
    RecurringTransaction,
    ScheduledTransaction,
)
from bills_gateway.infrastructure.database.session import get_session_factory


# Test database; file-backed so worker-thread sessions see the same data
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

AS_OF = date(2025, 6, 10)


class StubAccessor:
    """In-memory accessor serving every source protocol; optionally fails"""

    def __init__(self, rows: Optional[List] = None, error: Optional[Exception] = None):
        self.rows = rows or []
        self.error = error
        self.calls = 0

    async def _serve(self) -> List:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.rows)

    async def list_recurring_obligations(self, user_id: str):
        return await self._serve()

    async def list_schedule_entries(self, user_id: str):
        return await self._serve()

    async def list_scheduled_payments(self, user_id: str):
        return await self._serve()

    async def list_open_goals(self, user_id: str):
        return await self._serve()


class StubResolver:
    """Name resolver with fixed labels; ids listed in broken raise"""

    def __init__(self, categories=None, accounts=None, broken=()):
        self.categories = categories or {}
        self.accounts = accounts or {}
        self.broken = set(broken)

    async def category_name(self, category_id: str):
        if category_id in self.broken:
            raise LookupError(category_id)
        return self.categories.get(category_id)

    async def account_name(self, account_id: str):
        if account_id in self.broken:
            raise LookupError(account_id)
        return self.accounts.get(account_id)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def june_window() -> Window:
    """Whole of June 2025, evaluated on June 10th"""
    return Window(start_date=date(2025, 6, 1), end_date=date(2025, 6, 30), as_of_date=AS_OF)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Create test database and hand out its session factory"""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory: sessionmaker) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return TestClient(app)


@pytest.fixture
def seeded_db(db: Session) -> Session:
    """One user with an obligation of every source type around June 2025"""
    db.add_all(
        [
            Category(id="cat-ent", name="Entertainment"),
            Account(id="acc-main", user_id="user_1", name="Main Checking"),
            RecurringTransaction(
                id="rt-netflix",
                user_id="user_1",
                title="Netflix",
                amount=649,
                currency="INR",
                frequency="monthly",
                interval=1,
                start_date=date(2025, 1, 5),
                category_id="cat-ent",
                account_id="acc-main",
                nature="subscription",
            ),
            RecurringTransaction(
                id="rt-gym",
                user_id="user_1",
                title="Gym",
                amount=1500,
                currency="INR",
                frequency="monthly",
                interval=1,
                start_date=date(2025, 1, 20),
                status="paused",
            ),
            RecurringTransaction(
                id="rt-broken",
                user_id="user_1",
                title="Broken rule",
                amount=10,
                currency="INR",
                frequency="fortnightly",
                interval=1,
                start_date=date(2025, 1, 1),
            ),
            Liability(id="li-car", user_id="user_1", title="Car Loan", currency="INR", current_balance=400000),
            LiabilitySchedule(
                id="ls-1",
                user_id="user_1",
                liability_id="li-car",
                due_date=date(2025, 6, 10),
                amount=12000,
                status="pending",
                principal_amount=9000,
                interest_amount=3000,
                payment_number=7,
            ),
            LiabilitySchedule(
                id="ls-0",
                user_id="user_1",
                liability_id="li-car",
                due_date=date(2025, 6, 2),
                amount=12000,
                status="completed",
                payment_number=6,
            ),
            ScheduledTransaction(
                id="sp-insurance",
                user_id="user_1",
                title="Insurance premium",
                amount=8000,
                currency="INR",
                due_date=date(2025, 6, 3),
                status="scheduled",
                linked_account_id="acc-main",
            ),
            GoalRecord(
                id="goal-trip",
                user_id="user_1",
                title="Trip",
                target_amount=30000,
                current_amount=18000,
                currency="INR",
                target_date=date(2025, 9, 10),
            ),
        ]
    )
    db.commit()
    return db
