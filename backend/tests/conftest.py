"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-suite-only")

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from foodbank.core.rbac import UserRole
from foodbank.core.security import create_access_token
from foodbank.db.base import Base
from foodbank.db.row_store import RowStoreError, SqlAlchemyRowStore
from foodbank.db.session import get_db
from foodbank.main import app
# Import all models to ensure they're registered with Base.metadata
from foodbank.models import *
from foodbank.services.notification_service import (
    NotificationClient,
    NotificationResult,
    get_notification_client,
)

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class RecordingNotifier(NotificationClient):
    """Notification client that keeps every notification instead of posting it."""

    def __init__(self):
        super().__init__(webhook_url=None)
        self.sent = []

    async def send(self, notification) -> NotificationResult:
        self.sent.append(notification)
        return await super().send(notification)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_session: Session, notifier: RecordingNotifier) -> Generator[TestClient, None, None]:
    """Create a test client with database and notifier overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_client] = lambda: notifier
    # Disable the rate limiter during tests to avoid flaky failures
    from foodbank.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


# ============== Row store test doubles ==============

class FailingRowStore(SqlAlchemyRowStore):
    """SQLAlchemy row store that fails or races on demand.

    - ``fail_reads``: table names whose reads raise ``RowStoreError``
    - ``fail_updates``: table names, or ``(table, id)`` pairs, whose updates raise
    - ``fail_inserts``: table names, or ``(table, column, value)`` triples, whose inserts raise
    - ``concurrent_writes``: ``{batch_id: (times, amount)}``; before each of the
      next ``times`` conditional updates of that batch another writer removes
      ``amount`` and bumps its version, so the update hits a real conflict
    - ``status_changes``: ``{request_id: status}``; another admin moves that
      request to ``status`` right before its next conditional update
    """

    def __init__(
        self,
        db: Session,
        fail_reads=(),
        fail_updates=(),
        fail_inserts=(),
        concurrent_writes: Optional[dict] = None,
        status_changes: Optional[dict] = None,
    ):
        super().__init__(db)
        self.fail_reads = set(fail_reads)
        self.fail_updates = set(fail_updates)
        self.fail_inserts = set(fail_inserts)
        self.concurrent_writes = dict(concurrent_writes or {})
        self.status_changes = dict(status_changes or {})
        self.update_calls = []

    async def read_by_filter(self, model, *criteria, order_by=(), limit=None):
        if model.__tablename__ in self.fail_reads:
            raise RowStoreError("read", model.__tablename__, "injected read failure")
        return await super().read_by_filter(model, *criteria, order_by=order_by, limit=limit)

    async def read_by_id(self, model, row_id):
        if model.__tablename__ in self.fail_reads:
            raise RowStoreError("read", model.__tablename__, "injected read failure")
        return await super().read_by_id(model, row_id)

    async def update_by_id(self, model, row_id, values, expected=None):
        table = model.__tablename__
        self.update_calls.append((table, row_id))
        if table in self.fail_updates or (table, row_id) in self.fail_updates:
            raise RowStoreError("update", table, "injected update failure", {"id": row_id})

        if table == DonationRequest.__tablename__ and expected and row_id in self.status_changes:
            self.db.execute(
                update(DonationRequest)
                .where(DonationRequest.id == row_id)
                .values(status=self.status_changes.pop(row_id))
                .execution_options(synchronize_session=False)
            )
            self.db.commit()

        pending = self.concurrent_writes.get(row_id)
        if table == InventoryBatch.__tablename__ and expected and pending and pending[0] > 0:
            times, amount = pending
            self.concurrent_writes[row_id] = (times - 1, amount)
            self.db.execute(
                update(InventoryBatch)
                .where(InventoryBatch.id == row_id)
                .values(
                    quantity_available=InventoryBatch.quantity_available - amount,
                    version=InventoryBatch.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()

        return await super().update_by_id(model, row_id, values, expected=expected)

    async def insert(self, model, values):
        table = model.__tablename__
        if table in self.fail_inserts or any(
            isinstance(rule, tuple) and rule[0] == table and values.get(rule[1]) == rule[2]
            for rule in self.fail_inserts
        ):
            raise RowStoreError("insert", table, "injected insert failure")
        return await super().insert(model, values)


@pytest.fixture
def store(db_session: Session) -> SqlAlchemyRowStore:
    return SqlAlchemyRowStore(db_session)


@pytest.fixture
def failing_store(db_session: Session):
    """Factory: failing_store(fail_reads=..., fail_updates=..., fail_inserts=..., concurrent_writes=..., status_changes=...)."""
    def _make(**kwargs) -> FailingRowStore:
        return FailingRowStore(db_session, **kwargs)
    return _make


# ============== Users and tokens ==============

@pytest.fixture
def admin_user(db_session: Session) -> User:
    """Create an administrator."""
    user = User(email="admin@foodbank.test", name="Admin", role=UserRole.ADMIN, is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def beneficiary(db_session: Session) -> User:
    """Create a beneficiary."""
    user = User(
        email="beneficiary@foodbank.test",
        name="Beneficiary",
        role=UserRole.BENEFICIARY,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Authentication headers for the administrator."""
    return {"Authorization": f"Bearer {_token_for(admin_user)}"}


@pytest.fixture
def beneficiary_headers(beneficiary: User) -> dict:
    return {"Authorization": f"Bearer {_token_for(beneficiary)}"}


# ============== Reference data ==============

@pytest.fixture
def units(db_session: Session) -> dict:
    """Mass, volume and count units; kg -> g stored as 1000."""
    mass = MagnitudeType(name="mass")
    volume = MagnitudeType(name="volume")
    count = MagnitudeType(name="count")
    db_session.add_all([mass, volume, count])
    db_session.flush()

    kg = Unit(name="kilogram", symbol="kg", magnitude_id=mass.id)
    g = Unit(name="gram", symbol="g", magnitude_id=mass.id, is_base=True)
    lb = Unit(name="pound", symbol="lb", magnitude_id=mass.id)
    litre = Unit(name="litre", symbol="l", magnitude_id=volume.id, is_base=True)
    piece = Unit(name="piece", symbol="u", magnitude_id=count.id, is_base=True)
    db_session.add_all([kg, g, lb, litre, piece])
    db_session.flush()

    db_session.add(UnitConversion(origin_unit_id=kg.id, destination_unit_id=g.id, factor=Decimal("1000")))
    db_session.commit()
    return {"kg": kg, "g": g, "lb": lb, "l": litre, "u": piece}


@pytest.fixture
def depots(db_session: Session) -> dict:
    north = Depot(name="North Warehouse", description="Overflow storage")
    central = Depot(name="Central Pantry", description="Main storage")
    db_session.add_all([north, central])
    db_session.commit()
    return {"central": central, "north": north}


@pytest.fixture
def make_product(db_session: Session):
    """Factory: make_product(name, unit=None)."""
    def _make(name: str, unit: Optional[Unit] = None) -> DonatedProduct:
        product = DonatedProduct(name=name, unit_id=unit.id if unit is not None else None)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_batch(db_session: Session, depots: dict):
    """Factory: make_batch(product, quantity, depot=None, age_minutes=0).

    Larger ``age_minutes`` means the batch was updated earlier.
    """
    def _make(product: DonatedProduct, quantity, depot: Optional[Depot] = None, age_minutes: int = 0) -> InventoryBatch:
        batch = InventoryBatch(
            product_id=product.id,
            depot_id=(depot or depots["central"]).id,
            quantity_available=Decimal(str(quantity)),
            updated_at=BASE_TIME - timedelta(minutes=age_minutes),
        )
        db_session.add(batch)
        db_session.commit()
        db_session.refresh(batch)
        return batch
    return _make


@pytest.fixture
def make_request(db_session: Session, beneficiary: User):
    """Factory: make_request(food_type, quantity, unit=None, status="pending")."""
    def _make(food_type: str, quantity, unit: Optional[Unit] = None, status: str = "pending") -> DonationRequest:
        request = DonationRequest(
            user_id=beneficiary.id,
            food_type=food_type,
            quantity=Decimal(str(quantity)),
            unit_id=unit.id if unit is not None else None,
            status=status,
        )
        db_session.add(request)
        db_session.commit()
        db_session.refresh(request)
        return request
    return _make


@pytest.fixture
def stock_of(db_session: Session):
    """Current quantity of a batch, read fresh from the database."""
    def _stock(batch: InventoryBatch) -> Decimal:
        db_session.expire_all()
        return Decimal(str(db_session.get(InventoryBatch, batch.id).quantity_available))
    return _stock


@pytest.fixture
def count_rows(db_session: Session):
    def _count(model) -> int:
        return db_session.scalar(select(func.count()).select_from(model))
    return _count
