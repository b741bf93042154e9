"""
Pytest fixtures for the stocktrack API tests.

Each test gets a fresh in-memory SQLite database, an httpx client bound to
the ASGI app, and a small seeded world:

- admin "admin" and manager "manager1" (assigned to Main Warehouse only)
- locations "Main Warehouse" and "Downtown Store"
- product LAP-001 with 10 units at Main Warehouse
"""

import os

os.environ["APP_ENV"] = "test"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_ACCESS_SECRET_KEY", "test-secret-key")

from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from stocktrack.core.db import Base, get_db, enable_sqlite_foreign_keys
from stocktrack.core.security import create_access_token, hash_password
from stocktrack.constants.transaction_type import StockTransactionType
from stocktrack.models.enums.record_status import RecordStatus
from stocktrack.models.inventory.location_models import Location, UserLocation
from stocktrack.models.masters.product_models import Product
from stocktrack.models.users.user_models import User
from stocktrack.services.inventory.ledger_service import apply_stock_change

ADMIN_PASSWORD = "admin123"
MANAGER_PASSWORD = "manager123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seed(session_factory):
    """Seed users, locations and stock. Returns plain ids, not ORM rows."""
    async with session_factory() as session:
        admin = User(
            username="admin",
            email="admin@example.com",
            password_hash=hash_password(ADMIN_PASSWORD),
            first_name="Ada",
            last_name="Admin",
            role="admin",
        )
        manager = User(
            username="manager1",
            email="manager1@example.com",
            password_hash=hash_password(MANAGER_PASSWORD),
            first_name="Max",
            last_name="Manager",
            role="manager",
        )
        main = Location(name="Main Warehouse", city="Springfield", state="IL", status=RecordStatus.active)
        downtown = Location(name="Downtown Store", city="Springfield", state="IL", status=RecordStatus.active)
        laptop = Product(
            sku="LAP-001",
            name="Laptop Pro 15",
            category="Electronics",
            brand="Acme",
            unit_price=Decimal("1299.99"),
            cost_price=Decimal("950.00"),
            reorder_level=5,
            status=RecordStatus.active,
        )
        session.add_all([admin, manager, main, downtown, laptop])
        await session.flush()

        session.add(UserLocation(user_id=manager.id, location_id=main.id))

        await apply_stock_change(
            session,
            product_id=laptop.id,
            location_id=main.id,
            transaction_type=StockTransactionType.IN,
            quantity=10,
            reason="Initial stock",
            reference_number="INIT-1",
            actor=admin,
        )
        await session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            manager_id=manager.id,
            main_id=main.id,
            downtown_id=downtown.id,
            laptop_id=laptop.id,
        )


def _headers(user_id: int, role: str) -> dict:
    token = create_access_token(subject=user_id, role=role, token_version=0)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(seed):
    return _headers(seed.admin_id, "admin")


@pytest.fixture
def manager_headers(seed):
    return _headers(seed.manager_id, "manager")
