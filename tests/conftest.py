"""Fixtures de test / Test fixtures: in-memory SQLite shared by services and API."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import fleetdesk.models  # noqa: F401
from fleetdesk.database import Base, get_db, get_session_factory
from fleetdesk.main import app
from fleetdesk.models.fuel import FuelTank
from fleetdesk.models.tire import Tire, TireStock
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.rate_limit import limiter
from fleetdesk.services.inventory_service import InventoryService


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def inventory(session_factory):
    return InventoryService(session_factory, backoff_seconds=0)


async def _add(session_factory, obj):
    async with session_factory() as session:
        async with session.begin():
            session.add(obj)
    return obj


@pytest.fixture
async def owner(session_factory):
    return await _add(session_factory, User(username="owner", email="owner@example.com", hashed_password="x"))


@pytest.fixture
async def other_owner(session_factory):
    return await _add(session_factory, User(username="other", email="other@example.com", hashed_password="x"))


@pytest.fixture
async def tank(session_factory, owner):
    return await _add(session_factory, FuelTank(
        owner_id=owner.id, name="Main Tank", fuel_type="Diesel", capacity=1000, current_amount=500,
    ))


@pytest.fixture
async def vehicle(session_factory, owner):
    return await _add(session_factory, Vehicle(owner_id=owner.id, plate="34ABC123", current_km=10000))


@pytest.fixture
async def mounted_tire(session_factory, owner, vehicle):
    return await _add(session_factory, Tire(
        owner_id=owner.id, vehicle_id=vehicle.id, position="FL", brand="Michelin",
        size="315/80R22.5", serial_number="OLD-1", current_km=0, condition="New",
    ))


@pytest.fixture
async def stock_item(session_factory, owner):
    return await _add(session_factory, TireStock(
        owner_id=owner.id, brand="Bridgestone", size="315/80R22.5", serial_number="NEW-1",
        condition="New", price=250.0, quantity=3,
    ))


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def register(client):
    """Creer un compte, renvoyer ses en-tetes / Register an account and return its auth headers."""

    async def _register(username="driver", password="secret-pass"):
        resp = await client.post("/api/auth/register", json={
            "username": username, "email": f"{username}@example.com", "password": password,
        })
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _register


@pytest.fixture
async def auth_headers(register):
    return await register()
