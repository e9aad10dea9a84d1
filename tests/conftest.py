import os

# Settings are read at import time; configure the test environment first.
os.environ["ENVIRONMENT"] = "testing"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from shop.core.deps import get_item_directory
from shop.core.security import hash_password
from shop.db.base import Base
from shop.db.sessions import get_async_session
from shop.main import create_app
from shop.models import Item, User

from tests.fakes import InMemoryCatalog, SessionItemDirectory


# DATABASE SETUP (SQLite in-memory, SAFE)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


# PYTEST CORE FIXTURES
@pytest.fixture(scope="session")
def test_app():
    app = create_app("all")
    app.debug = True
    return app


# FAKES
@pytest.fixture
def catalog():
    return InMemoryCatalog()


@pytest.fixture
def item_directory(db_session):
    return SessionItemDirectory(db_session)


# DEPENDENCY OVERRIDES
@pytest.fixture(autouse=True)
def override_dependencies(test_app, db_session, item_directory):

    async def _get_test_session():
        yield db_session

    test_app.dependency_overrides[get_async_session] = _get_test_session
    test_app.dependency_overrides[get_item_directory] = lambda: item_directory

    yield

    test_app.dependency_overrides.clear()


# HTTP CLIENT
@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://localhost",
    ) as ac:
        yield ac


# DATA FIXTURES
@pytest.fixture
async def test_user(db_session):
    user = User(
        name="Test User",
        email="buyer@example.com",
        password_hash=hash_password("password1"),
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def auth_headers(client, test_user):
    response = await client.post(
        "/api/v1/users/login",
        json={"email": "buyer@example.com", "password": "password1"},
    )
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def sample_item(db_session):
    item = Item(
        name="Widget",
        description="A very ordinary widget",
        price=Decimal("10.00"),
        stock=5,
    )
    db_session.add(item)
    await db_session.commit()
    return item


@pytest.fixture
async def second_item(db_session):
    item = Item(
        name="Gadget",
        description="Goes with the widget",
        price=Decimal("2.50"),
        stock=10,
    )
    db_session.add(item)
    await db_session.commit()
    return item
