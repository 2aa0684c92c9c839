"""
Test fixtures for the NetBank API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / session_factory / db_session: Fresh in-memory SQLite
    database for each test
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client logged in as a freshly signed-up member
  - member / second_member: Signed-up members (token, headers, accounts)
    for tests that need more than one identity at a time
  - admin_headers: Authorization headers of the bootstrapped administrator

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database — no state leaks between tests.
  - We override FastAPI's get_db dependency to inject our test sessions,
    mirroring the real one (commit on success and on domain errors), so
    the application code works exactly as it does in production.
  - Members are created through the real signup endpoint; the admin is
    created by the real cold-start bootstrap and logs in via /admin/login.
"""

import os

# Settings are read at import time; SECRET_KEY has no default on purpose.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CARD_READY_SWEEP_INTERVAL_SECONDS", "0")

from dataclasses import dataclass  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402

from netbank.config import settings  # noqa: E402
from netbank.database import Base, get_db  # noqa: E402
from netbank.exceptions import NetBankError  # noqa: E402
from netbank.main import app  # noqa: E402
from netbank.services import auth_service  # noqa: E402


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

DEFAULT_PIN = "4321"


@dataclass
class Member:
    """A member created through /auth/signup."""
    username: str
    password: str
    user_id: str
    token: str
    savings: dict
    checking: dict

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


async def signup_member(client: AsyncClient, username: str, password: str = "SecurePass123!") -> Member:
    """Sign up through the API and return the new member."""
    response = await client.post(
        "/auth/signup",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "first_name": username.capitalize(),
            "last_name": "Tester",
        },
    )
    assert response.status_code == 201, f"Signup failed: {response.text}"
    data = response.json()
    accounts = {account["account_type"]: account for account in data["accounts"]}
    return Member(
        username=username,
        password=password,
        user_id=data["user_id"],
        token=data["token"],
        savings=accounts["savings"],
        checking=accounts["checking"],
    )


async def set_pin(client: AsyncClient, member: Member, pin: str = DEFAULT_PIN) -> None:
    response = await client.put(
        "/account-holders/me/transaction-pin",
        json={"new_pin": pin, "confirm_pin": pin},
        headers=member.headers,
    )
    assert response.status_code == 200, response.text


async def cash_deposit(client: AsyncClient, member: Member, account_id: str, amount_cents: int) -> dict:
    response = await client.post(
        "/deposits/cash",
        json={"account_id": account_id, "amount_cents": amount_cents},
        headers=member.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def balance_of(client: AsyncClient, member: Member, account_id: str) -> int:
    response = await client.get(f"/accounts/{account_id}/balance", headers=member.headers)
    assert response.status_code == 200, response.text
    return response.json()["balance_cents"]


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except NetBankError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def member(client) -> Member:
    return await signup_member(client, "alice")


@pytest_asyncio.fixture
async def second_member(client) -> Member:
    return await signup_member(client, "bob", "SecurePass456!")


@pytest_asyncio.fixture
async def authenticated_client(client, member):
    """
    Test client with a pre-registered member and JWT token.

    Sets the Authorization header on the client for all subsequent requests.
    """
    client.headers["Authorization"] = f"Bearer {member.token}"
    return client


@pytest_asyncio.fixture
async def admin_headers(client, session_factory) -> dict:
    """
    Authorization headers for the default administrator.

    The admin is created by the same bootstrap step the application runs
    at cold start, then logs in through /admin/login.
    """
    async with session_factory() as session:
        admin = await auth_service.bootstrap_default_admin(session)
        await session.commit()
    assert admin is not None

    response = await client.post(
        "/admin/login",
        json={
            "username": settings.DEFAULT_ADMIN_USERNAME,
            "password": settings.DEFAULT_ADMIN_PASSWORD,
        },
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
