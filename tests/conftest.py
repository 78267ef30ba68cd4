"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["API_ACCESS_TOKEN"] = "test-token"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select
from sqlalchemy.pool import NullPool

from beacon.database.connection import build_engine
from beacon.database.init_db import init_db
from beacon.models import CheckResult, Endpoint, Plan, Subscription, User
from beacon.services.result_store import ResultStore


@pytest.fixture
async def session_factory(tmp_path):
    """A fresh SQLite database per test, with the default plans seeded."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'beacon.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await init_db(bind=engine, session_factory=factory)
    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> ResultStore:
    return ResultStore(session_factory)


@pytest.fixture
async def plans(session_factory) -> dict[str, Plan]:
    async with session_factory() as session:
        result = await session.execute(select(Plan))
        return {plan.name: plan for plan in result.scalars().all()}


@pytest.fixture
def make_user(session_factory, plans):
    counter = {"n": 0}

    async def _make(plan_name: str | None = "Free") -> User:
        counter["n"] += 1
        async with session_factory() as session:
            async with session.begin():
                user = User(email=f"user{counter['n']}@example.com", name=f"User {counter['n']}")
                session.add(user)
                await session.flush()
                if plan_name is not None:
                    session.add(Subscription(user_id=user.id, plan_id=plans[plan_name].id))
            return user

    return _make


@pytest.fixture
def make_endpoint(session_factory):
    async def _make(
        user: User,
        url: str = "https://example.com/health",
        method: str = "GET",
        last_checked_at: datetime | None = None,
        is_active: bool = True,
    ) -> Endpoint:
        async with session_factory() as session:
            async with session.begin():
                endpoint = Endpoint(
                    owner_id=user.id,
                    name=url,
                    url=url,
                    method=method,
                    is_active=is_active,
                    last_checked_at=last_checked_at,
                )
                session.add(endpoint)
            return endpoint

    return _make


@pytest.fixture
def add_result(session_factory):
    async def _add(endpoint: Endpoint, checked_at: datetime, is_up: bool, status_code: int | None = None) -> None:
        if status_code is None:
            status_code = 200 if is_up else 0
        async with session_factory() as session:
            async with session.begin():
                session.add(CheckResult(
                    endpoint_id=endpoint.id,
                    checked_at=checked_at,
                    status_code=status_code,
                    response_ms=42,
                    is_up=is_up,
                ))

    return _add


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def requested_urls() -> list[str]:
    return []


@pytest.fixture
async def mock_client(requested_urls):
    """An httpx client that answers every request with 200 and records the URL."""

    def handler(request: httpx.Request) -> httpx.Response:
        requested_urls.append(str(request.url))
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client
