from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "rzp_webhook_secret")
os.environ.setdefault("INTERNAL_API_TOKEN", "gateway-test-token")
os.environ.setdefault("INTERNAL_API_ALLOWLIST", "127.0.0.1/32,::1/128")

from collections.abc import AsyncIterator, Callable  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config import get_settings  # noqa: E402
from app.db import models as _registered_models  # noqa: E402,F401
from app.db.models.base import Base  # noqa: E402
from app.services.caller_identity import CALLER_ID_HEADER, CALLER_ROLE_HEADER  # noqa: E402
from app.services.internal_auth import INTERNAL_TOKEN_HEADER  # noqa: E402

SESSION_MODULES = (
    "app.api.routes.listings",
    "app.api.routes.packages",
    "app.api.routes.payments",
    "app.api.routes.coupons",
    "app.api.routes.admin_moderation",
    "app.api.routes.admin_coupons",
    "app.workers.tasks.payments_reliability",
)


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite manages transactions itself unless told not to; SAVEPOINT needs explicit BEGIN.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def use_test_database(monkeypatch, session_factory: async_sessionmaker[AsyncSession]):
    for module_path in SESSION_MODULES:
        monkeypatch.setattr(f"{module_path}.SessionLocal", session_factory)
    return session_factory


@pytest.fixture
def caller_headers() -> Callable[..., dict[str, str]]:
    def _build(user_id: str = "user-1", *, role: str = "user") -> dict[str, str]:
        return {
            INTERNAL_TOKEN_HEADER: get_settings().internal_api_token,
            CALLER_ID_HEADER: user_id,
            CALLER_ROLE_HEADER: role,
        }

    return _build


@pytest.fixture
async def api_client(use_test_database) -> AsyncIterator[httpx.AsyncClient]:
    from app.main import app

    transport = httpx.ASGITransport(app=app, client=("127.0.0.1", 50000))
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
