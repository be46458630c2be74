# tests/conftest.py
from __future__ import annotations

import os
import uuid
from typing import AsyncGenerator, Callable, Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# ============================================================
# ★★ 在 import backoffice.main 之前固定测试配置 ★★
# （get_settings 是 lru_cache 单例，导入后再改环境变量无效）
# ============================================================
os.environ["ENV"] = "test"
os.environ["AUTH_JWT_SECRET"] = "backoffice-test-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "INFO"
os.environ.pop("AUTH_JWT_AUDIENCE", None)

from backoffice.core.security import create_access_token  # noqa: E402
from backoffice.db.base import Base, init_models  # noqa: E402
from backoffice.db.engine import create_async_engine_safe  # noqa: E402
from backoffice.db.session import get_session  # noqa: E402
from backoffice.main import app  # noqa: E402
from backoffice.models.enums import ProfileRole  # noqa: E402
from tests.factories import make_profile  # noqa: E402


# =========================================
# 每用例独立 SQLite 文件库（NullPool，避免跨 loop）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    init_models()
    engine = create_async_engine_safe(
        f"sqlite+aiosqlite:///{tmp_path / 'backoffice_test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
def async_session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(async_session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    造数 / 断言用 Session：
    factories 只 flush，用例自己 commit 后再打接口。
    """
    async with async_session_maker() as sess:
        try:
            yield sess
        finally:
            if sess.in_transaction():
                await sess.rollback()


# =========================================
# FastAPI / httpx AsyncClient（get_session 指向测试库）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def client(async_session_maker) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://testserver",
            timeout=httpx.Timeout(10.0, connect=5.0, read=10.0, write=5.0, pool=5.0),
        ) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_session, None)


# =========================================
# 身份：admin / customer / 无资料的 token
# =========================================
def bearer(user_id: uuid.UUID, **claims) -> Dict[str, str]:
    token = create_access_token({"sub": str(user_id), **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    return bearer


@pytest_asyncio.fixture
async def admin(session: AsyncSession):
    profile = await make_profile(
        session, role=ProfileRole.ADMIN, full_name="Ada Admin", email="ada@shop.test"
    )
    await session.commit()
    return profile


@pytest_asyncio.fixture
async def customer(session: AsyncSession):
    profile = await make_profile(
        session, role=ProfileRole.CUSTOMER, full_name="Carl Customer", email="carl@shop.test"
    )
    await session.commit()
    return profile


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return bearer(admin.id)


@pytest.fixture
def customer_headers(customer) -> Dict[str, str]:
    return bearer(customer.id)
