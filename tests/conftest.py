import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from helpdesk.db import models  # noqa: E402,F401
from helpdesk.db.base import Base  # noqa: E402
from helpdesk.db.models import RoleEnum as Role  # noqa: E402
from helpdesk.db.session import get_session  # noqa: E402
from helpdesk.main import app  # noqa: E402
from helpdesk.services.auth import make_token_for_user  # noqa: E402
from tests.utils.factories import create_user_factory  # noqa: E402
from tests.utils.helpers import create_auth_headers  # noqa: E402


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'helpdesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_app(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def test_client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def test_customer(db_session):
    return await create_user_factory(
        db_session, email="customer@example.com", password="testpass123", role=Role.customer
    )


@pytest.fixture
async def other_customer(db_session):
    return await create_user_factory(
        db_session, email="other@example.com", password="testpass123", role=Role.customer
    )


@pytest.fixture
async def test_agent(db_session):
    return await create_user_factory(
        db_session, email="agent@example.com", password="agentpass123", role=Role.agent
    )


@pytest.fixture
async def test_admin(db_session):
    return await create_user_factory(
        db_session, email="admin@example.com", password="adminpass123", role=Role.admin
    )


@pytest.fixture
def customer_headers(test_customer):
    return create_auth_headers(make_token_for_user(test_customer))


@pytest.fixture
def other_customer_headers(other_customer):
    return create_auth_headers(make_token_for_user(other_customer))


@pytest.fixture
def agent_headers(test_agent):
    return create_auth_headers(make_token_for_user(test_agent))


@pytest.fixture
def admin_headers(test_admin):
    return create_auth_headers(make_token_for_user(test_admin))
