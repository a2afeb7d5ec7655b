import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# --- SETUP ---
os.environ["TESTING"] = "True"

# --- App Imports ---
from main import app  # noqa: E402
from gifttracker.database.connection import Base, get_db  # noqa: E402
from gifttracker.database import models  # noqa: E402,F401

TEST_USER_ID = "test_firebase_uid_123"
DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# --- CORE FIXTURES ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    del app.dependency_overrides[get_db]


@pytest.fixture
def mock_firebase_auth(mocker):
    """Mocks the firebase_admin.auth module where the security dependency uses it."""
    return mocker.patch('gifttracker.services.firebase_auth.auth')


@pytest_asyncio.fixture(scope="function")
async def authenticated_client(client: AsyncClient, mock_firebase_auth) -> AsyncClient:
    mock_firebase_auth.verify_id_token.return_value = {'uid': TEST_USER_ID, 'email': 'authtest@example.com'}
    client.headers["Authorization"] = "Bearer existing-user-token"
    yield client
