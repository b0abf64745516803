"""Service test fixtures — async DB, scratch directory and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db, get_upload_receiver and get_content_store are overridden per test
    - db_manager patched for code paths that open their own sessions
    - Uploads are capped at TEST_MAX_BYTES so size-limit tests stay small
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from dataroom.api.dependencies import get_upload_receiver
from dataroom.core.domain_types import UploadPolicy
from dataroom.db.base import Base
from dataroom.db.session import enable_sqlite_foreign_keys
from dataroom.infrastructure.content_store_client import get_content_store
from dataroom.infrastructure.database import get_db, DatabaseSessionManager
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
import dataroom.infrastructure.database as db_module
from dataroom.main import app

from tests.services.helpers import TEST_MAX_BYTES, USER_A


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def receiver(scratch_dir):
    return TemporaryUploadReceiver(UploadPolicy(
        scratch_dir=scratch_dir, max_bytes=TEST_MAX_BYTES, chunk_bytes=64 * 1024,
    ))


@pytest.fixture
def content_store_slot():
    """Set content_store_slot["store"] to enable promotion inside routes."""
    return {"store": None}


@pytest.fixture
async def client(test_engine, test_session_factory, receiver, content_store_slot):
    """FastAPI test client authenticated as USER_A."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_receiver] = lambda: receiver
    app.dependency_overrides[get_content_store] = lambda: content_store_slot["store"]

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": USER_A},
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
