"""Shared test fixtures and configuration."""

import os

# Settings are read at import time; these must be set before promptbridge is imported.
TEST_ENCRYPTION_KEY = "8f3c2a9d4b7e1f6052a8c3d9e4f1b7a26c5d8e3f9a1b4c7d2e5f8a3b6c9d1e4f"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_SSL", "disable")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-at-least-32-characters")
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
os.environ.setdefault("NOTION_CLIENT_ID", "notion-client-id")
os.environ.setdefault("NOTION_CLIENT_SECRET", "notion-client-secret")
os.environ.setdefault("NOTION_REDIRECT_URI", "http://localhost:8000/api/notion/oauth/callback")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

import uuid  # noqa: E402
from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from promptbridge.core.crypto import CredentialCipher  # noqa: E402
from promptbridge.db.session import Base  # noqa: E402
from promptbridge.models import Profile, Template  # noqa: E402


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher.from_hex(TEST_ENCRYPTION_KEY)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine so separate sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    # Let SQLAlchemy own transactions (needed for SAVEPOINT), enforce foreign keys
    # and take the write lock at BEGIN so concurrent writers queue on the busy timeout.
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_profile(session_factory):
    async def _make(email: Optional[str] = None) -> Profile:
        profile_id = uuid.uuid4()
        profile = Profile(id=profile_id, email=email or f"{profile_id.hex}@example.com")
        async with session_factory() as session:
            session.add(profile)
            await session.commit()
        return profile

    return _make


@pytest.fixture
def make_template(session_factory):
    async def _make(
        owner_id: uuid.UUID,
        prompt: str = "Write about {{topic}}",
        is_public: bool = False,
        usage_count: int = 0,
    ) -> Template:
        template = Template(
            id=uuid.uuid4(),
            user_id=owner_id,
            title="Blog outline",
            category="Writing",
            tags=["blog"],
            content={"prompt": prompt, "variables": [{"name": "topic", "type": "string"}]},
            is_public=is_public,
            usage_count=usage_count,
        )
        async with session_factory() as session:
            session.add(template)
            await session.commit()
        return template

    return _make


@pytest.fixture
def sample_template() -> Template:
    """Transient template owned by a fresh user, not persisted."""
    return Template(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        title="Weekly report",
        category=None,
        tags=["report", "weekly"],
        content={
            "prompt": "Summary for {{team}}: {{summary}}",
            "variables": [{"name": "team", "type": "string"}, {"name": "summary", "type": "string"}],
        },
        is_public=False,
        usage_count=0,
    )


class FakeNotionWriter:
    """Records calls instead of talking to Notion."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.pages: List[Dict[str, Any]] = []
        self.entries: List[Dict[str, Any]] = []
        self.tokens: List[str] = []

    def __call__(self, access_token: str) -> "FakeNotionWriter":
        self.tokens.append(access_token)
        return self

    @property
    def call_count(self) -> int:
        return len(self.pages) + len(self.entries)

    async def create_page(self, parent_page_id, title, children=None):
        if self.fail_with:
            raise self.fail_with
        self.pages.append({"parent_page_id": parent_page_id, "title": title, "children": children})
        return {"page_id": "page-123", "url": "https://www.notion.so/page-123", "created_time": None}

    async def create_database_entry(self, database_id, properties):
        if self.fail_with:
            raise self.fail_with
        self.entries.append({"database_id": database_id, "properties": properties})
        return {"page_id": "entry-456", "url": "https://www.notion.so/entry-456", "created_time": None}


@pytest.fixture
def fake_writer() -> FakeNotionWriter:
    return FakeNotionWriter()


@pytest.fixture
def make_fake_writer():
    return FakeNotionWriter
