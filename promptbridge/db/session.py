"""Async engine, session factory and the declarative base for PromptBridge models."""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from promptbridge.core.config import settings

_SSL_ON = ("require", "true", "1")


def engine_connect_args(database_url: str, ssl_mode: str) -> Dict[str, Any]:
    """asyncpg takes ``ssl=True``; other drivers (aiosqlite in tests) take no SSL argument."""
    if ssl_mode in _SSL_ON and database_url.startswith("postgresql"):
        return {"ssl": True}
    return {}


def build_engine(database_url: str, ssl_mode: str, echo: bool = False) -> AsyncEngine:
    options: Dict[str, Any] = {
        "echo": echo,
        "connect_args": engine_connect_args(database_url, ssl_mode),
    }
    if database_url.startswith("postgresql"):
        # Pooled connections to hosted PostgreSQL are dropped while idle
        options["pool_pre_ping"] = True
    return create_async_engine(database_url, **options)


engine = build_engine(settings.DATABASE_URL, settings.DATABASE_SSL, echo=settings.DEBUG)

# Credentials and templates are read after commit by the routes
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; work not committed by the handler is rolled back."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Factory for components that open their own short-lived sessions."""
    return async_session_maker
