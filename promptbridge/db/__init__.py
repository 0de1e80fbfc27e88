"""Database package."""

from promptbridge.db.session import Base, async_session_maker, get_async_session, get_session_factory

__all__ = ["Base", "async_session_maker", "get_async_session", "get_session_factory"]
