"""Template usage accounting after successful exports."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from promptbridge.repositories.template_repository import TemplateRepository

logger = logging.getLogger(__name__)


class UsageCounter:
    """Increments a template's usage count in its own short transaction.

    Failures are logged and reported as False; they never propagate, because the
    export they follow has already been written to the external workspace.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def increment(self, template_id: uuid.UUID) -> bool:
        try:
            async with self._session_factory() as session:
                updated = await TemplateRepository(session).increment_usage_count(template_id)
                await session.commit()
        except Exception:
            logger.exception("Failed to increment usage count for template %s", template_id)
            return False
        if not updated:
            logger.warning("Usage count not incremented: template %s no longer exists", template_id)
            return False
        return True
