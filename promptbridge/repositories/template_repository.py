"""Repository for the Template reads and usage accounting export needs."""

import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from promptbridge.models.template import Template


class TemplateRepository:
    """Read access to templates plus the atomic usage counter."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, template_id: uuid.UUID) -> Optional[Template]:
        result = await self.session.execute(
            select(Template).where(Template.id == template_id)
        )
        return result.scalar_one_or_none()

    async def increment_usage_count(self, template_id: uuid.UUID) -> bool:
        """Bump usage_count with a single UPDATE evaluated by the database.

        Returns:
            True if the template row exists and was updated
        """
        stmt = (
            update(Template)
            .where(Template.id == template_id)
            .values(usage_count=Template.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
