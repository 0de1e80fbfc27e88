"""Repository for UserIntegration database operations."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from promptbridge.core.errors import IntegrationNotFoundError
from promptbridge.core.integration_types import NOTION, normalize_provider
from promptbridge.models._types import utcnow
from promptbridge.models.user_integration import UserIntegration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrationFields:
    """Values written on upsert. Tokens must already be encrypted."""

    access_token: str
    refresh_token: Optional[str] = None
    workspace_name: Optional[str] = None
    workspace_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class UserIntegrationRepository:
    """Repository for per-user provider credentials, one row per (user, provider)."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository.

        Args:
            session: Database session
        """
        self.session = session

    async def _find(self, user_id: uuid.UUID, provider: str) -> Optional[UserIntegration]:
        result = await self.session.execute(
            select(UserIntegration).where(
                UserIntegration.user_id == user_id,
                UserIntegration.provider == provider,
            )
        )
        return result.scalar_one_or_none()

    async def _apply(self, row: UserIntegration, fields: IntegrationFields) -> UserIntegration:
        row.access_token = fields.access_token
        row.refresh_token = fields.refresh_token
        row.workspace_name = fields.workspace_name
        row.workspace_id = fields.workspace_id
        row.expires_at = fields.expires_at
        row.updated_at = utcnow()
        await self.session.flush()
        await self.session.refresh(row)
        return row

    async def upsert(
        self,
        user_id: uuid.UUID,
        provider: str,
        fields: IntegrationFields,
    ) -> UserIntegration:
        """Insert or update the credential for (user_id, provider).

        An existing row keeps its id and created_at; token and workspace fields are
        replaced and updated_at is bumped. If a concurrent request inserts the same
        pair first, the unique constraint rejects our insert and we update that row.

        Args:
            user_id: Owning user id
            provider: Provider key (e.g. 'notion')
            fields: Encrypted tokens and workspace metadata

        Returns:
            Created or updated UserIntegration instance

        Raises:
            ValueError: If provider is not a supported integration
        """
        provider = normalize_provider(provider)
        row = await self._find(user_id, provider)
        if row:
            row = await self._apply(row, fields)
            logger.info("%s integration updated for user %s", provider, user_id)
            return row

        now = utcnow()
        integration = UserIntegration(
            user_id=user_id,
            provider=provider,
            access_token=fields.access_token,
            refresh_token=fields.refresh_token,
            workspace_name=fields.workspace_name,
            workspace_id=fields.workspace_id,
            expires_at=fields.expires_at,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(integration)
        except IntegrityError:
            logger.info(
                "Concurrent insert for %s integration of user %s; updating existing row",
                provider,
                user_id,
            )
            row = await self._find(user_id, provider)
            if row is None:
                raise
            return await self._apply(row, fields)

        await self.session.refresh(integration)
        logger.info("%s integration created for user %s", provider, user_id)
        return integration

    async def upsert_notion_token(
        self,
        user_id: uuid.UUID,
        fields: IntegrationFields,
    ) -> UserIntegration:
        return await self.upsert(user_id, NOTION, fields)

    async def get(self, user_id: uuid.UUID, provider: str) -> UserIntegration:
        """Return the credential for (user_id, provider).

        Raises:
            IntegrationNotFoundError: If no row exists
        """
        row = await self._find(user_id, provider)
        if row is None:
            raise IntegrationNotFoundError(user_id, provider)
        return row

    async def remove(self, user_id: uuid.UUID, provider: str) -> bool:
        """Delete the credential. Return True if a row was deleted; absence is not an error."""
        result = await self.session.execute(
            delete(UserIntegration).where(
                UserIntegration.user_id == user_id,
                UserIntegration.provider == provider,
            )
        )
        removed = result.rowcount > 0
        if removed:
            logger.info("%s integration removed for user %s", provider, user_id)
        return removed

    async def list_for_user(self, user_id: uuid.UUID) -> List[UserIntegration]:
        """Return the user's integrations, newest first."""
        result = await self.session.execute(
            select(UserIntegration)
            .where(UserIntegration.user_id == user_id)
            .order_by(UserIntegration.created_at.desc())
        )
        return list(result.scalars().all())
