"""Notion OAuth start/callback flow and connection management."""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote, urlencode

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from promptbridge.core.crypto import CredentialCipher
from promptbridge.core.errors import (
    DecryptionError,
    IntegrationNotFoundError,
    InvalidOAuthStateError,
    TokenExchangeError,
)
from promptbridge.core.integration_types import NOTION
from promptbridge.core.notion_client import NotionClient
from promptbridge.core.notion_oauth import NotionOAuthClient
from promptbridge.core.oauth_state import issue_state, parse_state
from promptbridge.repositories.user_integration_repository import (
    IntegrationFields,
    UserIntegrationRepository,
)

logger = logging.getLogger(__name__)


class CallbackError(str, enum.Enum):
    """Machine-readable reasons appended to the frontend redirect."""

    INVALID_STATE = "invalid_state"
    OAUTH_FAILED = "oauth_failed"
    MISSING_CODE = "missing_code"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    STORAGE_FAILED = "storage_failed"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class OAuthStart:
    auth_url: str
    state: str


def build_redirect_url(base_url: str, params: Dict[str, str]) -> str:
    return f"{base_url}?{urlencode(params, quote_via=quote)}"


class NotionConnectionService:
    """Links, inspects and removes a user's Notion workspace credential."""

    def __init__(
        self,
        session: AsyncSession,
        redirect_base_url: str,
        oauth_client: Optional[NotionOAuthClient] = None,
        cipher: Optional[CredentialCipher] = None,
    ):
        """Initialize the service.

        Args:
            session: Database session; the callback commits on success
            redirect_base_url: Frontend page the callback redirects to
            oauth_client: None when Notion OAuth variables are not configured
            cipher: None when ENCRYPTION_KEY is not configured
        """
        self.session = session
        self._repository = UserIntegrationRepository(session)
        self._redirect_base_url = redirect_base_url
        self._oauth_client = oauth_client
        self._cipher = cipher

    def start(self, user_id: uuid.UUID) -> OAuthStart:
        if self._oauth_client is None:
            raise RuntimeError("Notion OAuth client is not configured")
        state = issue_state(str(user_id))
        auth_url = self._oauth_client.build_authorize_url(state)
        logger.info("Notion OAuth flow started for user %s", user_id)
        return OAuthStart(auth_url=auth_url, state=state)

    def _fail(self, reason: CallbackError, **extra: str) -> str:
        params = {"error": reason.value}
        params.update(extra)
        return build_redirect_url(self._redirect_base_url, params)

    async def complete(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
    ) -> str:
        """Finish the OAuth callback and return the frontend URL to redirect to.

        Never raises: every failure becomes an ``error=<reason>`` redirect.
        """
        try:
            return await self._complete(code, state, error)
        except Exception:
            logger.exception("Unexpected error in Notion OAuth callback")
            return self._fail(CallbackError.UNEXPECTED_ERROR)

    async def _complete(self, code: Optional[str], state: Optional[str], error: Optional[str]) -> str:
        if error:
            logger.warning("Notion OAuth error received: %s", error)
            return self._fail(CallbackError.OAUTH_FAILED, message=error)

        try:
            user_id = uuid.UUID(parse_state(state or "").user_id)
        except (InvalidOAuthStateError, ValueError):
            logger.warning("Notion OAuth callback with invalid state")
            return self._fail(CallbackError.INVALID_STATE)

        if not code:
            logger.warning("Notion OAuth callback missing code for user %s", user_id)
            return self._fail(CallbackError.MISSING_CODE)

        if self._oauth_client is None or self._cipher is None:
            logger.error(
                "Notion OAuth callback cannot complete: oauth client configured=%s, encryption key configured=%s",
                self._oauth_client is not None,
                self._cipher is not None,
            )
            return self._fail(CallbackError.UNEXPECTED_ERROR)

        try:
            tokens = await self._oauth_client.exchange_code(code)
        except TokenExchangeError as e:
            logger.error(
                "Failed to exchange Notion OAuth code for user %s: status=%s body=%s",
                user_id,
                e.status_code,
                e.body,
            )
            return self._fail(CallbackError.TOKEN_EXCHANGE_FAILED)

        fields = IntegrationFields(
            access_token=self._cipher.encrypt(tokens.access_token),
            refresh_token=self._cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None,
            workspace_name=tokens.workspace_name,
            workspace_id=tokens.workspace_id,
            # Notion tokens don't expire
            expires_at=None,
        )
        try:
            await self._repository.upsert_notion_token(user_id, fields)
            await self.session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to store Notion integration for user %s", user_id)
            await self.session.rollback()
            return self._fail(CallbackError.STORAGE_FAILED)

        logger.info(
            "Notion OAuth completed for user %s (workspace %s)",
            user_id,
            tokens.workspace_id,
        )
        return build_redirect_url(
            self._redirect_base_url,
            {"connected": NOTION, "workspace": tokens.workspace_name or "Unknown"},
        )

    async def status(self, user_id: uuid.UUID) -> Dict[str, Any]:
        try:
            row = await self._repository.get(user_id, NOTION)
        except IntegrationNotFoundError:
            return {"connected": False, "workspace": None, "last_updated": None}
        return {
            "connected": True,
            "workspace": {"name": row.workspace_name, "id": row.workspace_id},
            "last_updated": row.updated_at,
        }

    async def disconnect(self, user_id: uuid.UUID) -> bool:
        removed = await self._repository.remove(user_id, NOTION)
        await self.session.commit()
        return removed

    async def verify_connection(
        self,
        user_id: uuid.UUID,
        client_factory: Callable[[str], NotionClient] = NotionClient,
    ) -> Dict[str, Any]:
        """Call Notion with the stored token and report who it authenticates as.

        Raises:
            IntegrationNotFoundError: No credential stored
            DecryptionError: Stored token cannot be decrypted
            NotionClientError: Notion rejected the token or was unreachable
        """
        if self._cipher is None:
            raise RuntimeError("Encryption key is not configured")
        row = await self._repository.get(user_id, NOTION)
        token = self._cipher.decrypt(row.access_token)
        if not token:
            raise DecryptionError("Stored access token is empty")
        user = await client_factory(token).get_me()
        logger.info("Notion connection test succeeded for user %s", user_id)
        return {
            "user": user,
            "workspace": {"name": row.workspace_name, "id": row.workspace_id},
        }
