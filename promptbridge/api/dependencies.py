"""Shared FastAPI dependencies: bearer auth, cipher, OAuth client and services."""

import logging
import uuid
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from promptbridge.core.config import settings
from promptbridge.core.crypto import CredentialCipher
from promptbridge.core.notion_oauth import NotionOAuthClient
from promptbridge.db.session import get_async_session, get_session_factory
from promptbridge.repositories.template_repository import TemplateRepository
from promptbridge.repositories.user_integration_repository import UserIntegrationRepository
from promptbridge.services.notion_connection import NotionConnectionService
from promptbridge.services.template_export import TemplateExportService
from promptbridge.services.usage_counter import UsageCounter

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"error": message, "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    """Validate the bearer JWT and return the user id from its ``id`` or ``sub`` claim."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required", "AUTH_TOKEN_MISSING")
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not set; cannot authenticate requests")
        raise HTTPException(status_code=500, detail={"error": "Authentication is not configured"})
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired", "AUTH_TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token", "AUTH_TOKEN_INVALID")

    raw_user_id = payload.get("id") or payload.get("sub")
    try:
        return uuid.UUID(str(raw_user_id))
    except ValueError:
        raise _unauthorized("Token does not identify a user", "AUTH_TOKEN_INVALID")


@lru_cache(maxsize=4)
def _cipher_for(key_hex: str) -> CredentialCipher:
    return CredentialCipher.from_hex(key_hex)


def get_cipher() -> Optional[CredentialCipher]:
    """Return the process-wide cipher, or None when ENCRYPTION_KEY is not set."""
    if settings.ENCRYPTION_KEY is None:
        return None
    return _cipher_for(settings.ENCRYPTION_KEY)


def require_cipher(cipher: Optional[CredentialCipher] = Depends(get_cipher)) -> CredentialCipher:
    if cipher is None:
        logger.error("ENCRYPTION_KEY is not set; stored credentials cannot be used")
        raise HTTPException(
            status_code=500,
            detail={"error": "Token encryption is not configured", "missing": ["ENCRYPTION_KEY"]},
        )
    return cipher


def get_notion_oauth_client() -> Optional[NotionOAuthClient]:
    """Return a Notion OAuth client, or None when its variables are not set."""
    if settings.missing_notion_oauth_config():
        return None
    return NotionOAuthClient(
        client_id=settings.NOTION_CLIENT_ID,
        client_secret=settings.NOTION_CLIENT_SECRET,
        redirect_uri=settings.NOTION_REDIRECT_URI,
    )


def get_notion_connection_service(
    session: AsyncSession = Depends(get_async_session),
    oauth_client: Optional[NotionOAuthClient] = Depends(get_notion_oauth_client),
    cipher: Optional[CredentialCipher] = Depends(get_cipher),
) -> NotionConnectionService:
    return NotionConnectionService(
        session=session,
        redirect_base_url=settings.frontend_redirect_base,
        oauth_client=oauth_client,
        cipher=cipher,
    )


def get_template_export_service(
    session: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    cipher: CredentialCipher = Depends(require_cipher),
) -> TemplateExportService:
    return TemplateExportService(
        template_repository=TemplateRepository(session),
        integration_repository=UserIntegrationRepository(session),
        cipher=cipher,
        usage_counter=UsageCounter(session_factory),
    )
