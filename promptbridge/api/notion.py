"""API endpoints for linking a Notion workspace via OAuth."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from promptbridge.api.dependencies import get_current_user_id, get_notion_connection_service
from promptbridge.core.config import settings
from promptbridge.core.errors import DecryptionError, IntegrationNotFoundError
from promptbridge.core.integration_types import NOTION
from promptbridge.core.notion_client import NotionClientError
from promptbridge.services.notion_connection import NotionConnectionService

logger = logging.getLogger(__name__)


class OAuthStartResponse(BaseModel):
    """Response for GET /notion/oauth/start."""

    auth_url: str
    state: str


class WorkspaceInfo(BaseModel):
    name: Optional[str] = None
    id: Optional[str] = None


class StatusResponse(BaseModel):
    """Response for GET /notion/status."""

    model_config = ConfigDict(populate_by_name=True)

    connected: bool
    workspace: Optional[WorkspaceInfo] = None
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")


class DisconnectResponse(BaseModel):
    """Response for DELETE /notion/disconnect."""

    status: str
    provider: str
    removed: bool


class NotionUser(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class ConnectionTestResponse(BaseModel):
    """Response for POST /notion/test."""

    message: str
    user: NotionUser
    workspace: WorkspaceInfo


router = APIRouter(tags=["notion"], prefix="/notion")


@router.get("/oauth/start", response_model=OAuthStartResponse)
async def start_oauth(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: NotionConnectionService = Depends(get_notion_connection_service),
) -> OAuthStartResponse:
    """Return the Notion authorization URL; the frontend performs the redirect."""
    missing: List[str] = settings.missing_notion_oauth_config()
    if missing:
        logger.error("Missing required Notion OAuth environment variables: %s", ", ".join(missing))
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Notion OAuth configuration incomplete. Please check environment variables.",
                "missing": missing,
            },
        )
    started = service.start(user_id)
    return OAuthStartResponse(auth_url=started.auth_url, state=started.state)


@router.get("/oauth/callback", response_class=RedirectResponse)
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    service: NotionConnectionService = Depends(get_notion_connection_service),
) -> RedirectResponse:
    """Called by Notion. The user is identified by the state token, not a bearer token."""
    redirect_url = await service.complete(code=code, state=state, error=error)
    return RedirectResponse(url=redirect_url, status_code=302)


@router.get("/status", response_model=StatusResponse)
async def get_status(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: NotionConnectionService = Depends(get_notion_connection_service),
) -> StatusResponse:
    """Report whether the user has a linked Notion workspace."""
    return StatusResponse(**await service.status(user_id))


@router.delete("/disconnect", response_model=DisconnectResponse)
async def disconnect(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: NotionConnectionService = Depends(get_notion_connection_service),
) -> DisconnectResponse:
    """Remove the stored credential. Succeeds when nothing is stored."""
    removed = await service.disconnect(user_id)
    return DisconnectResponse(status="disconnected", provider=NOTION, removed=removed)


@router.post("/test", response_model=ConnectionTestResponse)
async def test_connection(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: NotionConnectionService = Depends(get_notion_connection_service),
) -> ConnectionTestResponse:
    """Check the stored token against Notion's users/me endpoint."""
    try:
        result = await service.verify_connection(user_id)
    except IntegrationNotFoundError:
        raise HTTPException(status_code=400, detail={"error": "Notion integration not found"})
    except DecryptionError:
        logger.error("Failed to decrypt Notion access token for user %s", user_id)
        raise HTTPException(status_code=500, detail={"error": "Failed to decrypt access token"})
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail={"error": str(e)})
    except NotionClientError as e:
        logger.error("Notion connection test failed for user %s: %s", user_id, e)
        raise HTTPException(
            status_code=502,
            detail={"error": "Connection test failed", "details": str(e)},
        )
    return ConnectionTestResponse(
        message="Connection test successful",
        user=NotionUser(**result["user"]),
        workspace=WorkspaceInfo(**result["workspace"]),
    )
