"""API endpoints listing supported and linked integrations."""

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from promptbridge.api.dependencies import get_current_user_id
from promptbridge.core.integration_types import get_capabilities, get_display_name
from promptbridge.db.session import get_async_session
from promptbridge.repositories.user_integration_repository import UserIntegrationRepository


class IntegrationCapability(BaseModel):
    """One supported integration for capabilities list."""

    id: str
    name: str
    description: Optional[str] = None


class CapabilitiesResponse(BaseModel):
    """Response for GET /integrations/capabilities."""

    integrations: List[IntegrationCapability]


class IntegrationSummary(BaseModel):
    """One linked integration (no tokens)."""

    id: str
    provider: str
    name: str
    workspace_name: Optional[str] = None
    workspace_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class IntegrationsListResponse(BaseModel):
    """Response for GET /integrations."""

    integrations: List[IntegrationSummary]


router = APIRouter(tags=["integrations"], prefix="/integrations")


@router.get("/capabilities", response_model=CapabilitiesResponse)
async def get_capabilities_list() -> CapabilitiesResponse:
    """List providers a workspace can be linked with."""
    return CapabilitiesResponse(
        integrations=[
            IntegrationCapability(id=c["id"], name=c["name"], description=c.get("description"))
            for c in get_capabilities()
        ]
    )


@router.get("", response_model=IntegrationsListResponse)
async def list_integrations(
    user_id: uuid.UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_async_session),
) -> IntegrationsListResponse:
    """List the user's linked integrations, newest first."""
    repo = UserIntegrationRepository(session)
    rows = await repo.list_for_user(user_id)
    return IntegrationsListResponse(
        integrations=[
            IntegrationSummary(
                id=str(r.id),
                provider=r.provider,
                name=get_display_name(r.provider),
                workspace_name=r.workspace_name,
                workspace_id=r.workspace_id,
                expires_at=r.expires_at,
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]
    )
