"""API endpoint for exporting a template into Notion."""

import uuid
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field, field_validator

from promptbridge.api.dependencies import get_current_user_id, get_template_export_service
from promptbridge.core.errors import ExportError
from promptbridge.services.template_export import ExportRequest, TemplateExportService


class ExportTemplateRequest(BaseModel):
    """Body for POST /templates/{template_id}/export."""

    mode: Literal["page", "database"]
    target_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("target_id", "targetId"),
    )
    variables: Dict[str, str] = Field(default_factory=dict)

    @field_validator("target_id")
    @classmethod
    def validate_target_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("target_id is required")
        return v


class ExportTemplateResponse(BaseModel):
    """Response for POST /templates/{template_id}/export."""

    external_resource_id: str
    mode: str
    url: Optional[str] = None
    message: str = "Template exported successfully"


router = APIRouter(tags=["templates"], prefix="/templates")


@router.post(
    "/{template_id}/export",
    response_model=ExportTemplateResponse,
    responses={400: {}, 403: {}, 404: {}, 500: {}, 502: {}},
)
async def export_template(
    template_id: uuid.UUID,
    body: ExportTemplateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: TemplateExportService = Depends(get_template_export_service),
):
    """Fill the template's placeholders and create a Notion page or database entry."""
    request = ExportRequest(mode=body.mode, target_id=body.target_id, variables=body.variables)
    try:
        result = await service.export(user_id=user_id, template_id=template_id, request=request)
    except ExportError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    return ExportTemplateResponse(
        external_resource_id=result.external_resource_id,
        mode=result.mode,
        url=result.url,
    )
