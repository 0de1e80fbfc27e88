"""Export an interpolated template into the user's Notion workspace."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from promptbridge.core.crypto import CredentialCipher
from promptbridge.core.errors import (
    AccessDeniedError,
    CredentialCorruptedError,
    CredentialMissingError,
    DecryptionError,
    ExternalApiError,
    IntegrationNotFoundError,
    TemplateNotFoundError,
)
from promptbridge.core.integration_types import NOTION
from promptbridge.core.interpolation import interpolate, missing_variables
from promptbridge.core.notion_client import (
    NotionClient,
    NotionClientError,
    NotionWriter,
    multi_select_property,
    paragraph_block,
    rich_text_property,
    select_property,
    title_property,
)
from promptbridge.models.template import Template
from promptbridge.repositories.template_repository import TemplateRepository
from promptbridge.repositories.user_integration_repository import UserIntegrationRepository
from promptbridge.services.usage_counter import UsageCounter

logger = logging.getLogger(__name__)

EXPORT_MODES = ("page", "database")
DEFAULT_CATEGORY = "Uncategorized"

# Property names expected on the target database
TITLE_PROPERTY = "Name"
CONTENT_PROPERTY = "Content"
CATEGORY_PROPERTY = "Category"
TAGS_PROPERTY = "Tags"


@dataclass(frozen=True)
class ExportRequest:
    mode: str
    target_id: str
    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode not in EXPORT_MODES:
            raise ValueError(f"Invalid export mode: {self.mode!r}; expected one of {EXPORT_MODES}")
        if not (self.target_id or "").strip():
            raise ValueError("target_id is required")


@dataclass(frozen=True)
class ExportResult:
    external_resource_id: str
    mode: str
    url: Optional[str] = None


def build_database_properties(template: Template, body: str) -> Dict[str, Any]:
    return {
        TITLE_PROPERTY: title_property(template.title),
        CONTENT_PROPERTY: rich_text_property(body),
        CATEGORY_PROPERTY: select_property(template.category or DEFAULT_CATEGORY),
        TAGS_PROPERTY: multi_select_property(list(template.tags or [])),
    }


class TemplateExportService:
    """Loads template and credential, interpolates, writes to Notion, counts usage."""

    def __init__(
        self,
        template_repository: TemplateRepository,
        integration_repository: UserIntegrationRepository,
        cipher: CredentialCipher,
        usage_counter: UsageCounter,
        writer_factory: Callable[[str], NotionWriter] = NotionClient,
    ):
        """Initialize the export service.

        Args:
            template_repository: Template reads
            integration_repository: Credential reads
            cipher: Decrypts the stored access token
            usage_counter: Bumps usage after a successful write
            writer_factory: Builds a Notion writer from a decrypted access token
        """
        self._templates = template_repository
        self._integrations = integration_repository
        self._cipher = cipher
        self._usage_counter = usage_counter
        self._writer_factory = writer_factory

    async def export(
        self,
        user_id: uuid.UUID,
        template_id: uuid.UUID,
        request: ExportRequest,
    ) -> ExportResult:
        """Export a template as a Notion page or database entry.

        Raises:
            TemplateNotFoundError: Template does not exist
            AccessDeniedError: Template is private and owned by someone else
            CredentialMissingError: User has not linked Notion
            CredentialCorruptedError: Stored token cannot be decrypted
            ExternalApiError: Notion rejected the write or was unreachable
        """
        template = await self._templates.get_by_id(template_id)
        if template is None:
            raise TemplateNotFoundError("Template not found")

        if not template.is_accessible_by(user_id):
            raise AccessDeniedError("Access denied")

        try:
            integration = await self._integrations.get(user_id, NOTION)
        except IntegrationNotFoundError:
            raise CredentialMissingError(
                "Notion integration not found. Please connect your Notion account first."
            ) from None

        try:
            access_token = self._cipher.decrypt(integration.access_token)
        except DecryptionError as e:
            # Also the symptom of a rotated or misconfigured ENCRYPTION_KEY
            logger.error(
                "Failed to decrypt Notion access token for user %s (integration %s): %s",
                user_id,
                integration.id,
                e,
            )
            raise CredentialCorruptedError("Failed to decrypt access token") from e
        if not access_token:
            logger.error("Stored Notion access token for user %s is empty", user_id)
            raise CredentialCorruptedError("Stored access token is empty")

        body = interpolate(template.prompt, request.variables)
        missing = missing_variables(template.prompt, request.variables)
        if missing:
            logger.warning(
                "Exporting template %s with unfilled placeholders: %s",
                template_id,
                ", ".join(missing),
            )

        try:
            writer = self._writer_factory(access_token)
            if request.mode == "page":
                created = await writer.create_page(
                    parent_page_id=request.target_id,
                    title=template.title,
                    children=[paragraph_block(body)],
                )
            else:
                created = await writer.create_database_entry(
                    database_id=request.target_id,
                    properties=build_database_properties(template, body),
                )
        except NotionClientError as e:
            logger.error(
                "Notion API error exporting template %s for user %s: %s (status=%s)",
                template_id,
                user_id,
                e,
                e.status_code,
            )
            raise ExternalApiError(
                "Failed to export to Notion",
                upstream_status=e.status_code,
                upstream_body=e.body,
            ) from e

        await self._usage_counter.increment(template_id)

        result = ExportResult(
            external_resource_id=created["page_id"],
            mode=request.mode,
            url=created.get("url"),
        )
        logger.info(
            "Template %s exported to Notion for user %s: %s (%s)",
            template_id,
            user_id,
            result.external_resource_id,
            result.mode,
        )
        return result
