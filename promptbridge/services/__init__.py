"""Services package."""

from promptbridge.services.notion_connection import CallbackError, NotionConnectionService, OAuthStart
from promptbridge.services.template_export import ExportRequest, ExportResult, TemplateExportService
from promptbridge.services.usage_counter import UsageCounter

__all__ = [
    "CallbackError",
    "ExportRequest",
    "ExportResult",
    "NotionConnectionService",
    "OAuthStart",
    "TemplateExportService",
    "UsageCounter",
]
