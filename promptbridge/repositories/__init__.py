"""Repositories package."""

from promptbridge.repositories.template_repository import TemplateRepository
from promptbridge.repositories.user_integration_repository import (
    IntegrationFields,
    UserIntegrationRepository,
)

__all__ = ["IntegrationFields", "TemplateRepository", "UserIntegrationRepository"]
