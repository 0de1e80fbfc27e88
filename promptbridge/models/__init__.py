"""Database models package."""

from promptbridge.models.profile import Profile
from promptbridge.models.template import Template
from promptbridge.models.user_integration import UserIntegration

__all__ = [
    "Profile",
    "Template",
    "UserIntegration",
]
