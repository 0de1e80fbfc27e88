"""Supported integration providers for stored credentials."""

from typing import Any, Dict, List

# Canonical provider key used in API and DB (lowercase)
NOTION = "notion"

SUPPORTED_INTEGRATIONS: List[Dict[str, Any]] = [
    {
        "id": NOTION,
        "name": "Notion",
        "description": "Export templates as Notion pages or database entries.",
    },
]

_SUPPORTED_IDS = {item["id"] for item in SUPPORTED_INTEGRATIONS}


def is_supported_integration(provider: str) -> bool:
    """Return True if provider is a supported integration (case-insensitive)."""
    if not provider or not isinstance(provider, str):
        return False
    return provider.strip().lower() in _SUPPORTED_IDS


def normalize_provider(provider: str) -> str:
    """Return canonical id (lowercase) for a supported provider, or raise ValueError."""
    if not is_supported_integration(provider):
        raise ValueError(f"Unsupported provider: {provider}")
    return provider.strip().lower()


def get_display_name(provider: str) -> str:
    key = (provider or "").strip().lower()
    for item in SUPPORTED_INTEGRATIONS:
        if item["id"] == key:
            return item["name"]
    return provider


def get_capabilities() -> List[Dict[str, Any]]:
    return [dict(item) for item in SUPPORTED_INTEGRATIONS]
