"""Notion Data API client for creating pages and database entries."""

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

NOTION_VERSION = "2022-06-28"
BASE_URL = "https://api.notion.com/v1"

# Notion rejects text objects longer than this
RICH_TEXT_MAX_CHARS = 2000


def _rich_text(content: str) -> List[Dict[str, Any]]:
    """Split content into text objects that respect Notion's per-object limit."""
    if not content:
        return [{"type": "text", "text": {"content": ""}}]
    return [
        {"type": "text", "text": {"content": content[i:i + RICH_TEXT_MAX_CHARS]}}
        for i in range(0, len(content), RICH_TEXT_MAX_CHARS)
    ]


def paragraph_block(content: str) -> Dict[str, Any]:
    return {
        "object": "block",
        "type": "paragraph",
        "paragraph": {"rich_text": _rich_text(content)},
    }


def title_property(content: str) -> Dict[str, Any]:
    return {"title": _rich_text(content)}


def rich_text_property(content: str) -> Dict[str, Any]:
    return {"rich_text": _rich_text(content)}


def select_property(name: str) -> Dict[str, Any]:
    return {"select": {"name": name}}


def multi_select_property(names: List[str]) -> Dict[str, Any]:
    return {"multi_select": [{"name": n} for n in names]}


class NotionClientError(Exception):
    """Raised when a Notion API request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotionWriter(Protocol):
    """The two write operations template export needs from Notion."""

    async def create_page(
        self,
        parent_page_id: str,
        title: str,
        children: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        ...

    async def create_database_entry(
        self,
        database_id: str,
        properties: Dict[str, Any],
    ) -> Dict[str, Any]:
        ...


class NotionClient:
    """Client for the Notion Data API, authenticated with one user's access token."""

    def __init__(self, access_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize the Notion client.

        Args:
            access_token: Decrypted OAuth access token for the user's workspace
            transport: Optional httpx transport, used by tests
        """
        if not access_token:
            raise NotionClientError("Notion access token is required")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Notion-Version": NOTION_VERSION,
        }
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.request(
                    method,
                    f"{BASE_URL}{path}",
                    headers=self._headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise NotionClientError(f"Notion {operation} request failed: {e}") from e
        logger.debug("Notion %s responded with %s", operation, resp.status_code)
        if resp.status_code >= 400:
            raise NotionClientError(
                f"Notion {operation} failed: {resp.status_code}",
                status_code=resp.status_code,
                body=_response_body(resp),
            )
        try:
            return resp.json()
        except ValueError as e:
            raise NotionClientError(
                f"Notion {operation} returned a non-JSON body",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

    async def create_page(
        self,
        parent_page_id: str,
        title: str,
        children: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """Create a page nested under a parent page. Returns normalized { page_id, url, created_time }."""
        if not (parent_page_id or "").strip():
            raise NotionClientError("parent_page_id is required")
        payload: Dict[str, Any] = {
            "parent": {"type": "page_id", "page_id": parent_page_id.strip()},
            "properties": {"title": title_property(title)},
        }
        if children:
            payload["children"] = children
        data = await self._request("POST", "/pages", "create_page", payload)
        return _normalize_page(data)

    async def create_database_entry(
        self,
        database_id: str,
        properties: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Create a row in a database. Returns normalized { page_id, url, created_time }."""
        if not (database_id or "").strip():
            raise NotionClientError("database_id is required")
        payload: Dict[str, Any] = {
            "parent": {"type": "database_id", "database_id": database_id.strip()},
            "properties": properties,
        }
        data = await self._request("POST", "/pages", "create_database_entry", payload)
        return _normalize_page(data)

    async def get_me(self) -> Dict[str, Any]:
        """Return the bot user behind the token: { id, name, email }."""
        data = await self._request("GET", "/users/me", "get_me")
        person = data.get("person") or {}
        bot_owner = ((data.get("bot") or {}).get("owner") or {}).get("user") or {}
        email = person.get("email") or (bot_owner.get("person") or {}).get("email")
        return {
            "id": data.get("id"),
            "name": data.get("name"),
            "email": email,
        }


def _response_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _normalize_page(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data.get("id"):
        raise NotionClientError("Notion response did not include a page id", body=data)
    return {
        "page_id": data["id"],
        "url": data.get("url"),
        "created_time": data.get("created_time"),
    }


__all__ = [
    "NotionClient",
    "NotionClientError",
    "NotionWriter",
    "NOTION_VERSION",
    "paragraph_block",
    "title_property",
    "rich_text_property",
    "select_property",
    "multi_select_property",
]
