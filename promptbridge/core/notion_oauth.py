"""Notion OAuth: authorization URL and authorization-code exchange."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from promptbridge.core.errors import TokenExchangeError

AUTHORIZE_URL = "https://api.notion.com/v1/oauth/authorize"
TOKEN_URL = "https://api.notion.com/v1/oauth/token"
OAUTH_NOTION_VERSION = "2022-06-28"
DEFAULT_SCOPES: List[str] = ["read", "write"]


@dataclass(frozen=True)
class TokenExchangeResult:
    """Normalized token response from Notion."""

    access_token: str
    refresh_token: Optional[str] = None
    workspace_id: Optional[str] = None
    workspace_name: Optional[str] = None
    bot_id: Optional[str] = None
    owner: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "TokenExchangeResult":
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            workspace_id=payload.get("workspace_id"),
            workspace_name=payload.get("workspace_name"),
            bot_id=payload.get("bot_id"),
            owner=payload.get("owner") or {},
        )


class NotionOAuthClient:
    """Builds the authorize URL and exchanges codes for access tokens."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the OAuth client.

        Args:
            client_id: Notion public integration client id
            client_secret: Notion client secret
            redirect_uri: Redirect URI registered with Notion
            scopes: Scopes requested on the authorize URL (default: read write)
            transport: Optional httpx transport, used by tests
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scopes = scopes or DEFAULT_SCOPES
        self._transport = transport

    def build_authorize_url(self, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "owner": "user",
            "scope": " ".join(self._scopes),
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenExchangeResult:
        """Exchange an authorization code for tokens with a single POST.

        Raises:
            TokenExchangeError: On a non-2xx response, a transport failure or a
                response without an access token. Carries upstream status and body.
        """
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._redirect_uri,
        }
        headers = {
            "Content-Type": "application/json",
            "Notion-Version": OAUTH_NOTION_VERSION,
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(
                    TOKEN_URL,
                    auth=httpx.BasicAuth(self._client_id, self._client_secret),
                    headers=headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"Notion token exchange request failed: {e}") from e

        if not resp.is_success:
            raise TokenExchangeError(
                f"Notion token exchange failed: {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )
        try:
            return TokenExchangeResult.from_response(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise TokenExchangeError(
                "Notion token response did not include an access token",
                status_code=resp.status_code,
                body=resp.text,
            ) from e


__all__ = [
    "NotionOAuthClient",
    "TokenExchangeResult",
    "AUTHORIZE_URL",
    "TOKEN_URL",
    "OAUTH_NOTION_VERSION",
]
