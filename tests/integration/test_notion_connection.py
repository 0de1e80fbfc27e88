"""Integration tests for the Notion OAuth callback and connection management."""

import uuid
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from promptbridge.core.errors import DecryptionError, IntegrationNotFoundError
from promptbridge.core.notion_client import NotionClient
from promptbridge.core.notion_oauth import NotionOAuthClient
from promptbridge.core.oauth_state import issue_state
from promptbridge.repositories import IntegrationFields, UserIntegrationRepository
from promptbridge.services.notion_connection import NotionConnectionService

REDIRECT_BASE = "http://localhost:5173/settings"

TOKEN_RESPONSE = {
    "access_token": "secret_access",
    "bot_id": "bot-1",
    "workspace_id": "ws-1",
    "workspace_name": "Acme Co",
}


class TokenEndpoint:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = TOKEN_RESPONSE if body is None else body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


def _query(url: str) -> dict:
    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == REDIRECT_BASE
    return {k: v[0] for k, v in parse_qs(parsed.query).items()}


def _service(db_session, cipher, endpoint=None, with_cipher=True) -> NotionConnectionService:
    oauth_client = NotionOAuthClient(
        client_id="cid",
        client_secret="csecret",
        redirect_uri="http://localhost:8000/api/notion/oauth/callback",
        transport=httpx.MockTransport(endpoint or TokenEndpoint()),
    )
    return NotionConnectionService(
        session=db_session,
        redirect_base_url=REDIRECT_BASE,
        oauth_client=oauth_client,
        cipher=cipher if with_cipher else None,
    )


@pytest.mark.asyncio
async def test_start_binds_state_to_user(db_session, cipher):
    user_id = uuid.uuid4()

    started = _service(db_session, cipher).start(user_id)

    assert started.state.endswith(f":{user_id}")
    query = parse_qs(urlparse(started.auth_url).query)
    assert query["state"] == [started.state]


@pytest.mark.asyncio
async def test_callback_stores_encrypted_token(db_session, cipher, make_profile):
    profile = await make_profile()
    endpoint = TokenEndpoint()
    service = _service(db_session, cipher, endpoint)

    redirect = await service.complete(code="the-code", state=issue_state(str(profile.id)))

    assert _query(redirect) == {"connected": "notion", "workspace": "Acme Co"}
    assert len(endpoint.requests) == 1
    row = await UserIntegrationRepository(db_session).get(profile.id, "notion")
    assert row.access_token != "secret_access"
    assert cipher.decrypt(row.access_token) == "secret_access"
    assert row.refresh_token is None
    assert row.workspace_id == "ws-1"
    assert row.expires_at is None


@pytest.mark.asyncio
async def test_callback_without_workspace_name(db_session, cipher, make_profile):
    profile = await make_profile()
    endpoint = TokenEndpoint(body={"access_token": "secret_access", "workspace_id": "ws-1"})

    redirect = await _service(db_session, cipher, endpoint).complete(
        code="the-code", state=issue_state(str(profile.id))
    )

    assert _query(redirect)["workspace"] == "Unknown"


@pytest.mark.asyncio
async def test_reconnect_replaces_credential(db_session, cipher, make_profile):
    profile = await make_profile()
    await _service(db_session, cipher).complete(code="first", state=issue_state(str(profile.id)))
    endpoint = TokenEndpoint(body={**TOKEN_RESPONSE, "access_token": "secret_new", "workspace_name": "Globex"})

    await _service(db_session, cipher, endpoint).complete(code="second", state=issue_state(str(profile.id)))

    rows = await UserIntegrationRepository(db_session).list_for_user(profile.id)
    assert len(rows) == 1
    assert cipher.decrypt(rows[0].access_token) == "secret_new"
    assert rows[0].workspace_name == "Globex"


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [None, "", "onlynonce", "nonce:", "nonce:not-a-uuid"])
async def test_invalid_state_makes_no_upstream_call(db_session, cipher, state):
    endpoint = TokenEndpoint()

    redirect = await _service(db_session, cipher, endpoint).complete(code="the-code", state=state)

    assert _query(redirect) == {"error": "invalid_state"}
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_provider_error_is_forwarded(db_session, cipher):
    endpoint = TokenEndpoint()

    redirect = await _service(db_session, cipher, endpoint).complete(
        code=None, state=issue_state(str(uuid.uuid4())), error="access_denied"
    )

    assert _query(redirect) == {"error": "oauth_failed", "message": "access_denied"}
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_missing_code(db_session, cipher):
    endpoint = TokenEndpoint()

    redirect = await _service(db_session, cipher, endpoint).complete(
        code=None, state=issue_state(str(uuid.uuid4()))
    )

    assert _query(redirect) == {"error": "missing_code"}
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_rejected_code_stores_nothing(db_session, cipher, make_profile):
    profile = await make_profile()
    endpoint = TokenEndpoint(status_code=400, body={"error": "invalid_grant"})

    redirect = await _service(db_session, cipher, endpoint).complete(
        code="bad-code", state=issue_state(str(profile.id))
    )

    assert _query(redirect) == {"error": "token_exchange_failed"}
    assert await UserIntegrationRepository(db_session).list_for_user(profile.id) == []


@pytest.mark.asyncio
async def test_callback_without_encryption_key(db_session, cipher, make_profile):
    profile = await make_profile()
    endpoint = TokenEndpoint()

    redirect = await _service(db_session, cipher, endpoint, with_cipher=False).complete(
        code="the-code", state=issue_state(str(profile.id))
    )

    assert _query(redirect) == {"error": "unexpected_error"}
    assert endpoint.requests == []


@pytest.mark.asyncio
async def test_status_and_disconnect(db_session, cipher, make_profile):
    profile = await make_profile()
    service = _service(db_session, cipher)

    assert await service.status(profile.id) == {"connected": False, "workspace": None, "last_updated": None}

    await service.complete(code="the-code", state=issue_state(str(profile.id)))
    status = await service.status(profile.id)
    assert status["connected"] is True
    assert status["workspace"] == {"name": "Acme Co", "id": "ws-1"}
    assert status["last_updated"] is not None

    assert await service.disconnect(profile.id) is True
    assert await service.disconnect(profile.id) is False
    assert (await service.status(profile.id))["connected"] is False


@pytest.mark.asyncio
async def test_verify_connection_uses_decrypted_token(db_session, cipher, make_profile):
    profile = await make_profile()
    service = _service(db_session, cipher)
    await service.complete(code="the-code", state=issue_state(str(profile.id)))
    seen = []

    def users_me(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"object": "user", "id": "bot-1", "name": "PromptBridge"})

    result = await service.verify_connection(
        profile.id,
        client_factory=lambda token: NotionClient(token, transport=httpx.MockTransport(users_me)),
    )

    assert seen == ["Bearer secret_access"]
    assert result == {
        "user": {"id": "bot-1", "name": "PromptBridge", "email": None},
        "workspace": {"name": "Acme Co", "id": "ws-1"},
    }


@pytest.mark.asyncio
async def test_verify_connection_errors(db_session, cipher, make_profile):
    profile = await make_profile()
    service = _service(db_session, cipher)

    with pytest.raises(IntegrationNotFoundError):
        await service.verify_connection(profile.id)

    await UserIntegrationRepository(db_session).upsert_notion_token(
        profile.id, IntegrationFields(access_token="garbage")
    )
    await db_session.commit()

    with pytest.raises(DecryptionError):
        await service.verify_connection(profile.id)


@pytest.mark.asyncio
async def test_storage_failure_redirects_and_stores_nothing(db_session, cipher):
    # Well-formed state, but the user has no profile row to own the credential
    user_id = uuid.uuid4()
    endpoint = TokenEndpoint()

    redirect = await _service(db_session, cipher, endpoint).complete(
        code="the-code", state=issue_state(str(user_id))
    )

    assert _query(redirect) == {"error": "storage_failed"}
    assert len(endpoint.requests) == 1
    assert await UserIntegrationRepository(db_session).list_for_user(user_id) == []
