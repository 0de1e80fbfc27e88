"""OAuth state tokens binding a CSRF nonce to the initiating user."""

import secrets
from dataclasses import dataclass

from promptbridge.core.errors import InvalidOAuthStateError

STATE_DELIMITER = ":"
NONCE_BYTES = 32


@dataclass(frozen=True)
class OAuthState:
    nonce: str
    user_id: str


def issue_state(user_id: str) -> str:
    """Return ``<nonce>:<user_id>`` with a fresh 32-byte hex nonce.

    User ids are UUIDs, so the delimiter never appears inside either part.
    """
    if not user_id:
        raise ValueError("user_id is required to issue an OAuth state")
    return f"{secrets.token_hex(NONCE_BYTES)}{STATE_DELIMITER}{user_id}"


def parse_state(state: str) -> OAuthState:
    """Split a state token on the first delimiter.

    The nonce is returned as-is and is not checked against anything issued earlier.

    Raises:
        InvalidOAuthStateError: If the delimiter or the user id segment is missing
    """
    if not state or STATE_DELIMITER not in state:
        raise InvalidOAuthStateError("OAuth state is missing or malformed")
    nonce, user_id = state.split(STATE_DELIMITER, 1)
    if not user_id.strip():
        raise InvalidOAuthStateError("OAuth state carries no user id")
    return OAuthState(nonce=nonce, user_id=user_id)


__all__ = ["OAuthState", "issue_state", "parse_state", "STATE_DELIMITER"]
