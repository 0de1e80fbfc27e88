"""Exception types shared by the credential and export layers."""

from typing import Any, Dict, Optional


class ConfigurationError(Exception):
    """Raised when required configuration is missing or malformed."""


class InvalidEncryptionKeyError(ConfigurationError):
    """Raised when the token encryption key is not 32 bytes of hex."""


class DecryptionError(Exception):
    """Raised when a stored token cannot be decrypted (wrong key, tampered or truncated)."""


class InvalidOAuthStateError(ValueError):
    """Raised when an OAuth state token cannot be split into nonce and user id."""


class TokenExchangeError(Exception):
    """Raised when the authorization-code exchange is rejected upstream."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class IntegrationNotFoundError(LookupError):
    """Raised when no credential is stored for a (user, provider) pair."""

    def __init__(self, user_id: Any, provider: str):
        super().__init__(f"No {provider} integration found for user {user_id}")
        self.user_id = user_id
        self.provider = provider


class ExportError(Exception):
    """Base class for template export failures.

    ``status_code`` and ``code`` let the API layer map each failure to a response
    without inspecting messages.
    """

    status_code = 500
    code = "export_failed"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class TemplateNotFoundError(ExportError):
    status_code = 404
    code = "template_not_found"


class AccessDeniedError(ExportError):
    status_code = 403
    code = "access_denied"


class CredentialMissingError(ExportError):
    status_code = 400
    code = "credential_missing"


class CredentialCorruptedError(ExportError):
    status_code = 500
    code = "credential_corrupted"


class ExternalApiError(ExportError):
    status_code = 502
    code = "external_api_error"

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: Any = None,
    ):
        details: Dict[str, Any] = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if upstream_body is not None:
            details["upstream_body"] = upstream_body
        super().__init__(message, details=details or None)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
