from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio
import structlog
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import id_token
from mcp.server.auth.middleware.auth_context import get_access_token
from mcp.server.auth.provider import AccessToken, TokenVerifier

ALLOWED_ISSUERS = {"https://accounts.google.com", "accounts.google.com"}
API_KEY_CLIENT_ID = "api-key"
API_KEY_LIFETIME_SECONDS = 31536000

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """Verified identity of the caller; the only source of a lift owner id."""

    subject: str


class VerifiedAccessToken(AccessToken):
    subject: str


def api_key_subject(key: str) -> str:
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"{API_KEY_CLIENT_ID}:{digest[:16]}"


def _parse_api_key_entry(entry: str) -> tuple[str, str]:
    # "subject:key" binds the key to an existing owner; a bare key gets its own.
    subject, sep, key = entry.partition(":")
    if sep and subject.strip() and key.strip():
        return key.strip(), subject.strip()
    return entry, api_key_subject(entry)


def load_api_keys(path: str, inline_key: str | None) -> dict[str, str]:
    """Map each configured API key to the subject that owns its lifts."""
    entries: dict[str, str] = {}

    if inline_key and inline_key.strip():
        key, subject = _parse_api_key_entry(inline_key.strip())
        entries[key] = subject

    file_path = Path(path)
    if file_path.exists():
        raw = file_path.read_text(encoding="utf-8")
        for line in raw.splitlines():
            for item in line.split(","):
                cleaned = item.strip()
                if cleaned:
                    key, subject = _parse_api_key_entry(cleaned)
                    entries[key] = subject

    return entries


class GoogleTokenVerifier(TokenVerifier):
    def __init__(self, client_id: str | None, api_keys: dict[str, str]):
        self.client_id = client_id
        self.api_keys = api_keys
        self._request = GoogleAuthRequest()

    def _verify(self, token: str) -> VerifiedAccessToken | None:
        if self.api_keys and token in self.api_keys:
            return VerifiedAccessToken(
                token=token,
                client_id=API_KEY_CLIENT_ID,
                scopes=[],
                expires_at=int(time.time()) + API_KEY_LIFETIME_SECONDS,
                subject=self.api_keys[token],
            )

        try:
            claims: dict[str, Any] = id_token.verify_oauth2_token(
                token, self._request, audience=self.client_id
            )
        except (GoogleAuthError, ValueError) as exc:
            logger.info("token_rejected", reason=str(exc))
            return None

        if claims.get("iss") not in ALLOWED_ISSUERS:
            return None

        if self.client_id and claims.get("aud") != self.client_id:
            return None

        subject = claims.get("sub")
        if not subject:
            return None

        if not claims.get("email") or claims.get("email_verified") is not True:
            return None

        try:
            expires_at = int(claims["exp"])
        except (KeyError, TypeError, ValueError):
            return None

        return VerifiedAccessToken(
            token=token,
            client_id=str(claims.get("aud", "")),
            scopes=[],
            expires_at=expires_at,
            subject=str(subject),
        )

    async def verify_token(self, token: str) -> AccessToken | None:
        return await anyio.to_thread.run_sync(self._verify, token)


def principal_from_token(token: AccessToken | None) -> Principal | None:
    if not isinstance(token, VerifiedAccessToken):
        return None
    return Principal(subject=token.subject)


def current_principal() -> Principal | None:
    """Principal of the request being served, or None when unauthenticated."""
    return principal_from_token(get_access_token())
