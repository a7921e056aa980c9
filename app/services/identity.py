"""Bearer-token verification against an external identity provider.

Tokens are never parsed locally; the provider is asked who owns them. The
static provider maps fixed tokens to user IDs for development and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.core.exceptions import AuthenticationError, AuthNotConfiguredError
from app.core.metrics import record_identity_lookup
from app.core.settings import settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    email: str | None = None


class StaticIdentityProvider:
    def __init__(self, tokens: dict[str, str]):
        self.tokens = dict(tokens)

    async def resolve(self, token: str) -> AuthenticatedUser:
        user_id = self.tokens.get(token)
        if user_id is None:
            record_identity_lookup("rejected")
            raise AuthenticationError("Invalid or expired token")
        record_identity_lookup("ok")
        return AuthenticatedUser(user_id=user_id)


class SupabaseIdentityProvider:
    """Resolves tokens with `GET {url}/auth/v1/user`."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def resolve(self, token: str) -> AuthenticatedUser:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={"Authorization": f"Bearer {token}", "apikey": self.api_key},
                )
        except httpx.HTTPError as exc:
            record_identity_lookup("error")
            logger.warning("identity_provider_unreachable", extra={"error": str(exc)})
            raise AuthenticationError("Invalid or expired token") from exc

        if resp.status_code != 200:
            record_identity_lookup("rejected")
            raise AuthenticationError("Invalid or expired token")

        payload = resp.json()
        user_id = payload.get("id")
        if not user_id:
            record_identity_lookup("rejected")
            raise AuthenticationError("Invalid or expired token")
        record_identity_lookup("ok")
        return AuthenticatedUser(user_id=str(user_id), email=payload.get("email"))


def get_identity_provider() -> StaticIdentityProvider | SupabaseIdentityProvider:
    if settings.auth_provider == "static":
        return StaticIdentityProvider(settings.auth_static_tokens)
    if settings.auth_provider == "supabase" and settings.auth_provider_url and settings.auth_provider_api_key:
        return SupabaseIdentityProvider(
            base_url=settings.auth_provider_url,
            api_key=settings.auth_provider_api_key,
            timeout=settings.auth_timeout_seconds,
        )
    raise AuthNotConfiguredError()


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError()
    return token.strip()
