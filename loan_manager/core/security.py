from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any

import httpx
from jose import JWTError, jwt

from loan_manager.core.settings import settings

logger = logging.getLogger(__name__)

# Minimum gap between JWKS refetches triggered by unknown key ids
JWKS_REFRESH_INTERVAL_SECONDS = 60.0

_jwks_cache: dict[str, Any] = {}
_jwks_fetched_at: float | None = None


class VerificationKeyError(RuntimeError):
    pass


@lru_cache(maxsize=1)
def _load_pem_key() -> str | None:
    if settings.identity_provider_jwt_key:
        # PEM keys pasted into env files often carry escaped newlines
        return settings.identity_provider_jwt_key.replace("\\n", "\n")
    if settings.identity_provider_jwt_key_path:
        with open(settings.identity_provider_jwt_key_path, "r", encoding="utf-8") as key_file:
            return key_file.read()
    return None


async def _fetch_jwks(transport: httpx.AsyncBaseTransport | None = None) -> dict[str, Any]:
    global _jwks_fetched_at
    if "keys" in _jwks_cache:
        return _jwks_cache
    if not settings.identity_provider_secret_key:
        raise VerificationKeyError("No token verification key configured")
    async with httpx.AsyncClient(
        base_url=settings.identity_provider_api_url,
        timeout=settings.identity_provider_timeout_seconds,
        headers={"Authorization": f"Bearer {settings.identity_provider_secret_key}"},
        transport=transport,
    ) as client:
        response = await client.get("/jwks")
        response.raise_for_status()
        document = response.json()
    _jwks_cache.clear()
    _jwks_cache.update(document)
    _jwks_fetched_at = time.monotonic()
    logger.info("Loaded %d signing keys from identity provider", len(document.get("keys", [])))
    return _jwks_cache


async def get_verification_key(
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | dict[str, Any]:
    pem = _load_pem_key()
    if pem:
        return pem
    try:
        return await _fetch_jwks(transport)
    except httpx.HTTPError as exc:
        raise VerificationKeyError("Unable to load identity provider signing keys") from exc


async def refresh_jwks(transport: httpx.AsyncBaseTransport | None = None) -> dict[str, Any]:
    """Drop the cached key set and load the provider's current one."""
    _jwks_cache.clear()
    logger.info("Refreshing identity provider signing keys")
    return await get_verification_key(transport)


def reset_key_cache() -> None:
    global _jwks_fetched_at
    _load_pem_key.cache_clear()
    _jwks_cache.clear()
    _jwks_fetched_at = None


def _has_unknown_kid(token: str, jwks: dict[str, Any]) -> bool:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError:
        return False
    known = {key.get("kid") for key in jwks.get("keys", [])}
    return kid is not None and kid not in known


def _refresh_allowed() -> bool:
    if _jwks_fetched_at is None:
        return True
    return time.monotonic() - _jwks_fetched_at >= JWKS_REFRESH_INTERVAL_SECONDS


def decode_session_token(token: str, key: str | dict[str, Any]) -> dict[str, Any]:
    """Verify a provider session token and return its claims.

    Raises ``ValueError`` for any token that must not be trusted.
    """
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.identity_provider_jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError as exc:
        raise ValueError("Invalid or expired token") from exc

    if not payload.get("sub"):
        raise ValueError("Token has no subject")

    authorized_parties = settings.identity_provider_authorized_parties
    if authorized_parties and payload.get("azp") not in authorized_parties:
        raise ValueError("Token issued for an unauthorized party")
    return payload


async def verify_session_token(
    token: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Resolve the signing key for ``token`` and verify it.

    A token signed with a key id missing from the cached JWKS triggers one
    refetch, so provider key rotation does not need a restart.
    """
    key = await get_verification_key(transport)
    if isinstance(key, dict) and _has_unknown_kid(token, key) and _refresh_allowed():
        key = await refresh_jwks(transport)
    return decode_session_token(token, key)
