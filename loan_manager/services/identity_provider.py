from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from loan_manager.core.errors import IdentityProviderError
from loan_manager.core.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    provider_id: str
    email: str
    name: str


def _primary_email(payload: dict[str, Any]) -> str | None:
    addresses = payload.get("email_addresses") or []
    primary_id = payload.get("primary_email_address_id")
    for address in addresses:
        if primary_id and address.get("id") == primary_id:
            return address.get("email_address")
    if addresses:
        return addresses[0].get("email_address")
    return None


def parse_profile(provider_id: str, payload: dict[str, Any]) -> ProviderProfile:
    email = _primary_email(payload)
    if not email:
        raise IdentityProviderError(
            "Identity provider returned a user without an email address",
            details={"user_id": provider_id},
        )
    name = f"{payload.get('first_name') or ''} {payload.get('last_name') or ''}".strip()
    return ProviderProfile(provider_id=provider_id, email=email, name=name)


def build_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    if not settings.identity_provider_secret_key:
        raise IdentityProviderError("Identity provider secret key is not configured")
    return httpx.AsyncClient(
        base_url=settings.identity_provider_api_url,
        timeout=settings.identity_provider_timeout_seconds,
        headers={"Authorization": f"Bearer {settings.identity_provider_secret_key}"},
        transport=transport,
    )


async def fetch_user_profile(
    provider_id: str,
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderProfile:
    async with build_client(settings, transport) as client:
        try:
            response = await client.get(f"/users/{provider_id}")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Identity provider rejected profile lookup for %s with status %s",
                provider_id,
                exc.response.status_code,
            )
            raise IdentityProviderError(
                "Failed to fetch user details from identity provider",
                details={"status": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            raise IdentityProviderError(
                "Failed to fetch user details from identity provider"
            ) from exc
    return parse_profile(provider_id, response.json())
