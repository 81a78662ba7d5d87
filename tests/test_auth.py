import httpx
import pytest
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql

from conftest import CALLER_ID, FakeResult, make_user

from loan_manager.core.errors import IdentityProviderError
from loan_manager.core.settings import Settings, get_settings
from loan_manager.main import app
from loan_manager.services import identity_provider, users


def _settings(**overrides) -> Settings:
    values = {"CLERK_SECRET_KEY": "sk_test_123", "ADMIN_EMAILS": "Admin@Example.com, ops@example.com"}
    values.update(overrides)
    return Settings(**values)


def _echo_upsert(stmt):
    params = stmt.compile(dialect=postgresql.dialect()).params
    return FakeResult(
        scalar=make_user(
            provider_id=params["provider_id"],
            email=params["email"],
            name=params["name"],
            is_admin=params["is_admin"],
        )
    )


@pytest.fixture
def verify_client(client):
    app.dependency_overrides[get_settings] = lambda: _settings()
    return client


def _fake_profile(email):
    async def _fetch(provider_id, settings, **kwargs):
        return identity_provider.ProviderProfile(provider_id=provider_id, email=email, name="Jane Doe")

    return _fetch


def test_verify_stores_regular_user(verify_client, fake_db, monkeypatch):
    monkeypatch.setattr(identity_provider, "fetch_user_profile", _fake_profile("jane@example.com"))
    fake_db.on_execute(_echo_upsert)

    resp = verify_client.get("/api/auth/verify")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data == {
        "message": "User verified and stored",
        "userId": CALLER_ID,
        "email": "jane@example.com",
        "name": "Jane Doe",
        "isAdmin": False,
    }
    assert fake_db.committed is True


def test_verify_flags_admin_case_insensitively(verify_client, fake_db, monkeypatch):
    monkeypatch.setattr(identity_provider, "fetch_user_profile", _fake_profile("ADMIN@example.com"))
    fake_db.on_execute(_echo_upsert)

    resp = verify_client.get("/api/auth/verify")

    assert resp.status_code == 200
    assert resp.json()["data"]["isAdmin"] is True


def test_verify_provider_failure(verify_client, fake_db, monkeypatch):
    async def _fail(provider_id, settings, **kwargs):
        raise IdentityProviderError("Failed to fetch user details from identity provider")

    monkeypatch.setattr(identity_provider, "fetch_user_profile", _fail)

    resp = verify_client.get("/api/auth/verify")

    assert resp.status_code == 500
    assert resp.json()["code"] == "identity_provider_error"
    assert fake_db.executed == []


def test_verify_requires_authentication(anon_client):
    assert anon_client.get("/api/auth/verify").status_code == 401


@pytest.mark.asyncio
async def test_upsert_updates_existing_row_on_provider_id(fake_db):
    fake_db.on_execute(_echo_upsert)
    profile = identity_provider.ProviderProfile(provider_id="user_x", email="x@example.com", name="X")

    user = await users.upsert_user(fake_db, profile, is_admin=False)

    assert user.provider_id == "user_x"
    sql = str(fake_db.executed[0].compile(dialect=postgresql.dialect()))
    assert "ON CONFLICT (provider_id) DO UPDATE" in sql
    assert "RETURNING" in sql


def _transport(handler):
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_fetch_profile_prefers_primary_email():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/users/user_1")
        assert request.headers["Authorization"] == "Bearer sk_test_123"
        return httpx.Response(
            200,
            json={
                "first_name": "Jane",
                "last_name": "Doe",
                "primary_email_address_id": "idn_2",
                "email_addresses": [
                    {"id": "idn_1", "email_address": "old@example.com"},
                    {"id": "idn_2", "email_address": "jane@example.com"},
                ],
            },
        )

    profile = await identity_provider.fetch_user_profile(
        "user_1", _settings(), transport=_transport(handler)
    )

    assert profile == identity_provider.ProviderProfile(
        provider_id="user_1", email="jane@example.com", name="Jane Doe"
    )


@pytest.mark.asyncio
async def test_fetch_profile_falls_back_to_first_email():
    def handler(request):
        return httpx.Response(
            200,
            json={"first_name": "Solo", "email_addresses": [{"id": "a", "email_address": "solo@example.com"}]},
        )

    profile = await identity_provider.fetch_user_profile(
        "user_2", _settings(), transport=_transport(handler)
    )
    assert profile.email == "solo@example.com"
    assert profile.name == "Solo"


@pytest.mark.asyncio
async def test_fetch_profile_provider_error():
    def handler(request):
        return httpx.Response(404, json={"errors": []})

    with pytest.raises(IdentityProviderError) as exc_info:
        await identity_provider.fetch_user_profile("user_3", _settings(), transport=_transport(handler))
    assert exc_info.value.details == {"status": 404}


@pytest.mark.asyncio
async def test_fetch_profile_without_email():
    def handler(request):
        return httpx.Response(200, json={"first_name": "Nobody", "email_addresses": []})

    with pytest.raises(IdentityProviderError):
        await identity_provider.fetch_user_profile("user_4", _settings(), transport=_transport(handler))


@pytest.mark.asyncio
async def test_fetch_profile_requires_secret_key():
    with pytest.raises(IdentityProviderError):
        await identity_provider.fetch_user_profile("user_5", _settings(CLERK_SECRET_KEY=None))


def test_settings_parse_comma_separated_lists():
    settings = _settings(ALLOWED_ORIGINS="https://a.example, https://b.example,")
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.admin_emails == ["admin@example.com", "ops@example.com"]


def test_settings_are_immutable():
    settings = _settings()
    with pytest.raises(ValidationError):
        settings.admin_emails = []
