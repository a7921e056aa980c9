import uuid

import pytest

from app.core import settings as settings_module
from app.core.exceptions import AuthenticationError, AuthNotConfiguredError
from app.services.identity import (
    StaticIdentityProvider,
    SupabaseIdentityProvider,
    extract_bearer_token,
    get_identity_provider,
)


@pytest.mark.anyio
async def test_missing_token_is_rejected(client):
    resp = await client.get("/api/projects")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required"


@pytest.mark.anyio
async def test_unknown_token_is_rejected(client):
    resp = await client.get("/api/projects", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_non_bearer_scheme_is_rejected(client):
    resp = await client.get("/api/projects", headers={"Authorization": "Basic token-alice"})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_unconfigured_provider_is_a_server_error(client, monkeypatch):
    monkeypatch.setattr(settings_module.settings, "auth_provider", "supabase")
    monkeypatch.setattr(settings_module.settings, "auth_provider_url", None)
    monkeypatch.setattr(settings_module.settings, "auth_provider_api_key", None)

    resp = await client.get("/api/projects", headers={"Authorization": "Bearer token-alice"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Authentication service not configured"


@pytest.mark.anyio
async def test_other_users_project_is_forbidden(client, alice, bob):
    project = (await client.post("/api/projects", json={"name": "private"}, headers=alice)).json()
    character = (
        await client.post(
            "/api/characters", json={"project_id": project["project_id"], "name": "Aria"}, headers=alice
        )
    ).json()

    resp = await client.get(f"/api/projects/{project['project_id']}", headers=bob)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Access denied"

    assert (await client.get(f"/api/characters/{character['character_id']}", headers=bob)).status_code == 403
    assert (await client.delete(f"/api/projects/{project['project_id']}", headers=bob)).status_code == 403
    assert (await client.get(f"/api/projects/{project['project_id']}/timeline", headers=bob)).status_code == 403

    resp = await client.post(
        "/api/characters", json={"project_id": project["project_id"], "name": "Spy"}, headers=bob
    )
    assert resp.status_code == 403

    assert (await client.get("/api/projects", headers=bob)).json() == []


@pytest.mark.anyio
async def test_missing_entity_is_not_found(client, alice):
    resp = await client.get(f"/api/characters/{uuid.uuid4()}", headers=alice)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Character not found"

    resp = await client.get(f"/api/magic-systems/{uuid.uuid4()}", headers=alice)
    assert resp.json()["detail"] == "Magic system not found"


class TestIdentityProviders:
    @pytest.mark.anyio
    async def test_static_provider_maps_tokens(self):
        provider = StaticIdentityProvider({"t1": "user-1"})
        user = await provider.resolve("t1")
        assert user.user_id == "user-1"

    @pytest.mark.anyio
    async def test_static_provider_rejects_unknown_tokens(self):
        with pytest.raises(AuthenticationError):
            await StaticIdentityProvider({}).resolve("t1")

    def test_supabase_provider_selected_when_configured(self, monkeypatch):
        monkeypatch.setattr(settings_module.settings, "auth_provider", "supabase")
        monkeypatch.setattr(settings_module.settings, "auth_provider_url", "https://id.example.com/")
        monkeypatch.setattr(settings_module.settings, "auth_provider_api_key", "anon")

        provider = get_identity_provider()
        assert isinstance(provider, SupabaseIdentityProvider)
        assert provider.base_url == "https://id.example.com"

    def test_unknown_provider_is_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings_module.settings, "auth_provider", "ldap")
        with pytest.raises(AuthNotConfiguredError):
            get_identity_provider()

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token abc"])
    def test_extract_bearer_token_rejects_malformed_headers(self, header):
        with pytest.raises(AuthenticationError):
            extract_bearer_token(header)

    def test_extract_bearer_token(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"
        assert extract_bearer_token("bearer xyz") == "xyz"
