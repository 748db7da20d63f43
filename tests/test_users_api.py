"""
Test user directory and admin endpoints.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.core.config import get_settings
from app.services.auth.authorization.rbac import UserRole

settings = get_settings()

USERS_URL = "/api/v1/users"
ADMIN_URL = "/api/v1/admin/users"


@pytest_asyncio.fixture
async def directory(user_factory, certificate_factory):
    ann = await user_factory(
        name="Ann", unit="Engineering", job_title="Engineer", skills=["Python", "AWS"]
    )
    bob = await user_factory(name="Bob", unit="Sales", job_title="Account Executive", skills=["negotiation"])
    meg = await user_factory(name="Meg", unit="Sales", job_title="Director", role=UserRole.MANAGER)
    root = await user_factory(name="Root", unit=None, role=UserRole.ADMIN)
    await certificate_factory(ann)
    await certificate_factory(ann)
    return {"ann": ann, "bob": bob, "meg": meg, "root": root}


def names(response):
    return [u["name"] for u in response.json()]


@pytest.mark.asyncio
async def test_directory_requires_authentication(client: AsyncClient, directory):
    response = await client.get(USERS_URL)

    assert response.status_code == settings.REJECTION_STATUS_CODE


@pytest.mark.asyncio
async def test_list_and_filters(client: AsyncClient, directory, auth_headers):
    headers = auth_headers(directory["bob"])

    assert names(await client.get(USERS_URL, headers=headers)) == ["Ann", "Bob", "Meg", "Root"]
    assert names(await client.get(USERS_URL, params={"unit": "Sales"}, headers=headers)) == ["Bob", "Meg"]
    assert names(await client.get(USERS_URL, params={"role": "MANAGER"}, headers=headers)) == ["Meg"]
    assert names(await client.get(USERS_URL, params={"skill": "python"}, headers=headers)) == ["Ann"]
    assert names(await client.get(USERS_URL, params={"search": "direct"}, headers=headers)) == ["Meg"]


@pytest.mark.asyncio
async def test_search_takes_precedence(client: AsyncClient, directory, auth_headers):
    response = await client.get(
        USERS_URL,
        params={"search": "ann", "unit": "Sales"},
        headers=auth_headers(directory["bob"]),
    )

    assert names(response) == ["Ann"]


@pytest.mark.asyncio
async def test_lookups(client: AsyncClient, directory, auth_headers):
    headers = auth_headers(directory["ann"])

    units = await client.get(f"{USERS_URL}/units", headers=headers)
    titles = await client.get(f"{USERS_URL}/job-titles", headers=headers)
    managers = await client.get(f"{USERS_URL}/managers", headers=headers)

    assert units.json() == ["Engineering", "Sales"]
    assert titles.json() == ["Account Executive", "Director", "Engineer"]
    assert names(managers) == ["Meg"]


@pytest.mark.asyncio
async def test_get_user_with_count(client: AsyncClient, directory, auth_headers):
    response = await client.get(
        f"{USERS_URL}/{directory['ann'].id}", headers=auth_headers(directory["bob"])
    )

    assert response.status_code == 200
    assert response.json()["certificates_count"] == 2
    assert "password_hash" not in response.json()


@pytest.mark.asyncio
async def test_update_own_profile(client: AsyncClient, directory, auth_headers):
    response = await client.put(
        f"{USERS_URL}/{directory['ann'].id}",
        json={"bio": "Cloud person", "skills": ["Go", " ", "Rust"]},
        headers=auth_headers(directory["ann"]),
    )

    assert response.status_code == 200
    assert response.json()["bio"] == "Cloud person"
    assert response.json()["skills"] == ["Go", "Rust"]
    assert response.json()["role"] == "USER"


@pytest.mark.asyncio
async def test_cannot_update_someone_else(client: AsyncClient, directory, auth_headers):
    response = await client.put(
        f"{USERS_URL}/{directory['ann'].id}",
        json={"bio": "defaced"},
        headers=auth_headers(directory["bob"]),
    )

    assert response.status_code == settings.REJECTION_STATUS_CODE


@pytest.mark.asyncio
async def test_admin_updates_any_profile(client: AsyncClient, directory, auth_headers):
    response = await client.put(
        f"{USERS_URL}/{directory['ann'].id}",
        json={"job_title": "Staff Engineer"},
        headers=auth_headers(directory["root"]),
    )

    assert response.status_code == 200
    assert response.json()["job_title"] == "Staff Engineer"


class TestAdministration:
    """Role and account management."""

    @pytest.mark.asyncio
    async def test_admin_promotes_user(self, client: AsyncClient, directory, auth_headers):
        response = await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={"role": "MANAGER"},
            headers=auth_headers(directory["root"]),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "MANAGER"

    @pytest.mark.asyncio
    async def test_promotion_applies_after_login(
        self, client: AsyncClient, directory, auth_headers, token_service
    ):
        await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={"role": "MANAGER"},
            headers=auth_headers(directory["root"]),
        )

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": directory["bob"].email, "password": "correct-horse-battery"},
        )

        claims = token_service.validate(login.json()["tokens"]["access_token"])
        assert claims.role is UserRole.MANAGER
        assert claims.ver == 1

    @pytest.mark.asyncio
    async def test_manager_cannot_administer(self, client: AsyncClient, directory, auth_headers):
        response = await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={"role": "ADMIN"},
            headers=auth_headers(directory["meg"]),
        )

        assert response.status_code == settings.REJECTION_STATUS_CODE

    @pytest.mark.asyncio
    async def test_admin_cannot_demote_self(self, client: AsyncClient, directory, auth_headers):
        response = await client.patch(
            f"{ADMIN_URL}/{directory['root'].id}",
            json={"role": "USER"},
            headers=auth_headers(directory["root"]),
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "role"

    @pytest.mark.asyncio
    async def test_disabled_user_cannot_login(self, client: AsyncClient, directory, auth_headers):
        response = await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={"enabled": False},
            headers=auth_headers(directory["root"]),
        )
        assert response.json()["enabled"] is False

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": directory["bob"].email, "password": "correct-horse-battery"},
        )
        assert login.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_change_rejected(self, client: AsyncClient, directory, auth_headers):
        response = await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={},
            headers=auth_headers(directory["root"]),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_token_version_check(
        self, client: AsyncClient, directory, auth_headers, monkeypatch
    ):
        """With version checking on, tokens issued before an account change stop working."""
        monkeypatch.setattr(settings, "TOKEN_VERSION_CHECK", True)
        stale = auth_headers(directory["bob"])

        assert (await client.get("/api/v1/auth/me", headers=stale)).status_code == 200

        await client.patch(
            f"{ADMIN_URL}/{directory['bob'].id}",
            json={"enabled": True},
            headers=auth_headers(directory["root"]),
        )

        response = await client.get("/api/v1/auth/me", headers=stale)
        assert response.status_code == settings.REJECTION_STATUS_CODE
