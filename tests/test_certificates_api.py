"""
Test certificate endpoints.
"""
from datetime import date, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.core.config import get_settings
from app.services.auth.authorization.rbac import UserRole, Visibility

settings = get_settings()

CERTIFICATES_URL = "/api/v1/certificates"


def form(**overrides):
    data = {
        "title": "Kubernetes Administrator",
        "category": "Cloud",
        "issuer": "CNCF",
        "completion_date": (date.today() - timedelta(days=10)).isoformat(),
        "visibility": "PUBLIC",
    }
    data.update(overrides)
    return data


def assert_rejected(response):
    assert response.status_code == settings.REJECTION_STATUS_CODE
    assert response.json() == {
        "error": {"code": "REQ_001", "message": "The request could not be completed"}
    }


@pytest_asyncio.fixture
async def people(user_factory):
    return {
        "alice": await user_factory(name="Alice", unit="Engineering"),
        "bob": await user_factory(name="Bob", unit="Engineering"),
        "sara": await user_factory(name="Sara", unit="Sales"),
        "admin": await user_factory(name="Root", role=UserRole.ADMIN, unit="IT"),
    }


class TestCreate:
    """Creating certificates."""

    @pytest.mark.asyncio
    async def test_create_public_certificate(self, client: AsyncClient, people, auth_headers):
        response = await client.post(
            CERTIFICATES_URL,
            data=form(tags="Cloud, k8s,cloud"),
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Kubernetes Administrator"
        assert data["owner_id"] == str(people["alice"].id)
        assert data["unit"] == "Engineering"
        assert data["author"]["name"] == "Alice"
        assert data["tags"] == ["cloud", "k8s"]
        assert data["likes"] == 0
        assert data["views"] == 0
        assert data["liked_by_current_user"] is False

    @pytest.mark.asyncio
    async def test_create_requires_authentication(self, client: AsyncClient):
        response = await client.post(CERTIFICATES_URL, data=form())

        assert_rejected(response)

    @pytest.mark.asyncio
    async def test_unit_comes_from_stored_owner(
        self, client: AsyncClient, user_factory, token_service
    ):
        """A stale unit claim in the token does not leak into the record."""
        user = await user_factory(unit="Engineering")
        user.unit = "Marketing"
        token = token_service.issue(user).access_token

        response = await client.post(
            CERTIFICATES_URL,
            data=form(),
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 201
        assert response.json()["unit"] == "Engineering"

    @pytest.mark.asyncio
    async def test_future_completion_date_rejected(
        self, client: AsyncClient, people, auth_headers
    ):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        response = await client.post(
            CERTIFICATES_URL,
            data=form(completion_date=tomorrow),
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "completion_date"

    @pytest.mark.asyncio
    async def test_upload_file(self, client: AsyncClient, people, auth_headers, storage):
        response = await client.post(
            CERTIFICATES_URL,
            data=form(),
            files={"file": ("cert.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 201
        assert response.json()["file_url"].startswith("memory://certificates/")
        assert list(storage.objects.values()) == [b"%PDF-1.4 test"]

    @pytest.mark.asyncio
    async def test_upload_rejects_unknown_extension(
        self, client: AsyncClient, people, auth_headers, storage
    ):
        response = await client.post(
            CERTIFICATES_URL,
            data=form(),
            files={"file": ("payload.exe", b"MZ", "application/octet-stream")},
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 422
        assert storage.objects == {}


class TestRead:
    """Reading single certificates."""

    @pytest.mark.asyncio
    async def test_private_record_scenario(self, client: AsyncClient, people, auth_headers):
        """Owner creates PRIVATE R1: a colleague is rejected, an admin reads it."""
        response = await client.post(
            CERTIFICATES_URL,
            data=form(visibility="PRIVATE"),
            headers=auth_headers(people["alice"]),
        )
        r1 = response.json()["id"]

        assert_rejected(await client.get(f"{CERTIFICATES_URL}/{r1}", headers=auth_headers(people["bob"])))

        response = await client.get(f"{CERTIFICATES_URL}/{r1}", headers=auth_headers(people["admin"]))
        assert response.status_code == 200
        assert response.json()["id"] == r1

    @pytest.mark.asyncio
    async def test_missing_and_forbidden_look_the_same(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        private = await certificate_factory(people["alice"], visibility=Visibility.PRIVATE)
        headers = auth_headers(people["sara"])

        forbidden = await client.get(f"{CERTIFICATES_URL}/{private.id}", headers=headers)
        missing = await client.get(f"{CERTIFICATES_URL}/{uuid4()}", headers=headers)

        assert_rejected(forbidden)
        assert_rejected(missing)
        assert forbidden.text == missing.text

    @pytest.mark.asyncio
    async def test_anonymous_reads_public(self, client: AsyncClient, people, certificate_factory):
        public = await certificate_factory(people["alice"])
        unit_only = await certificate_factory(people["alice"], visibility=Visibility.UNIT_ONLY)

        assert (await client.get(f"{CERTIFICATES_URL}/{public.id}")).status_code == 200
        assert_rejected(await client.get(f"{CERTIFICATES_URL}/{unit_only.id}"))

    @pytest.mark.asyncio
    async def test_invalid_token_rejected_on_public_read(
        self, client: AsyncClient, people, certificate_factory
    ):
        public = await certificate_factory(people["alice"])

        response = await client.get(
            f"{CERTIFICATES_URL}/{public.id}",
            headers={"Authorization": "Bearer garbage"},
        )

        assert_rejected(response)

    @pytest.mark.asyncio
    async def test_unit_only_scenario(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"], visibility=Visibility.UNIT_ONLY)

        response = await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["bob"]))
        assert response.status_code == 200

        assert_rejected(
            await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["sara"]))
        )

    @pytest.mark.asyncio
    async def test_each_read_counts_a_view(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"])

        await client.get(f"{CERTIFICATES_URL}/{record.id}")
        response = await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["alice"]))

        assert response.json()["views"] == 2

    @pytest.mark.asyncio
    async def test_rejected_read_counts_no_view(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"], visibility=Visibility.PRIVATE)

        await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["bob"]))
        response = await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["alice"]))

        assert response.json()["views"] == 1


class TestList:
    """Listing certificates."""

    @pytest.mark.asyncio
    async def test_private_absent_for_others(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        await certificate_factory(people["alice"], title="Public One")
        await certificate_factory(people["alice"], title="Secret One", visibility=Visibility.PRIVATE)

        def titles(response):
            return {item["title"] for item in response.json()["items"]}

        assert titles(await client.get(CERTIFICATES_URL)) == {"Public One"}
        assert titles(await client.get(CERTIFICATES_URL, headers=auth_headers(people["bob"]))) == {"Public One"}
        assert titles(await client.get(CERTIFICATES_URL, headers=auth_headers(people["alice"]))) == {
            "Public One",
            "Secret One",
        }
        assert titles(await client.get(CERTIFICATES_URL, headers=auth_headers(people["admin"]))) == {
            "Public One",
            "Secret One",
        }

    @pytest.mark.asyncio
    async def test_unit_only_in_lists(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        await certificate_factory(people["alice"], title="Eng Only", visibility=Visibility.UNIT_ONLY)

        bob_view = await client.get(CERTIFICATES_URL, headers=auth_headers(people["bob"]))
        sara_view = await client.get(CERTIFICATES_URL, headers=auth_headers(people["sara"]))

        assert bob_view.json()["total"] == 1
        assert sara_view.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, people, certificate_factory):
        for i in range(5):
            await certificate_factory(people["alice"], title=f"Cert {i}")

        first = (await client.get(CERTIFICATES_URL, params={"page": 0, "size": 2, "sort": "title", "direction": "asc"})).json()
        last = (await client.get(CERTIFICATES_URL, params={"page": 2, "size": 2, "sort": "title", "direction": "asc"})).json()

        assert [i["title"] for i in first["items"]] == ["Cert 0", "Cert 1"]
        assert first["total"] == 5
        assert first["has_next"] is True
        assert [i["title"] for i in last["items"]] == ["Cert 4"]
        assert last["has_next"] is False

    @pytest.mark.asyncio
    async def test_unsupported_sort_rejected(self, client: AsyncClient):
        response = await client.get(CERTIFICATES_URL, params={"sort": "password_hash"})

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "sort"

    @pytest.mark.asyncio
    async def test_search_and_category(self, client: AsyncClient, people, certificate_factory):
        await certificate_factory(people["alice"], title="Azure Fundamentals", category="Cloud", issuer="Microsoft")
        await certificate_factory(people["alice"], title="Scrum Master", category="Agile", issuer="Scrum.org", tags=["process"])

        by_issuer = await client.get(CERTIFICATES_URL, params={"search": "microSOFT"})
        by_tag = await client.get(CERTIFICATES_URL, params={"search": "process"})
        by_category = await client.get(CERTIFICATES_URL, params={"category": "agile"})

        assert [i["title"] for i in by_issuer.json()["items"]] == ["Azure Fundamentals"]
        assert [i["title"] for i in by_tag.json()["items"]] == ["Scrum Master"]
        assert [i["title"] for i in by_category.json()["items"]] == ["Scrum Master"]

    @pytest.mark.asyncio
    async def test_by_author_respects_visibility(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        await certificate_factory(people["alice"], title="Open")
        await certificate_factory(people["alice"], title="Closed", visibility=Visibility.PRIVATE)
        await certificate_factory(people["bob"], title="Other Author")

        response = await client.get(
            f"{CERTIFICATES_URL}/author/{people['alice'].id}",
            headers=auth_headers(people["sara"]),
        )

        assert [i["title"] for i in response.json()["items"]] == ["Open"]

    @pytest.mark.asyncio
    async def test_by_tag(self, client: AsyncClient, people, certificate_factory):
        await certificate_factory(people["alice"], title="Tagged", tags=["security"])
        await certificate_factory(people["alice"], title="Near Miss", tags=["securityplus"])

        response = await client.get(f"{CERTIFICATES_URL}/tag/Security")

        assert [i["title"] for i in response.json()["items"]] == ["Tagged"]

    @pytest.mark.asyncio
    async def test_trending_and_recent(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        popular = await certificate_factory(people["alice"], title="Popular", like_count=7, view_count=2)
        await certificate_factory(people["alice"], title="Viewed", like_count=1, view_count=50)
        await certificate_factory(people["alice"], title="Hidden", like_count=99, view_count=99, visibility=Visibility.PRIVATE)

        liked = await client.get(f"{CERTIFICATES_URL}/trending/liked")
        viewed = await client.get(f"{CERTIFICATES_URL}/trending/viewed")
        recent = await client.get(f"{CERTIFICATES_URL}/recent")

        assert [i["title"] for i in liked.json()] == ["Popular", "Viewed"]
        assert [i["title"] for i in viewed.json()] == ["Viewed", "Popular"]
        assert {i["title"] for i in recent.json()} == {"Popular", "Viewed"}
        assert liked.json()[0]["id"] == str(popular.id)


class TestUpdateDelete:
    """Modifying certificates."""

    @pytest.mark.asyncio
    async def test_owner_updates(self, client: AsyncClient, people, auth_headers, certificate_factory):
        record = await certificate_factory(people["alice"])

        response = await client.put(
            f"{CERTIFICATES_URL}/{record.id}",
            data={"title": "Renamed", "visibility": "UNIT_ONLY"},
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["visibility"] == "UNIT_ONLY"
        assert data["issuer"] == "Amazon"
        assert data["owner_id"] == str(people["alice"].id)
        assert data["unit"] == "Engineering"

    @pytest.mark.asyncio
    async def test_blank_fields_leave_values_unchanged(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(
            people["alice"], subcategory="Architecture", remarks="Passed first try"
        )

        response = await client.put(
            f"{CERTIFICATES_URL}/{record.id}",
            data={"title": "Renamed", "subcategory": "", "remarks": ""},
            headers=auth_headers(people["alice"]),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["subcategory"] == "Architecture"
        assert data["remarks"] == "Passed first try"

    @pytest.mark.asyncio
    async def test_colleague_cannot_update(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"])

        response = await client.put(
            f"{CERTIFICATES_URL}/{record.id}",
            data={"title": "Hijacked"},
            headers=auth_headers(people["bob"]),
        )

        assert_rejected(response)

    @pytest.mark.asyncio
    async def test_admin_deletes(self, client: AsyncClient, people, auth_headers, certificate_factory):
        record = await certificate_factory(people["alice"])

        response = await client.delete(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["admin"]))
        assert response.status_code == 204

        assert_rejected(await client.get(f"{CERTIFICATES_URL}/{record.id}"))

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"])

        assert_rejected(
            await client.delete(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["sara"]))
        )
        assert (await client.get(f"{CERTIFICATES_URL}/{record.id}")).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_liked_certificate(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"])
        await client.post(f"{CERTIFICATES_URL}/{record.id}/like", headers=auth_headers(people["bob"]))

        response = await client.delete(f"{CERTIFICATES_URL}/{record.id}", headers=auth_headers(people["alice"]))

        assert response.status_code == 204


class TestLikes:
    """Liking certificates over HTTP."""

    @pytest.mark.asyncio
    async def test_like_toggle_round_trip(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"])
        headers = auth_headers(people["bob"])

        liked = await client.post(f"{CERTIFICATES_URL}/{record.id}/like", headers=headers)
        assert liked.status_code == 200
        assert liked.json()["liked"] is True
        assert liked.json()["certificate"]["likes"] == 1
        assert liked.json()["certificate"]["liked_by_current_user"] is True

        fetched = await client.get(f"{CERTIFICATES_URL}/{record.id}", headers=headers)
        assert fetched.json()["liked_by_current_user"] is True

        unliked = await client.post(f"{CERTIFICATES_URL}/{record.id}/like", headers=headers)
        assert unliked.json()["liked"] is False
        assert unliked.json()["certificate"]["likes"] == 0

    @pytest.mark.asyncio
    async def test_like_requires_authentication(self, client: AsyncClient, people, certificate_factory):
        record = await certificate_factory(people["alice"])

        assert_rejected(await client.post(f"{CERTIFICATES_URL}/{record.id}/like"))

    @pytest.mark.asyncio
    async def test_cannot_like_unreadable(
        self, client: AsyncClient, people, auth_headers, certificate_factory
    ):
        record = await certificate_factory(people["alice"], visibility=Visibility.PRIVATE)

        assert_rejected(
            await client.post(f"{CERTIFICATES_URL}/{record.id}/like", headers=auth_headers(people["bob"]))
        )
