"""Unit tests for link management, click and analytics endpoints."""

from uuid import uuid4

import pytest

from tests.helpers.api import create_link, register_user


@pytest.mark.unit
class TestLinkManagement:
    """CRUD on /api/links"""

    def test_create_link(self, any_client, registered_user):
        response = any_client.post(
            "/api/links",
            json={"title": "GitHub", "url": "https://github.com/me", "icon": "github"},
            headers=registered_user["headers"],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "GitHub"
        assert data["url"] == "https://github.com/me"
        assert data["icon"] == "github"
        assert data["position"] == 0
        assert data["isActive"] is True
        assert data["clicks"] == 0
        assert data["userId"] == registered_user["user"]["id"]

    def test_create_link_default_icon_and_positions(self, any_client, registered_user):
        headers = registered_user["headers"]
        first = create_link(any_client, headers, title="One")
        second = create_link(any_client, headers, title="Two")

        assert first["icon"] == "link"
        assert (first["position"], second["position"]) == (0, 1)

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "", "url": "https://example.com"},
            {"title": "Bad", "url": "not-a-url"},
            {"title": "Bad", "url": "/relative"},
            {"url": "https://example.com"},
        ],
    )
    def test_create_link_invalid(self, any_client, registered_user, payload):
        response = any_client.post("/api/links", json=payload, headers=registered_user["headers"])

        assert response.status_code == 400

    def test_create_link_invalid_url_names_field(self, any_client, registered_user):
        response = any_client.post(
            "/api/links",
            json={"title": "Bad", "url": "not-a-url"},
            headers=registered_user["headers"],
        )

        assert response.json()["field"] == "url"

    def test_create_link_requires_token(self, any_client):
        response = any_client.post("/api/links", json={"title": "X", "url": "https://x.example.com"})

        assert response.status_code == 401

    def test_list_links_ordered(self, any_client, registered_user):
        headers = registered_user["headers"]
        first = create_link(any_client, headers, title="One")
        second = create_link(any_client, headers, title="Two")
        any_client.put(f"/api/links/{first['id']}", json={"position": 3}, headers=headers)

        response = any_client.get("/api/links", headers=headers)

        assert response.status_code == 200
        assert [link["id"] for link in response.json()] == [second["id"], first["id"]]

    def test_list_links_only_own(self, any_client, registered_user):
        other = register_user(any_client)
        create_link(any_client, other["headers"], title="Theirs")

        response = any_client.get("/api/links", headers=registered_user["headers"])

        assert response.json() == []

    def test_update_link(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers)

        response = any_client.put(
            f"/api/links/{link['id']}",
            json={"title": "Renamed", "isActive": False},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["isActive"] is False
        assert response.json()["url"] == link["url"]

    def test_update_link_negative_position(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers)

        response = any_client.put(f"/api/links/{link['id']}", json={"position": -1}, headers=headers)

        assert response.status_code == 400

    def test_update_foreign_link_is_not_found(self, any_client, registered_user):
        other = register_user(any_client)
        link = create_link(any_client, other["headers"])

        response = any_client.put(
            f"/api/links/{link['id']}", json={"title": "Mine now"}, headers=registered_user["headers"]
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found"

    def test_update_missing_link(self, any_client, registered_user):
        response = any_client.put(
            f"/api/links/{uuid4()}", json={"title": "X"}, headers=registered_user["headers"]
        )

        assert response.status_code == 404

    def test_malformed_link_id_is_not_found(self, any_client, registered_user):
        response = any_client.put(
            "/api/links/not-a-uuid", json={"title": "X"}, headers=registered_user["headers"]
        )

        assert response.status_code == 404

    def test_delete_link(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers)

        response = any_client.delete(f"/api/links/{link['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert any_client.get("/api/links", headers=headers).json() == []
        assert any_client.delete(f"/api/links/{link['id']}", headers=headers).status_code == 404

    def test_delete_foreign_link(self, any_client, registered_user):
        other = register_user(any_client)
        link = create_link(any_client, other["headers"])

        response = any_client.delete(f"/api/links/{link['id']}", headers=registered_user["headers"])

        assert response.status_code == 404
        assert len(any_client.get("/api/links", headers=other["headers"]).json()) == 1


@pytest.mark.unit
class TestClicks:
    """POST /api/links/{id}/click"""

    def test_click_returns_url_without_auth(self, any_client, registered_user):
        link = create_link(any_client, registered_user["headers"], url="https://target.example.com")

        response = any_client.post(f"/api/links/{link['id']}/click")

        assert response.status_code == 200
        assert response.json() == {"url": "https://target.example.com"}

    def test_clicks_are_counted(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers)
        for _ in range(3):
            any_client.post(f"/api/links/{link['id']}/click")

        links = any_client.get("/api/links", headers=headers).json()

        assert links[0]["clicks"] == 3

    def test_click_unknown_link(self, any_client):
        response = any_client.post(f"/api/links/{uuid4()}/click")

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found"

    def test_click_malformed_id(self, any_client):
        assert any_client.post("/api/links/12345/click").status_code == 404


@pytest.mark.unit
class TestAnalytics:
    """GET /api/analytics and GET /api/links/{id}/analytics"""

    def test_empty_analytics(self, any_client, registered_user):
        response = any_client.get("/api/analytics", headers=registered_user["headers"])

        assert response.status_code == 200
        assert response.json() == {
            "totalClicks": 0,
            "pageViews": 0,
            "monthlyClicks": 0,
            "linkStats": [],
        }

    def test_analytics_totals(self, any_client, registered_user):
        headers = registered_user["headers"]
        one = create_link(any_client, headers, title="One")
        two = create_link(any_client, headers, title="Two")
        any_client.post(f"/api/links/{one['id']}/click")
        any_client.post(f"/api/links/{one['id']}/click")
        any_client.post(f"/api/links/{two['id']}/click")
        any_client.get(f"/api/users/{registered_user['user']['username']}")

        data = any_client.get("/api/analytics", headers=headers).json()

        assert data["totalClicks"] == 3
        assert data["monthlyClicks"] == 3
        assert data["pageViews"] == 1
        assert data["linkStats"] == [
            {"id": one["id"], "title": "One", "clicks": 2},
            {"id": two["id"], "title": "Two", "clicks": 1},
        ]

    def test_analytics_requires_token(self, any_client):
        assert any_client.get("/api/analytics").status_code == 401

    def test_link_analytics(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers, title="One")
        any_client.post(f"/api/links/{link['id']}/click")
        any_client.post(f"/api/links/{link['id']}/click")

        response = any_client.get(f"/api/links/{link['id']}/analytics", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == link["id"]
        assert data["clicks"] == 2
        assert data["recordedClicks"] == 2
        assert data["monthlyClicks"] == 2
        assert data["lastClickedAt"] is not None

    def test_link_analytics_without_clicks(self, any_client, registered_user):
        headers = registered_user["headers"]
        link = create_link(any_client, headers)

        data = any_client.get(f"/api/links/{link['id']}/analytics", headers=headers).json()

        assert data["clicks"] == 0
        assert data["lastClickedAt"] is None

    def test_link_analytics_foreign_link(self, any_client, registered_user):
        other = register_user(any_client)
        link = create_link(any_client, other["headers"])

        response = any_client.get(
            f"/api/links/{link['id']}/analytics", headers=registered_user["headers"]
        )

        assert response.status_code == 404
