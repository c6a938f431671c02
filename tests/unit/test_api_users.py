"""Unit tests for profile endpoints."""

import pytest

from tests.helpers.api import create_link, register_user


@pytest.mark.unit
class TestOwnProfile:
    """GET/PUT /api/users/profile"""

    def test_get_profile(self, any_client, registered_user):
        response = any_client.get("/api/users/profile", headers=registered_user["headers"])

        assert response.status_code == 200
        assert response.json()["id"] == registered_user["user"]["id"]
        assert "passwordHash" not in response.json()

    def test_update_profile(self, any_client, registered_user):
        response = any_client.put(
            "/api/users/profile",
            json={"displayName": "New Name", "bio": "About me", "theme": "dark"},
            headers=registered_user["headers"],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["displayName"] == "New Name"
        assert data["bio"] == "About me"
        assert data["theme"] == "dark"
        assert data["username"] == registered_user["user"]["username"]

    def test_update_avatar(self, any_client, registered_user):
        response = any_client.put(
            "/api/users/profile",
            json={"avatar": "https://cdn.example.com/me.png"},
            headers=registered_user["headers"],
        )

        assert response.status_code == 200
        assert response.json()["avatar"] == "https://cdn.example.com/me.png"

    def test_update_persists(self, any_client, registered_user):
        any_client.put(
            "/api/users/profile", json={"bio": "Persisted"}, headers=registered_user["headers"]
        )

        response = any_client.get("/api/users/profile", headers=registered_user["headers"])

        assert response.json()["bio"] == "Persisted"

    def test_update_empty_body_changes_nothing(self, any_client, registered_user):
        response = any_client.put(
            "/api/users/profile", json={}, headers=registered_user["headers"]
        )

        assert response.status_code == 200
        assert response.json()["displayName"] == registered_user["user"]["displayName"]

    def test_update_invalid_theme(self, any_client, registered_user):
        response = any_client.put(
            "/api/users/profile", json={"theme": "neon"}, headers=registered_user["headers"]
        )

        assert response.status_code == 400

    def test_update_username_taken(self, any_client, registered_user):
        other = register_user(any_client)

        response = any_client.put(
            "/api/users/profile",
            json={"username": other["user"]["username"]},
            headers=registered_user["headers"],
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Username already taken"

    def test_update_requires_token(self, any_client):
        assert any_client.put("/api/users/profile", json={"bio": "x"}).status_code == 401


@pytest.mark.unit
class TestPublicProfile:
    """GET /api/users/{username}"""

    def test_public_profile(self, any_client, registered_user):
        headers = registered_user["headers"]
        visible = create_link(any_client, headers, title="Visible", url="https://a.example.com")
        hidden = create_link(any_client, headers, title="Hidden", url="https://b.example.com")
        any_client.put(f"/api/links/{hidden['id']}", json={"isActive": False}, headers=headers)

        response = any_client.get(f"/api/users/{registered_user['user']['username']}")

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == registered_user["user"]["username"]
        assert data["displayName"] == "Test User"
        assert data["theme"] == "gradient"
        assert [link["id"] for link in data["links"]] == [visible["id"]]
        assert "email" not in data
        assert "clicks" not in data["links"][0]

    def test_unknown_username(self, any_client):
        response = any_client.get("/api/users/nobody_here")

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    def test_view_is_counted(self, any_client, registered_user):
        username = registered_user["user"]["username"]
        any_client.get(f"/api/users/{username}")
        any_client.get(f"/api/users/{username}")

        response = any_client.get("/api/analytics", headers=registered_user["headers"])

        assert response.json()["pageViews"] == 2

    def test_profile_route_is_not_a_username(self, any_client):
        # "profile" is the own-profile route, so it needs a token
        assert any_client.get("/api/users/profile").status_code == 401
