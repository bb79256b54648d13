"""Tests for the current-user endpoint and token handling."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.core.auth.backend import create_access_token
from app.modules.users.models import User


pytestmark = pytest.mark.integration


class TestCurrentUser:
    """Tests for GET /users/me."""

    @pytest.mark.asyncio
    async def test_profile(self, authenticated_client: AsyncClient, user: User):
        response = await authenticated_client.get("/api/v1/users/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["email"] == user.email
        assert data["is_consultancy"] is False
        assert data["access_level"] is None

    @pytest.mark.asyncio
    async def test_consultant_profile_shows_grant(
        self, client: AsyncClient, consultant: User, auth_for
    ):
        response = await client.get("/api/v1/users/me", headers=auth_for(consultant))

        data = response.json()
        assert data["is_consultancy"] is True
        assert data["can_access_all_orgs"] is True
        assert data["access_level"] == "ADMIN"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_token_for_unknown_user(self, client: AsyncClient):
        token = create_access_token(user_id=uuid4(), email="ghost@example.com")

        response = await client.get(
            "/api/v1/users/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
