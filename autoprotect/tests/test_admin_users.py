import pytest
from sqlalchemy.future import select
from autoprotect.core.security import verify_password
from autoprotect.models.user import User


@pytest.mark.integration
@pytest.mark.auth
class TestAdminUsers:

    @pytest.mark.asyncio
    async def test_staff_cannot_manage_users(self, test_client, staff_headers):
        response = await test_client.get("/api/admin/users", headers=staff_headers)

        assert response.status_code == 403
        assert response.json() == {"message": "Admin access required"}

    @pytest.mark.asyncio
    async def test_create_and_list(self, test_client, admin_headers, session_factory):
        response = await test_client.post(
            "/api/admin/users",
            json={"username": "closer", "password": "longenough1", "email": "Closer@Example.com", "title": " Sales "},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == "staff"
        assert data["email"] == "closer@example.com"
        assert data["title"] == "Sales"
        assert "password" not in data and "password_hash" not in data

        async with session_factory() as session:
            user = await session.get(User, data["id"])
            assert verify_password("longenough1", user.password_hash)

        listing = await test_client.get("/api/admin/users", headers=admin_headers)
        assert [u["username"] for u in listing.json()["data"]] == ["admin", "closer"]

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/admin/users", json={"username": "admin", "password": "longenough1"}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json() == {"message": "Username already exists"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", ["ab", "has space", "co:lon"])
    async def test_invalid_username(self, test_client, admin_headers, username):
        response = await test_client.post(
            "/api/admin/users", json={"username": username, "password": "longenough1"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"

    @pytest.mark.asyncio
    async def test_short_password(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/admin/users", json={"username": "shorty", "password": "short"}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_user(self, test_client, admin_headers, staff_user, session_factory):
        response = await test_client.patch(
            f"/api/admin/users/{staff_user.id}",
            json={"role": "admin", "password": "newpassword1"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"
        async with session_factory() as session:
            user = await session.get(User, staff_user.id)
            assert verify_password("newpassword1", user.password_hash)

    @pytest.mark.asyncio
    async def test_last_admin_cannot_be_demoted(self, test_client, admin_headers, admin_user):
        response = await test_client.patch(
            f"/api/admin/users/{admin_user.id}", json={"role": "staff"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json() == {"message": "At least one admin is required"}

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, test_client, admin_headers, admin_user):
        response = await test_client.delete(f"/api/admin/users/{admin_user.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"message": "You cannot delete your own account"}

    @pytest.mark.asyncio
    async def test_delete_user(self, test_client, admin_headers, staff_user, session_factory):
        response = await test_client.delete(f"/api/admin/users/{staff_user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        async with session_factory() as session:
            res = await session.execute(select(User.username))
            assert res.scalars().all() == ["admin"]

    @pytest.mark.asyncio
    async def test_delete_missing_user(self, test_client, admin_headers):
        response = await test_client.delete("/api/admin/users/999", headers=admin_headers)
        assert response.status_code == 404
