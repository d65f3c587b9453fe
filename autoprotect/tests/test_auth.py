import pytest
from datetime import datetime, timedelta, timezone
from jose import jwt
from sqlalchemy.future import select
from autoprotect.core.config import settings
from autoprotect.core.security import (
    CUSTOMER_SCOPE,
    JWT_ALGORITHM,
    create_access_token,
    create_customer_token,
    hash_password,
    verify_password,
)
from autoprotect.models.audit import Audit


@pytest.mark.unit
@pytest.mark.auth
class TestSecurityHelpers:

    def test_password_roundtrip(self):
        hashed = hash_password("password123")
        assert hashed != "password123"
        assert verify_password("password123", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_garbage_hash(self):
        assert verify_password("password123", "not-a-hash") is False

    def test_staff_token_claims(self):
        token = create_access_token("7", "admin")
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
        assert payload["sub"] == "7"
        assert payload["role"] == "admin"
        assert payload["scope"] == "staff"

    def test_customer_token_claims(self):
        token = create_customer_token(3, "jane@example.com")
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
        assert payload["sub"] == "3"
        assert payload["scope"] == CUSTOMER_SCOPE


@pytest.mark.integration
@pytest.mark.auth
class TestStaffLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, test_client, admin_user, session_factory):
        response = await test_client.post(
            "/api/admin/login", json={"username": "admin", "password": "password123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "admin"
        assert data["user"]["role"] == "admin"

        me = await test_client.get(
            "/api/admin/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["data"]["id"] == admin_user.id

        async with session_factory() as session:
            res = await session.execute(select(Audit).where(Audit.action == "login"))
            assert len(res.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client, admin_user):
        response = await test_client.post(
            "/api/admin/login", json={"username": "admin", "password": "wrongpass"}
        )

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials"}

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/admin/login", json={"username": "ghost", "password": "password123"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/admin/leads")

        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required"}

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, admin_user):
        token = jwt.encode(
            {
                "sub": str(admin_user.id),
                "role": "admin",
                "scope": "staff",
                "exp": datetime.now(timezone.utc) - timedelta(hours=1),
            },
            settings.SECRET_KEY,
            algorithm=JWT_ALGORITHM,
        )
        response = await test_client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid token"}

    @pytest.mark.asyncio
    async def test_customer_token_rejected_for_staff(self, test_client, admin_user):
        token = create_customer_token(admin_user.id, "admin@bhautoprotect.com")
        response = await test_client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_staff_token_rejected_for_customer(self, test_client, admin_headers):
        response = await test_client.get("/api/customer/session", headers=admin_headers)

        assert response.status_code == 401
