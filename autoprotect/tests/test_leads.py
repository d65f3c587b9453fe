import pytest
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from autoprotect.core.config import settings
from autoprotect.models.claim import Claim
from autoprotect.models.lead import Lead


async def _fetch_lead(session_factory, lead_id):
    async with session_factory() as session:
        res = await session.execute(
            select(Lead).where(Lead.id == lead_id).options(selectinload(Lead.vehicle))
        )
        return res.scalars().first()


@pytest.mark.integration
class TestPublicLeadIntake:

    @pytest.mark.asyncio
    async def test_submit_lead(self, test_client, session_factory, valid_lead_data, queued_notifications):
        response = await test_client.post(
            "/api/leads",
            json={**valid_lead_data, "recaptcha_token": "secret"},
            headers={"User-Agent": "pytest-browser", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Lead created successfully"
        lead_out = body["data"]
        assert lead_out["email"] == "jane@example.com"
        assert lead_out["state"] == "CA"
        assert lead_out["status"] == "new"
        assert lead_out["source"] == "web"
        assert lead_out["consent_ip"] == "203.0.113.9"
        assert queued_notifications == [lead_out["id"]]

        lead = await _fetch_lead(session_factory, lead_out["id"])
        assert lead.vehicle.make == "Toyota"
        assert lead.consent_user_agent == "pytest-browser"
        assert lead.consent_timestamp is not None
        assert "recaptcha_token" not in lead.raw_payload

    @pytest.mark.asyncio
    async def test_consent_not_recorded_without_opt_in(self, test_client, valid_lead_data):
        valid_lead_data["lead"]["consent_tcpa"] = False
        response = await test_client.post("/api/leads", json=valid_lead_data)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["consent_timestamp"] is None
        assert data["consent_ip"] is None

    @pytest.mark.asyncio
    async def test_invalid_lead(self, test_client, valid_lead_data, queued_notifications):
        valid_lead_data["lead"]["email"] = "not-an-email"
        response = await test_client.post("/api/leads", json=valid_lead_data)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid lead data"
        assert body["errors"][0]["field"] == "lead.email"
        assert queued_notifications == []

    @pytest.mark.asyncio
    async def test_vehicle_required(self, test_client, valid_lead_data):
        del valid_lead_data["vehicle"]
        response = await test_client.post("/api/leads", json=valid_lead_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.idempotency
    async def test_idempotent_submission(self, test_client, valid_lead_data, fake_redis, queued_notifications):
        headers = {"Idempotency-Key": "lead-key-1"}
        first = await test_client.post("/api/leads", json=valid_lead_data, headers=headers)
        second = await test_client.post("/api/leads", json=valid_lead_data, headers=headers)

        assert first.status_code == 201
        assert second.json()["data"]["id"] == first.json()["data"]["id"]
        assert len(queued_notifications) == 1

    @pytest.mark.asyncio
    @pytest.mark.rate_limit
    async def test_lead_rate_limit(self, test_client, valid_lead_data, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "LEAD_RATE_LIMIT", 2)
        for _ in range(2):
            response = await test_client.post("/api/leads", json=valid_lead_data)
            assert response.status_code == 201

        response = await test_client.post("/api/leads", json=valid_lead_data)
        assert response.status_code == 429
        assert response.json() == {"message": "Too many requests"}


@pytest.mark.integration
class TestLeadWebhook:

    @pytest.mark.asyncio
    async def test_not_configured(self, test_client):
        response = await test_client.post("/webhooks/leads", json={"email": "a@b.co"})
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_wrong_secret(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "LEAD_WEBHOOK_SECRET", "s3cret")
        response = await test_client.post(
            "/webhooks/leads", json={"email": "a@b.co"}, headers={"X-Lead-Secret": "nope"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_loose_payload(self, test_client, session_factory, monkeypatch, queued_notifications):
        monkeypatch.setattr(settings, "LEAD_WEBHOOK_SECRET", "s3cret")
        payload = {
            "firstName": "Sam",
            "lastName": "Jones",
            "email_address": "SAM@Example.com",
            "phone_number": "555-0199",
            "zipcode": 33101,
            "region": "fl",
            "tcpa": "Yes",
            "vehicle_year": "2018",
            "vehicle_make": "Ford",
            "vehicle_model": "F-150",
            "mileage": "88,500",
            "leadSource": "partner-x",
        }
        response = await test_client.post("/webhooks/leads", json=payload, headers={"X-Lead-Secret": "s3cret"})

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert queued_notifications == [body["id"]]

        lead = await _fetch_lead(session_factory, body["id"])
        assert lead.email == "sam@example.com"
        assert lead.zip == "33101"
        assert lead.state == "FL"
        assert lead.consent_tcpa is True
        assert lead.source == "partner-x"
        assert lead.vehicle.year == 2018
        assert lead.vehicle.odometer == 88500

    @pytest.mark.asyncio
    async def test_contact_required(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "LEAD_WEBHOOK_SECRET", "s3cret")
        response = await test_client.post(
            "/webhooks/leads", json={"first_name": "Nobody"}, headers={"X-Lead-Secret": "s3cret"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email or phone is required"

    @pytest.mark.asyncio
    async def test_partial_vehicle_is_skipped(self, test_client, session_factory, monkeypatch):
        monkeypatch.setattr(settings, "LEAD_WEBHOOK_SECRET", "s3cret")
        response = await test_client.post(
            "/webhooks/leads",
            json={"phone": "555-0123", "make": "Kia"},
            headers={"X-Lead-Secret": "s3cret"},
        )

        assert response.status_code == 201
        lead = await _fetch_lead(session_factory, response.json()["id"])
        assert lead.vehicle is None
        assert lead.source == "webhook"


@pytest.mark.integration
class TestPublicClaims:

    def _claim(self, **overrides):
        claim = {
            "first_name": "Jane",
            "last_name": "Driver",
            "email": "jane@example.com",
            "phone": "555-0100",
            "year": 2019,
            "make": "Honda",
            "model": "Accord",
            "vin": "1hgcv1f3xka000001",
            "message": "Transmission slipping",
        }
        claim.update(overrides)
        return claim

    @pytest.mark.asyncio
    async def test_submit_claim(self, test_client, session_factory):
        response = await test_client.post("/api/claims", json=self._claim())

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "new"
        assert data["vin"] == "1HGCV1F3XKA000001"

        async with session_factory() as session:
            claim = await session.get(Claim, data["id"])
            assert claim.message == "Transmission slipping"

    @pytest.mark.asyncio
    async def test_unknown_policy(self, test_client):
        response = await test_client.post("/api/claims", json=self._claim(policy_id=999))

        assert response.status_code == 404
        assert response.json() == {"message": "Policy not found"}

    @pytest.mark.asyncio
    async def test_claim_for_existing_policy(self, test_client, create_policy_factory):
        policy, _ = await create_policy_factory()
        response = await test_client.post("/api/claims", json=self._claim(policy_id=policy.id))

        assert response.status_code == 201
        assert response.json()["data"]["policy_id"] == policy.id

    @pytest.mark.asyncio
    async def test_message_required(self, test_client):
        response = await test_client.post("/api/claims", json=self._claim(message=""))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"
