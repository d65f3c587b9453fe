import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from autoprotect.main import app
from autoprotect.db.session import get_db
from autoprotect.models.base import Base
from autoprotect.core import redis as redis_module
from autoprotect.core.config import settings
from autoprotect.core.enums import LeadStatus, PlanType, PolicyStatus, QuoteStatus, UserRole
from autoprotect.core.security import create_access_token, create_customer_token, hash_password
from autoprotect.models.customer import CustomerAccount, CustomerPolicy
from autoprotect.models.lead import Lead
from autoprotect.models.policy import Policy
from autoprotect.models.quote import Quote
from autoprotect.models.user import User
from autoprotect.models.vehicle import Vehicle
from autoprotect.services import tasks


class FakeRedis:
    """In-memory stand-in for the few Redis commands the app issues."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = str(value).encode()
        return value

    async def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def queued_notifications(monkeypatch):
    """Capture new lead notifications instead of talking to a broker."""
    queued = []
    monkeypatch.setattr(tasks, "queue_new_lead_notification", queued.append)
    return queued


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "SMTP_ENABLED", False)
    monkeypatch.setattr(settings, "SALES_ALERT_EMAIL", None)
    monkeypatch.setattr(settings, "LEAD_WEBHOOK_SECRET", None)
    monkeypatch.setattr(redis_module, "redis", None)


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(redis_module, "redis", client)
    return client


async def _add_user(db_session, username, role, email):
    user = User(
        username=username,
        password_hash=hash_password("password123"),
        role=role,
        full_name=username.title(),
        email=email,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def admin_user(db_session):
    return await _add_user(db_session, "admin", UserRole.ADMIN, "admin@bhautoprotect.com")


@pytest.fixture
async def staff_user(db_session):
    return await _add_user(db_session, "agent", UserRole.STAFF, "agent@bhautoprotect.com")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(str(admin_user.id), admin_user.role)}"}


@pytest.fixture
def staff_headers(staff_user):
    return {"Authorization": f"Bearer {create_access_token(str(staff_user.id), staff_user.role)}"}


@pytest.fixture
def valid_lead_data():
    return {
        "lead": {
            "first_name": "Jane",
            "last_name": "Driver",
            "email": "Jane@Example.com",
            "phone": "555-0100",
            "zip": "90210",
            "state": "ca",
            "consent_tcpa": True,
            "utm_source": "google",
        },
        "vehicle": {"year": 2021, "make": "Toyota", "model": "Camry", "odometer": 42000},
    }


@pytest.fixture
def valid_quote_data():
    return {
        "vehicle": {"year": 2020, "make": "Toyota", "model": "Camry", "odometer": 45000},
        "coverage": {"plan": "gold", "deductible": 500},
        "location": {"zip": "90210", "state": "CA"},
    }


@pytest.fixture
def create_lead_factory(db_session):
    async def _create_lead(email="jane@example.com", status=LeadStatus.NEW, vehicle=True, **fields):
        lead = Lead(
            first_name=fields.pop("first_name", "Jane"),
            last_name=fields.pop("last_name", "Driver"),
            email=email,
            phone=fields.pop("phone", "555-0100"),
            zip=fields.pop("zip", "75001"),
            state=fields.pop("state", "TX"),
            status=status,
            tags=[],
            **fields,
        )
        if vehicle:
            lead.vehicle = Vehicle(year=2019, make="Honda", model="Accord", odometer=60000)
        db_session.add(lead)
        await db_session.commit()
        return lead

    return _create_lead


@pytest.fixture
def create_quote_factory(db_session):
    async def _create_quote(lead, plan=PlanType.GOLD, monthly_cents=12900, term_months=36):
        quote = Quote(
            lead_id=lead.id,
            plan=plan,
            deductible=500,
            term_months=term_months,
            price_monthly_cents=monthly_cents,
            price_total_cents=monthly_cents * term_months,
            status=QuoteStatus.SENT,
            breakdown={"expiration_miles": 120000},
        )
        db_session.add(quote)
        await db_session.commit()
        return quote

    return _create_quote


@pytest.fixture
def create_policy_factory(db_session, create_lead_factory):
    async def _create_policy(email="holder@example.com", link_customer=True):
        lead = await create_lead_factory(email=email, status=LeadStatus.SOLD)
        policy = Policy(
            id=lead.id,
            lead_id=lead.id,
            package="gold",
            status=PolicyStatus.ACTIVE,
            deductible=500,
            total_premium_cents=464400,
            monthly_payment_cents=12900,
            down_payment_cents=12900,
            total_payments=36,
        )
        db_session.add(policy)
        customer = None
        if link_customer:
            customer = CustomerAccount(
                email=email,
                password_hash=hash_password("customerpass1"),
                display_name="Jane Driver",
            )
            db_session.add(customer)
            await db_session.flush()
            db_session.add(CustomerPolicy(customer_id=customer.id, policy_id=policy.id))
        await db_session.commit()
        return policy, customer

    return _create_policy


@pytest.fixture
def customer_headers():
    def _headers(customer):
        return {"Authorization": f"Bearer {create_customer_token(customer.id, customer.email)}"}

    return _headers


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that drive the HTTP API"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "crud: marks tests related to CRUD operations"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "portal: marks tests related to the customer portal"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "audit: marks tests related to audit logging"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )
