import smtplib
from types import SimpleNamespace
import pytest
from autoprotect.core.config import settings
from autoprotect.core.enums import PlanType
from autoprotect.services import mail
from autoprotect.services.email_content import (
    format_cents,
    new_lead_email,
    plan_name,
    policy_message_email,
    quote_email,
)
from autoprotect.services.mail import MailDeliveryError, MailMessage, build_email, send_mail


def _lead(**fields):
    values = dict(
        id=7, first_name="Jane", last_name="Driver", full_name="Jane Driver", email="jane@example.com",
        phone="555-0100", state="TX", zip="75001", source="web", consent_tcpa=True, created_at=None,
        utm_source=None, utm_medium=None, utm_campaign=None,
    )
    values.update(fields)
    return SimpleNamespace(**values)


def _vehicle():
    return SimpleNamespace(year=2019, make="Honda", model="Accord", trim=None, odometer=60000, summary="2019 Honda Accord")


@pytest.fixture
def smtp_on(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_ENABLED", True)
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_FROM", "quotes@bhautoprotect.com")


@pytest.mark.unit
class TestEmailContent:

    def test_formatters(self):
        assert format_cents(12900) == "$129.00"
        assert format_cents(None) == "-"
        assert plan_name(PlanType.PLATINUM) == "Platinum"
        assert plan_name(None) == "Vehicle protection"

    def test_quote_email(self):
        quote = SimpleNamespace(
            id=3, plan=PlanType.GOLD, deductible=500, term_months=36,
            price_monthly_cents=12900, price_total_cents=464400, valid_until=None,
        )
        salesperson = SimpleNamespace(
            full_name="Sam Seller", username="sam", title="Advisor", email="sam@bhautoprotect.com", phone=None
        )

        message = quote_email(_lead(), _vehicle(), quote, salesperson=salesperson, expiration_miles=120000)

        assert message.to == "jane@example.com"
        assert message.subject == "BH Auto Protect | Your Gold Coverage Quote is Ready"
        assert message.reply_to == "sam@bhautoprotect.com"
        assert message.kind == "quote"
        assert "$129.00" in message.html
        assert "120,000 miles" in message.html
        assert "Air conditioning &amp; heating" in message.html
        assert "Hi Jane Driver" in message.text
        assert "<" not in message.text

    def test_new_lead_email(self):
        message = new_lead_email("sales@bhautoprotect.com", _lead(utm_source="google"), _vehicle())

        assert message.subject == "New lead • Jane Driver (2019 Honda Accord)"
        assert "utm_source=google" in message.html
        assert "60,000" in message.html
        assert "/admin/leads/7" in message.html

    def test_new_lead_email_without_vehicle(self):
        message = new_lead_email("sales@bhautoprotect.com", _lead(first_name=None, last_name=None, full_name=""), None)

        assert message.subject == "New lead • New lead"
        assert "Vehicle details pending" in message.html

    def test_policy_message_is_sanitized(self):
        message = policy_message_email(
            ["jane@example.com"], "Renewal", '<p onclick="x()">Renew <a href="javascript:alert(1)">now</a></p>'
        )

        assert "onclick" not in message.html
        assert "javascript:" not in message.html
        assert message.text == "Renew now"


@pytest.mark.unit
class TestSendMail:

    def _message(self, **fields):
        values = dict(to=["a@example.com", "b@example.com"], subject="Hi", html="<p>Hi</p>", text="Hi")
        values.update(fields)
        return MailMessage(**values)

    def test_build_email_is_multipart(self, smtp_on):
        msg = build_email(self._message(reply_to="agent@bhautoprotect.com"))

        assert msg["To"] == "a@example.com, b@example.com"
        assert msg["From"] == "quotes@bhautoprotect.com"
        assert msg["Reply-To"] == "agent@bhautoprotect.com"
        assert msg.get_content_type() == "multipart/alternative"
        assert [part.get_content_type() for part in msg.iter_parts()] == ["text/plain", "text/html"]

    @pytest.mark.asyncio
    async def test_disabled_mail_is_skipped(self, monkeypatch):
        delivered = []
        monkeypatch.setattr(mail, "_deliver", delivered.append)

        assert await send_mail(self._message()) is False
        assert delivered == []

    @pytest.mark.asyncio
    async def test_delivery(self, smtp_on, monkeypatch):
        delivered = []
        monkeypatch.setattr(mail, "_deliver", delivered.append)

        assert await send_mail(self._message(to="jane@example.com")) is True
        assert delivered[0]["Subject"] == "Hi"

    @pytest.mark.asyncio
    async def test_delivery_failure(self, smtp_on, monkeypatch):
        def refuse(msg):
            raise smtplib.SMTPRecipientsRefused({"a@example.com": (550, b"no")})

        monkeypatch.setattr(mail, "_deliver", refuse)

        with pytest.raises(MailDeliveryError):
            await send_mail(self._message())

    @pytest.mark.asyncio
    async def test_no_recipients(self):
        with pytest.raises(MailDeliveryError):
            await send_mail(self._message(to=[]))
