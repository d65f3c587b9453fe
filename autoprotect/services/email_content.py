"""Rendered customer and staff emails.

Each builder returns a ready-to-send :class:`MailMessage`; the plain text
part is derived from the rendered HTML.
"""
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from autoprotect.core.config import settings
from autoprotect.services.mail import MailMessage
from autoprotect.services.pricing import plan_features
from autoprotect.utils.html import html_to_text, sanitize_html

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "email"
TEMPLATE_ENV = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

PLAN_NAMES = {"powertrain": "Powertrain", "gold": "Gold", "platinum": "Platinum"}


def format_cents(value) -> str:
    if value is None:
        return "-"
    return f"${value / 100:,.2f}"


def format_dollars(value) -> str:
    if value is None:
        return "-"
    return f"${value:,.0f}"


def format_date(value) -> str:
    if value is None:
        return "Not recorded"
    if isinstance(value, datetime):
        return value.strftime("%B %d, %Y")
    return str(value)


def plan_name(value) -> str:
    if value is None:
        return "Vehicle protection"
    key = str(value).lower()
    return PLAN_NAMES.get(key, key.title())


TEMPLATE_ENV.filters["cents"] = format_cents
TEMPLATE_ENV.filters["dollars"] = format_dollars
TEMPLATE_ENV.filters["date"] = format_date
TEMPLATE_ENV.filters["plan_name"] = plan_name


def _customer_name(lead) -> str:
    return (lead.full_name if lead is not None else "") or "there"


def _vehicle_summary(vehicle) -> str:
    if vehicle is None:
        return "your vehicle"
    return vehicle.summary or "your vehicle"


def _render(template_name: str, to, subject: str, heading: str, kind: str, reply_to: Optional[str] = None, **context) -> MailMessage:
    template = TEMPLATE_ENV.get_template(template_name)
    html = template.render(subject=subject, heading=heading, portal_url=settings.PORTAL_BASE_URL, **context)
    return MailMessage(
        to=to,
        subject=subject,
        html=html,
        text=html_to_text(html) or subject,
        reply_to=reply_to,
        kind=kind,
    )


def quote_email(lead, vehicle, quote, salesperson=None, expiration_miles: Optional[int] = None,
                payment_option: Optional[str] = None, instructions: Optional[str] = None) -> MailMessage:
    subject = f"BH Auto Protect | Your {plan_name(quote.plan)} Coverage Quote is Ready"
    return _render(
        "quote.html",
        to=lead.email,
        subject=subject,
        heading="Your coverage quote",
        kind="quote",
        reply_to=getattr(salesperson, "email", None),
        customer_name=_customer_name(lead),
        vehicle_summary=_vehicle_summary(vehicle),
        quote=quote,
        features=plan_features(quote.plan),
        expiration_miles=expiration_miles,
        payment_option=payment_option,
        instructions=instructions,
        salesperson=salesperson,
    )


def contract_invite_email(lead, vehicle, quote, contract) -> MailMessage:
    name = plan_name(quote.plan if quote is not None else None)
    vehicle_summary = _vehicle_summary(vehicle)
    return _render(
        "contract_invite.html",
        to=lead.email,
        subject=f"{name} contract ready for {vehicle_summary}",
        heading="Your contract is ready",
        kind="contract_invite",
        customer_name=_customer_name(lead),
        vehicle_summary=vehicle_summary,
        plan_name=name,
        quote=quote,
        lead=lead,
        contract_url=f"{settings.PORTAL_BASE_URL}/portal/contracts?contract={contract.id}",
    )


def contract_signed_email(to, lead, vehicle, quote, contract) -> MailMessage:
    customer_name = contract.signature_name or _customer_name(lead)
    return _render(
        "contract_signed.html",
        to=to,
        subject=f"Contract signed • {customer_name}",
        heading="Contract signed",
        kind="contract_signed",
        customer_name=customer_name,
        vehicle_summary=_vehicle_summary(vehicle),
        plan_name=plan_name(quote.plan if quote is not None else None),
        quote=quote,
        lead=lead,
        contract=contract,
    )


def policy_activation_email(lead, vehicle, policy) -> MailMessage:
    return _render(
        "policy_activation.html",
        to=lead.email,
        subject=f"Welcome to BH Auto Protect • Policy {policy.id}",
        heading="Your coverage is active",
        kind="policy_activation",
        customer_name=_customer_name(lead),
        vehicle_summary=_vehicle_summary(vehicle),
        policy=policy,
    )


def document_request_email(to, customer_name: Optional[str], request) -> MailMessage:
    return _render(
        "document_request.html",
        to=to,
        subject=f"Document request: {request.title}",
        heading="Document requested",
        kind="document_request",
        customer_name=customer_name or "there",
        request=request,
    )


def new_lead_email(to, lead, vehicle) -> MailMessage:
    name = lead.full_name or "New lead"
    vehicle_summary = vehicle.summary if vehicle is not None else "Vehicle details pending"
    subject = f"New lead • {name}"
    if vehicle is not None:
        subject = f"{subject} ({vehicle_summary})"
    location = ", ".join(p for p in (lead.state, lead.zip) if p) or "Not provided"
    utm_tags: List[str] = [
        f"{key}={value}"
        for key, value in (
            ("utm_source", lead.utm_source),
            ("utm_medium", lead.utm_medium),
            ("utm_campaign", lead.utm_campaign),
        )
        if value
    ]
    return _render(
        "new_lead.html",
        to=to,
        subject=subject,
        heading=f"{name} requested coverage" if lead.full_name else "New lead captured",
        kind="new_lead",
        lead=lead,
        vehicle=vehicle,
        vehicle_summary=vehicle_summary,
        location=location,
        utm_tags=utm_tags,
        admin_url=f"{settings.PORTAL_BASE_URL}/admin/leads/{lead.id}",
    )


def policy_message_email(to: List[str], subject: str, body_html: str) -> MailMessage:
    body = sanitize_html(body_html)
    message = _render(
        "policy_message.html",
        to=to,
        subject=subject,
        heading=subject,
        kind="policy_message",
        body_html=body,
    )
    message.text = html_to_text(body) or subject
    return message
