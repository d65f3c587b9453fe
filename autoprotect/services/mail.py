"""Outbound mail over SMTP.

Messages are multipart (plain text plus HTML). When SMTP is disabled or not
configured the message is logged and dropped.
"""
import asyncio
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid
from typing import List, Optional, Union

from autoprotect.core.config import settings
from autoprotect.core.metrics import emails_sent

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    pass


@dataclass
class MailMessage:
    to: Union[str, List[str]]
    subject: str
    html: str
    text: str
    reply_to: Optional[str] = None
    kind: str = "generic"
    headers: dict = field(default_factory=dict)

    @property
    def recipients(self) -> List[str]:
        if isinstance(self.to, str):
            return [self.to]
        return list(self.to)


def mail_enabled() -> bool:
    return bool(settings.SMTP_ENABLED and settings.SMTP_HOST and settings.SMTP_FROM)


def build_email(message: MailMessage) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = message.subject
    msg["From"] = settings.SMTP_FROM
    msg["To"] = ", ".join(message.recipients)
    msg["Message-ID"] = make_msgid()
    if message.reply_to:
        msg["Reply-To"] = message.reply_to
    for name, value in message.headers.items():
        msg[name] = value
    msg.set_content(message.text or message.subject)
    msg.add_alternative(message.html, subtype="html")
    return msg


def _deliver(msg: EmailMessage) -> None:
    if settings.SMTP_SSL:
        server = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
    with server:
        if not settings.SMTP_SSL and settings.SMTP_STARTTLS:
            server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)


async def send_mail(message: MailMessage) -> bool:
    """Deliver ``message``; returns False when mail is disabled.

    Raises MailDeliveryError when the SMTP server rejects or cannot be reached.
    """
    if not message.recipients:
        raise MailDeliveryError("No recipients")

    if not mail_enabled():
        logger.info(f"SMTP disabled, skipping {message.kind} email to {message.recipients}: {message.subject}")
        emails_sent.labels(kind=message.kind, status="skipped").inc()
        return False

    msg = build_email(message)
    try:
        await asyncio.to_thread(_deliver, msg)
    except (smtplib.SMTPException, OSError) as e:
        emails_sent.labels(kind=message.kind, status="failed").inc()
        logger.error(f"Failed to send {message.kind} email to {message.recipients}: {e}")
        raise MailDeliveryError(str(e)) from e

    emails_sent.labels(kind=message.kind, status="sent").inc()
    logger.info(f"Sent {message.kind} email to {message.recipients}")
    return True
