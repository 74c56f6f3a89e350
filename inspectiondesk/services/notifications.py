"""
Outbound email + in-app notifications.

Transports are small objects with a single send(EmailMessage) method so tests
can swap in a recorder. The SendGrid transport wraps the synchronous
SendGrid client; anything other than a 2xx is treated as a failed send.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

import sendgrid
from sendgrid.helpers.mail import Content, Email, HtmlContent, Mail, To
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import NotificationFailed
from ..models import Notification
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.notifications")


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: Optional[str] = None


class EmailTransport(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class ConsoleEmailTransport:
    """Local dev: write the envelope to the log and drop the body."""

    def send(self, message: EmailMessage) -> None:
        log.info("email (console) to=%s subject=%s", message.to, message.subject)


class SendGridEmailTransport:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
        client: Optional[sendgrid.SendGridAPIClient] = None,
    ) -> None:
        self.api_key = api_key or settings.sendgrid_api_key
        self.from_address = from_address or settings.email_from_address
        self.from_name = from_name or settings.email_from_name
        self._client = client

    def _get_client(self) -> sendgrid.SendGridAPIClient:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("sendgrid_api_key not set")
            self._client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        return self._client

    def _build(self, message: EmailMessage) -> Mail:
        mail = Mail(
            from_email=Email(self.from_address, self.from_name),
            to_emails=To(message.to),
            subject=message.subject,
        )
        if message.text:
            mail.add_content(Content("text/plain", message.text))
        mail.add_content(HtmlContent(message.html))
        return mail

    def send(self, message: EmailMessage) -> None:
        response = self._get_client().send(self._build(message))
        if response.status_code not in (200, 201, 202):
            raise RuntimeError(f"SendGrid returned status {response.status_code}: {response.body!r}")
        log.info("email sent to=%s subject=%s", message.to, message.subject)


def default_transport() -> EmailTransport:
    backend = (settings.email_backend or "console").strip().lower()
    if backend == "sendgrid":
        return SendGridEmailTransport()
    return ConsoleEmailTransport()


class NotificationDispatcher:
    """
    Both operations are awaited synchronously by the caller. A failure of
    either surfaces as NotificationFailed (502); nothing is retried here.
    """

    def __init__(self, db: Session, transport: EmailTransport) -> None:
        self.db = db
        self.transport = transport

    def notify(self, message: EmailMessage) -> None:
        try:
            self.transport.send(message)
        except NotificationFailed:
            raise
        except Exception as e:
            METRICS.inc("emails_failed")
            log.exception("email to %s failed", message.to)
            raise NotificationFailed(
                "Failed to send notification email",
                details={"to": message.to, "subject": message.subject, "reason": str(e)},
            ) from e
        METRICS.inc("emails_sent")

    def create_notification(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        meta: Optional[dict[str, Any]] = None,
        commit: bool = True,
    ) -> Notification:
        """commit=False only flushes, leaving the row to the caller's unit of work."""
        row = Notification(
            user_id=int(user_id),
            title=title,
            message=message,
            meta_json=json.dumps(meta or {}, sort_keys=True, default=str),
            is_read=False,
            created_at=datetime.utcnow(),
        )
        try:
            self.db.add(row)
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except Exception as e:
            self.db.rollback()
            METRICS.inc("notifications_failed")
            log.exception("in-app notification for user %s failed", user_id)
            raise NotificationFailed("Failed to create in-app notification", details={"user_id": user_id}) from e
        METRICS.inc("notifications_created")
        return row
