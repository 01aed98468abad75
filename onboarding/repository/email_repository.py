"""SMTP delivery of onboarding emails."""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Sequence

from onboarding.core.config import Settings, settings

PLAIN_TEXT_FALLBACK = "This email requires an HTML capable client."


class EmailDeliveryError(RuntimeError):
    def __init__(self, message: str, *, code: str = "SEND_FAILED") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class EmailContent:
    """An email ready to be delivered."""

    subject: str
    recipients: Sequence[str]
    html_body: str
    text_body: Optional[str] = None
    reply_to: Optional[str] = None


class EmailRepository:
    def __init__(self, config: Settings | None = None):
        self._settings = config or settings

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.SMTP_HOST and self._settings.SMTP_FROM_EMAIL)

    def _sender(self) -> str:
        address = self._settings.SMTP_FROM_EMAIL
        if self._settings.SMTP_FROM_NAME:
            return formataddr((self._settings.SMTP_FROM_NAME, address))
        return address

    def _compose(self, email: EmailContent) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = self._sender()
        message["To"] = ", ".join(email.recipients)
        message["Message-ID"] = make_msgid(domain=self._settings.SMTP_FROM_EMAIL.rpartition("@")[2])
        if email.reply_to:
            message["Reply-To"] = email.reply_to
        message.set_content(email.text_body or PLAIN_TEXT_FALLBACK)
        message.add_alternative(email.html_body, subtype="html")
        return message

    def _open_connection(self) -> smtplib.SMTP:
        config = self._settings
        if config.SMTP_USE_SSL:
            client: smtplib.SMTP = smtplib.SMTP_SSL(
                config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT
            )
        else:
            client = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT)
        try:
            if config.SMTP_USE_TLS and not config.SMTP_USE_SSL:
                client.starttls()
            if config.SMTP_USERNAME and config.SMTP_PASSWORD:
                client.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
        except (smtplib.SMTPException, OSError):
            client.close()
            raise
        return client

    def send_email(self, email: EmailContent) -> str:
        """Deliver ``email`` and return its Message-ID."""

        if not self.is_configured:
            raise EmailDeliveryError("SMTP is not configured", code="NOT_CONFIGURED")

        message = self._compose(email)
        try:
            with self._open_connection() as client:
                client.send_message(message)
        except TimeoutError as exc:  # pragma: no cover - network dependent
            raise EmailDeliveryError("SMTP server timed out", code="TIMEOUT") from exc
        except smtplib.SMTPAuthenticationError as exc:  # pragma: no cover - network dependent
            raise EmailDeliveryError("SMTP authentication failed", code="AUTH_FAILED") from exc
        except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network dependent
            raise EmailDeliveryError(f"Failed to deliver email: {exc}") from exc
        return message["Message-ID"]


__all__ = ["EmailContent", "EmailDeliveryError", "EmailRepository"]
