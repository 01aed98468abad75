"""Welcome email sent to the administrator of a freshly created sports center."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from onboarding.core.config import settings
from onboarding.repository.email_repository import (
    EmailContent,
    EmailDeliveryError,
    EmailRepository,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class WelcomeNotifier(Protocol):
    def send(self, admin_email: str, template_data: Mapping[str, Any]) -> NotificationResult:
        ...


class EmailNotifier:
    """Render the welcome templates and deliver them, retrying transient failures."""

    def __init__(
        self,
        *,
        repository: Optional[EmailRepository] = None,
        templates_path: Optional[Path] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repository = repository or EmailRepository()
        self._templates_path = templates_path or Path(__file__).resolve().parent.parent / "templates"
        self._environment = Environment(
            loader=FileSystemLoader(self._templates_path),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._max_retries = max_retries or settings.EMAIL_MAX_RETRIES
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    def _render_template(self, template_name: str, context: Mapping[str, Any]) -> str:
        try:
            template = self._environment.get_template(template_name)
        except TemplateNotFound as exc:  # pragma: no cover - configuration error
            raise RuntimeError(f"Email template '{template_name}' not found") from exc
        return template.render(**context)

    def build_email(self, admin_email: str, template_data: Mapping[str, Any]) -> EmailContent:
        context: Dict[str, Any] = {"login_url": settings.ZERO_LOGIN_URL, **template_data}
        return EmailContent(
            subject=settings.WELCOME_EMAIL_SUBJECT,
            recipients=[admin_email],
            html_body=self._render_template("welcome.html", context),
            text_body=self._render_template("welcome.txt", context),
        )

    def send(self, admin_email: str, template_data: Mapping[str, Any]) -> NotificationResult:
        if not self._repository.is_configured:
            LOGGER.warning("[EmailNotifier] SMTP not configured; welcome email to %s skipped", admin_email)
            return NotificationResult(
                success=False, error_code="NOT_CONFIGURED", error_message="SMTP is not configured"
            )

        email = self.build_email(admin_email, template_data)
        last_error: Optional[EmailDeliveryError] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                message_id = self._repository.send_email(email)
            except EmailDeliveryError as exc:
                last_error = exc
                LOGGER.warning(
                    "[EmailNotifier] welcome email to %s failed (attempt %s/%s): %s",
                    admin_email,
                    attempt,
                    self._max_retries,
                    exc,
                )
                if attempt < self._max_retries:
                    self._sleep(self._backoff_seconds * (2 ** (attempt - 1)))
                continue
            LOGGER.info("[EmailNotifier] welcome email sent to %s (%s)", admin_email, message_id)
            return NotificationResult(success=True, message_id=message_id)

        return NotificationResult(
            success=False,
            error_code=last_error.code if last_error else "SEND_FAILED",
            error_message=str(last_error) if last_error else "Unknown error",
        )


__all__ = ["EmailNotifier", "NotificationResult", "WelcomeNotifier"]
