"""SMTP email sender built on smtplib."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from app.adapters.email.base import AbstractEmailSender
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class SMTPEmailSender(AbstractEmailSender):
    """Send HTML emails over SMTP (plain, SMTPS or STARTTLS).

    When ``enabled`` is False messages are logged instead of sent.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        from_address: str,
        user: str | None = None,
        password: str | None = None,
        use_ssl: bool = False,
        use_starttls: bool = False,
        timeout_seconds: float = 10.0,
        enabled: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.from_address = from_address
        self._user = user
        self._password = password
        self.use_ssl = use_ssl
        self.use_starttls = use_starttls
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled

    def _build_message(self, *, to: str, subject: str, html: str, text: str | None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text or "This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout_seconds)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)

    def send(self, *, to: str, subject: str, html: str, text: str | None = None) -> bool:
        if not self.enabled:
            logger.info("email.skipped", extra={"recipient_hash": hash_identifier(to), "subject": subject})
            return False

        message = self._build_message(to=to, subject=subject, html=html, text=text)
        try:
            with self._connect() as smtp:
                if self.use_starttls and not self.use_ssl:
                    smtp.starttls()
                if self._user and self._password:
                    smtp.login(self._user, self._password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "email.send_failed",
                extra={
                    "recipient_hash": hash_identifier(to),
                    "subject": subject,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return False

        logger.info("email.sent", extra={"recipient_hash": hash_identifier(to), "subject": subject})
        return True
