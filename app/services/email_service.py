"""Account emails: verification and password reset.

Sending never fails the request that triggered it; the sender logs and
reports delivery problems.
"""

from __future__ import annotations

import html
import logging
from urllib.parse import quote

from app.adapters.email.base import AbstractEmailSender
from app.core.config import settings
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Email Verification - Library API"
PASSWORD_RESET_SUBJECT = "Password Reset - Library API"


def _render(title: str, intro: str, link: str, action: str, footer: str) -> str:
    safe_link = html.escape(link, quote=True)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>{html.escape(title)}</h2>
  <p>{html.escape(intro)}</p>
  <p>
    <a href="{safe_link}" style="display: inline-block; padding: 10px 20px; background-color: #4CAF50; color: white; text-decoration: none; border-radius: 5px;">{html.escape(action)}</a>
  </p>
  <p>Or copy and paste this link into your browser:</p>
  <p>{safe_link}</p>
  <p>{html.escape(footer)}</p>
</div>
""".strip()


class EmailService:
    """Builds account emails and hands them to the configured sender."""

    def __init__(self, sender: AbstractEmailSender, *, frontend_url: str | None = None) -> None:
        self.sender = sender
        self.frontend_url = (frontend_url or settings.email.frontend_url).rstrip("/")

    def verification_link(self, token: str) -> str:
        return f"{self.frontend_url}/verify-email?token={quote(token)}"

    def reset_link(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={quote(token)}"

    def send_verification_email(self, email: str, token: str) -> bool:
        link = self.verification_link(token)
        hours = settings.auth.verification_token_hours
        body = _render(
            "Verify your email address",
            "Thank you for registering! Please verify your email address by clicking the link below:",
            link,
            "Verify Email",
            f"This link will expire in {hours} hours. If you did not create an account, you can ignore this email.",
        )
        text = f"Verify your email address: {link}"
        sent = self.sender.send(to=email, subject=VERIFICATION_SUBJECT, html=body, text=text)
        logger.info(
            "email.verification_dispatched",
            extra={"recipient_hash": hash_identifier(email), "sent": sent},
        )
        return sent

    def send_password_reset_email(self, email: str, token: str) -> bool:
        link = self.reset_link(token)
        minutes = settings.auth.reset_token_expiry_seconds // 60
        body = _render(
            "Reset your password",
            "We received a request to reset your password. Click the link below to choose a new one:",
            link,
            "Reset Password",
            f"This link will expire in {minutes} minutes. If you did not request a reset, you can ignore this email.",
        )
        text = f"Reset your password: {link}"
        sent = self.sender.send(to=email, subject=PASSWORD_RESET_SUBJECT, html=body, text=text)
        logger.info(
            "email.password_reset_dispatched",
            extra={"recipient_hash": hash_identifier(email), "sent": sent},
        )
        return sent
