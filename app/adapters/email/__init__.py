"""Email adapter layer - outbound account notifications."""

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.factory import create_email_sender, get_email_sender
from app.adapters.email.smtp_sender import SMTPEmailSender

__all__ = [
    "AbstractEmailSender",
    "SMTPEmailSender",
    "create_email_sender",
    "get_email_sender",
]
