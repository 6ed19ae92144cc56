"""Factory for the configured email sender."""

from functools import lru_cache

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.smtp_sender import SMTPEmailSender
from app.core.config import settings


def create_email_sender() -> AbstractEmailSender:
    """Build an SMTP sender from ``settings.email``."""
    cfg = settings.email
    return SMTPEmailSender(
        host=cfg.host,
        port=cfg.port,
        from_address=cfg.from_address,
        user=cfg.user,
        password=cfg.password,
        use_ssl=cfg.use_ssl,
        use_starttls=cfg.use_starttls,
        timeout_seconds=cfg.timeout_seconds,
        enabled=cfg.enabled,
    )


@lru_cache(maxsize=1)
def get_email_sender() -> AbstractEmailSender:
    """FastAPI dependency returning the shared sender."""
    return create_email_sender()
