"""Email channel using the Resend API."""

from __future__ import annotations

import asyncio
import logging

from repairdesk.config import EmailConfig
from repairdesk.services.channels import SendResult

logger = logging.getLogger(__name__)


class EmailChannel:
    name = "email"

    def __init__(self, config: EmailConfig):
        self.config = config

    @property
    def is_configured(self) -> bool:
        return bool(self.config.enabled and self.config.resend_api_key)

    def _send(self, to: str, subject: str, html: str) -> str | None:
        import resend
        resend.api_key = self.config.resend_api_key

        response = resend.Emails.send({
            "from": self.config.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        })
        if isinstance(response, dict):
            return response.get("id")
        return getattr(response, "id", None)

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        """Send an email via Resend. The SDK is blocking, so it runs in a worker thread."""
        if not self.is_configured:
            logger.warning("Email channel not configured; email to %s not sent: %s", to, subject)
            return SendResult(False, error="email channel disabled")

        try:
            message_id = await asyncio.to_thread(self._send, to, subject, html)
        except Exception as exc:
            logger.exception("Failed to send email to %s", to)
            return SendResult(False, error=str(exc))
        return SendResult(True, provider_message_id=message_id)
