"""SMS gateway client over HTTP."""

from __future__ import annotations

import logging
import re

import httpx

from repairdesk.config import SmsConfig
from repairdesk.services.channels import SendResult
from repairdesk.workflow.errors import InvalidPhoneError

logger = logging.getLogger(__name__)

_E164_MIN_DIGITS = 8
_E164_MAX_DIGITS = 15


def normalize_phone(raw: str, default_country_code: str) -> str:
    """Convert a locally written number into E.164 (``+<country><number>``)."""
    cleaned = (raw or "").strip()
    digits = re.sub(r"\D", "", cleaned)
    if not digits:
        raise InvalidPhoneError(f"Phone number {raw!r} has no digits", recipient=raw, channel="sms")

    if cleaned.startswith("+"):
        number = digits
    elif digits.startswith("00"):
        number = digits[2:]
    elif digits.startswith("0"):
        number = default_country_code + digits[1:]
    elif digits.startswith(default_country_code):
        number = digits
    else:
        number = default_country_code + digits

    if not _E164_MIN_DIGITS <= len(number) <= _E164_MAX_DIGITS:
        raise InvalidPhoneError(f"Phone number {raw!r} is not a valid number", recipient=raw, channel="sms")
    return f"+{number}"


class SmsChannel:
    """Sends single-segment SMS through the configured HTTP gateway.

    The gateway answers with JSON carrying ``error`` (0 on success),
    ``message_id`` and ``details``, optionally wrapped in a ``result`` object.
    """

    name = "sms"

    def __init__(self, config: SmsConfig, *, transport: httpx.AsyncBaseTransport | None = None,
                 timeout: float = 10.0):
        self.config = config
        self._transport = transport
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.config.enabled and self.config.api_key and self.config.base_url)

    async def send(self, to_phone: str, message: str) -> SendResult:
        if not self.is_configured:
            logger.warning("SMS channel not configured; message to %s not sent", to_phone)
            return SendResult(False, error="SMS channel disabled")

        data = {
            "recipients": to_phone,
            "message": message,
            "apikey": self.config.api_key,
        }
        if self.config.sender_id:
            data["sendername"] = self.config.sender_id

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(f"{self.config.base_url.rstrip('/')}/sendsms/", data=data)
        except httpx.HTTPError as exc:
            logger.warning("SMS gateway unreachable for %s: %s", to_phone, exc)
            return SendResult(False, error=f"gateway unreachable: {exc}")

        if response.status_code not in (200, 201):
            return SendResult(False, error=f"gateway returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            return SendResult(False, error="gateway returned a non-JSON response")

        result = body.get("result", body) if isinstance(body, dict) else {}
        if str(result.get("error")) == "0":
            message_id = result.get("message_id")
            logger.info("SMS sent to %s (message id %s)", to_phone, message_id)
            return SendResult(True, provider_message_id=str(message_id) if message_id else None)

        return SendResult(False, error=str(result.get("details") or "unknown gateway error"))
