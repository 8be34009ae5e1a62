"""Shared result type for outbound message channels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass
class SendResult:
    success: bool
    provider_message_id: str | None = None
    error: str | None = None


class SmsSender(Protocol):
    async def send(self, to_phone: str, message: str) -> SendResult: ...


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, html: str) -> SendResult: ...
