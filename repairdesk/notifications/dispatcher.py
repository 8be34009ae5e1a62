"""Notification dispatcher.

Turns a ticket event into (recipient, channel, message) triples and sends
each one independently. Outbound notifications are advisory: every failure
is logged and recorded in the returned report, nothing is raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from repairdesk.config import Settings
from repairdesk.notifications.routing import SupplierRouting
from repairdesk.notifications.templates import (
    MessageData,
    RecipientRole,
    TransitionKind,
    render_email,
    render_supplier_email,
    render_sms,
)
from repairdesk.services.channels import EmailSender, SmsSender
from repairdesk.services.sms import normalize_phone
from repairdesk.workflow.errors import NotificationDispatchError

logger = logging.getLogger(__name__)

SMS = "sms"
EMAIL = "email"


@dataclass(frozen=True)
class Recipient:
    role: RecipientRole
    name: str
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class Dispatch:
    recipient: Recipient
    channel: str
    message: str
    subject: str = ""

    @property
    def address(self) -> str:
        return self.recipient.phone if self.channel == SMS else self.recipient.email


@dataclass
class DispatchOutcome:
    dispatch: Dispatch
    success: bool
    error: str | None = None
    provider_message_id: str | None = None


@dataclass
class DispatchReport:
    kind: TransitionKind
    outcomes: list[DispatchOutcome] = field(default_factory=list)

    @property
    def sent(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if not o.success]


@dataclass
class NotificationContext:
    """Snapshot of a ticket and its parties, detached from the DB session."""

    data: MessageData
    client: Recipient | None = None
    technician: Recipient | None = None
    business_partner: Recipient | None = None
    admins: list[Recipient] = field(default_factory=list)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        old_status: str,
        new_status: str,
        admins: list[Any] = (),
        part: Any = None,
        actor_name: str = "",
        company_phone: str = "",
    ) -> NotificationContext:
        """Build a context from a Service row with its relationships loaded."""
        client = service.client
        appliance = service.appliance
        technician = service.technician
        partner = service.business_partner

        data = MessageData(
            service_id=service.id,
            client_name=client.full_name if client else "",
            client_phone=client.phone if client else "",
            device_type=appliance.category.name if appliance and appliance.category else "Appliance",
            manufacturer=appliance.manufacturer.name if appliance and appliance.manufacturer else "",
            model=appliance.model if appliance else "",
            problem=service.description or "",
            technician_name=technician.full_name if technician else "Technician",
            technician_phone=technician.phone if technician else "",
            partner_name=(partner.company_name or partner.full_name) if partner else "",
            old_status=old_status,
            new_status=new_status,
            reason=service.customer_refusal_reason or service.client_unavailable_reason or "",
            rescheduling_notes=service.rescheduling_notes or "",
            cost=service.cost,
            created_by=actor_name,
            company_phone=company_phone,
        )
        if part is not None:
            data.part_name = part.part_name
            data.quantity = part.quantity
            data.urgency = part.urgency
            data.estimated_delivery = part.estimated_delivery
            data.ordered_by = actor_name

        return cls(
            data=data,
            client=Recipient(RecipientRole.CLIENT, client.full_name, client.phone, client.email) if client else None,
            technician=(
                Recipient(RecipientRole.TECHNICIAN, technician.full_name, technician.phone, technician.email)
                if technician else None
            ),
            business_partner=(
                Recipient(RecipientRole.BUSINESS_PARTNER, partner.company_name or partner.full_name,
                          partner.phone, partner.email)
                if partner else None
            ),
            admins=[Recipient(RecipientRole.ADMIN, a.full_name, a.phone, a.email) for a in admins],
        )


class NotificationDispatcher:
    def __init__(
        self,
        sms: SmsSender,
        email: EmailSender | None = None,
        *,
        routing: SupplierRouting | None = None,
        extra_admin_phones: list[str] = (),
        default_country_code: str = "382",
        send_timeout: float = 10.0,
    ):
        self.sms = sms
        self.email = email
        self.routing = routing or SupplierRouting()
        self.extra_admin_phones = list(extra_admin_phones)
        self.default_country_code = default_country_code
        self.send_timeout = send_timeout

    @classmethod
    def from_settings(cls, settings: Settings, sms: SmsSender, email: EmailSender | None = None) -> NotificationDispatcher:
        return cls(
            sms,
            email if settings.email.enabled else None,
            routing=SupplierRouting.from_config(settings.notifications.suppliers),
            extra_admin_phones=settings.notifications.extra_admin_phones,
            default_country_code=settings.sms.default_country_code,
            send_timeout=settings.notifications.send_timeout_seconds,
        )

    # ── Resolution ────────────────────────────────────────

    def _recipients(self, context: NotificationContext, kind: TransitionKind) -> list[Recipient]:
        recipients: list[Recipient] = []
        if context.client:
            recipients.append(context.client)

        admins = [a for a in context.admins if a.phone]
        admins += [Recipient(RecipientRole.ADMIN, "Admin", phone) for phone in self.extra_admin_phones]
        seen: set[str] = set()
        for admin in admins:
            if admin.phone not in seen:
                seen.add(admin.phone)
                recipients.append(admin)

        if context.business_partner:
            recipients.append(context.business_partner)

        if context.technician and kind in (TransitionKind.ASSIGNED, TransitionKind.PARTS_ARRIVED):
            recipients.append(context.technician)

        for route in self.routing.routes_for(context.data.manufacturer, kind):
            recipients.append(Recipient(RecipientRole.SUPPLIER, route.name, route.phone, route.email))

        return recipients

    def resolve(self, context: NotificationContext, kind: TransitionKind) -> list[Dispatch]:
        """Every message this event should produce, one per recipient and channel."""
        dispatches: list[Dispatch] = []
        for recipient in self._recipients(context, kind):
            if recipient.phone:
                message = render_sms(recipient.role, kind, context.data)
                if message:
                    dispatches.append(Dispatch(recipient, SMS, message))
            if not recipient.email or self.email is None:
                continue
            if recipient.role == RecipientRole.CLIENT:
                subject, html = render_email(kind, context.data)
            elif recipient.role == RecipientRole.SUPPLIER:
                subject, html = render_supplier_email(kind, context.data, recipient.name)
            else:
                continue
            dispatches.append(Dispatch(recipient, EMAIL, html, subject=subject))
        return dispatches

    # ── Delivery ──────────────────────────────────────────

    async def _deliver(self, dispatch: Dispatch) -> DispatchOutcome:
        if dispatch.channel == SMS:
            phone = normalize_phone(dispatch.recipient.phone, self.default_country_code)
            result = await self.sms.send(phone, dispatch.message)
        else:
            result = await self.email.send(dispatch.recipient.email, dispatch.subject, dispatch.message)

        if not result.success:
            raise NotificationDispatchError(
                result.error or "provider rejected the message",
                recipient=dispatch.address, channel=dispatch.channel,
            )
        return DispatchOutcome(dispatch, True, provider_message_id=result.provider_message_id)

    async def _attempt(self, dispatch: Dispatch) -> DispatchOutcome:
        try:
            return await asyncio.wait_for(self._deliver(dispatch), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            reason = f"timed out after {self.send_timeout:g}s"
        except NotificationDispatchError as exc:
            reason = str(exc)
        except Exception as exc:
            logger.exception(
                "Unexpected error sending %s to %s (%s)",
                dispatch.channel, dispatch.address, dispatch.recipient.role.value,
            )
            reason = f"{type(exc).__name__}: {exc}"
            return DispatchOutcome(dispatch, False, error=reason)

        logger.warning(
            "Notification not delivered: channel=%s recipient=%s role=%s reason=%s",
            dispatch.channel, dispatch.address, dispatch.recipient.role.value, reason,
        )
        return DispatchOutcome(dispatch, False, error=reason)

    async def notify(self, context: NotificationContext, kind: TransitionKind) -> DispatchReport:
        """Resolve and send all messages for an event. Never raises."""
        report = DispatchReport(kind)
        try:
            dispatches = self.resolve(context, kind)
        except Exception:
            logger.exception("Could not resolve notifications for service %s", context.data.service_id)
            return report

        if dispatches:
            report.outcomes = list(await asyncio.gather(*(self._attempt(d) for d in dispatches)))
        logger.info(
            "Service %s %s: %d notification(s) sent, %d failed",
            context.data.service_id, kind.value, len(report.sent), len(report.failed),
        )
        return report
