"""SMS and email message templates.

Templates live in one table keyed by (recipient role, transition kind). A
missing entry falls back to the role's generic ``status_changed`` template;
roles without a fallback (technicians) simply receive nothing for that kind.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Callable

from repairdesk.workflow.statuses import (
    CLIENT_UNAVAILABLE_STATUSES,
    ServiceStatus,
    describe,
)

SMS_MAX_LENGTH = 160


class RecipientRole(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"
    BUSINESS_PARTNER = "business_partner"
    SUPPLIER = "supplier"
    TECHNICIAN = "technician"


class TransitionKind(str, Enum):
    CREATED = "created"
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    CLIENT_UNAVAILABLE = "client_unavailable"
    REPAIR_REFUSED = "repair_refused"
    STATUS_CHANGED = "status_changed"
    PARTS_ORDERED = "parts_ordered"
    PARTS_ARRIVED = "parts_arrived"


def transition_kind(old: ServiceStatus | str, new: ServiceStatus | str) -> TransitionKind:
    new = ServiceStatus(new)
    if new == ServiceStatus.ASSIGNED:
        return TransitionKind.ASSIGNED
    if new == ServiceStatus.IN_PROGRESS:
        return TransitionKind.STARTED
    if new == ServiceStatus.COMPLETED:
        return TransitionKind.COMPLETED
    if new in CLIENT_UNAVAILABLE_STATUSES:
        return TransitionKind.CLIENT_UNAVAILABLE
    if new == ServiceStatus.CUSTOMER_REFUSED_REPAIR:
        return TransitionKind.REPAIR_REFUSED
    return TransitionKind.STATUS_CHANGED


def short_ref(service_id: str) -> str:
    """Short human reference for a ULID, used in SMS bodies."""
    return service_id[-8:] if service_id else "?"


@dataclass
class MessageData:
    """Flat view of everything a template may interpolate."""

    service_id: str = ""
    client_name: str = ""
    client_phone: str = ""
    device_type: str = "Appliance"
    manufacturer: str = ""
    model: str = ""
    problem: str = ""
    technician_name: str = "Technician"
    technician_phone: str = ""
    partner_name: str = ""
    old_status: str = ""
    new_status: str = ""
    reason: str = ""
    rescheduling_notes: str = ""
    cost: float | None = None
    created_by: str = ""
    part_name: str = ""
    quantity: int = 1
    urgency: str = "normal"
    estimated_delivery: str = ""
    ordered_by: str = ""
    company_phone: str = ""

    @property
    def ref(self) -> str:
        return short_ref(self.service_id)

    @property
    def old_desc(self) -> str:
        return describe(self.old_status)

    @property
    def new_desc(self) -> str:
        return describe(self.new_status)

    @property
    def device(self) -> str:
        return f"{self.device_type} {self.manufacturer}".strip()

    @property
    def eta(self) -> str:
        return self.estimated_delivery or "5-7 days"

    @property
    def contact(self) -> str:
        return f" Tel: {self.company_phone}" if self.company_phone else ""

    def urgency_prefix(self) -> str:
        return {"urgent": "[URGENT] ", "high": "[HIGH] "}.get(self.urgency, "")


_TRANSLITERATION = str.maketrans({
    "‘": "'", "’": "'", "“": '"', "”": '"',
    "–": "-", "—": "-", "…": "...",
    "đ": "dj", "Đ": "Dj",
})


def sms_safe(message: str, limit: int = SMS_MAX_LENGTH) -> str:
    """Fold to plain GSM-friendly ASCII and cap at a single SMS segment."""
    text = message.translate(_TRANSLITERATION)
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) > limit:
        text = text[: limit - 3].rstrip() + "..."
    return text


Template = Callable[[MessageData], str]

R = RecipientRole
K = TransitionKind

TEMPLATES: dict[tuple[RecipientRole, TransitionKind], Template] = {
    # Client
    (R.CLIENT, K.CREATED): lambda d: (
        f"Hello {d.client_name}! Service #{d.ref} for your {d.device_type} is registered. "
        f"We will contact you to book a visit.{d.contact}"
    ),
    (R.CLIENT, K.ASSIGNED): lambda d: (
        f"Hello {d.client_name}! Service #{d.ref} ({d.device_type}) is assigned to "
        f"technician {d.technician_name} {d.technician_phone}".rstrip() + "."
    ),
    (R.CLIENT, K.STARTED): lambda d: (
        f"Dear {d.client_name}, technician {d.technician_name} has started work on "
        f"service #{d.ref} ({d.device_type}).{d.contact}"
    ),
    (R.CLIENT, K.COMPLETED): lambda d: (
        f"Service #{d.ref} for your {d.device} is completed. Technician: {d.technician_name}"
        + (f", cost: {d.cost:.2f} EUR" if d.cost else "")
        + f". Thank you!{d.contact}"
    ),
    (R.CLIENT, K.CLIENT_UNAVAILABLE): lambda d: (
        f"Hello {d.client_name}! We could not reach you for service #{d.ref} ({d.device_type}). "
        f"Please call us to book a new visit.{d.contact}"
    ),
    (R.CLIENT, K.REPAIR_REFUSED): lambda d: (
        f"Dear {d.client_name}, we recorded that you declined the repair for service #{d.ref} "
        f"({d.device_type}).{d.contact}"
    ),
    (R.CLIENT, K.STATUS_CHANGED): lambda d: (
        f"Service #{d.ref} status changed: {d.new_desc}. Technician: {d.technician_name}.{d.contact}"
    ),
    (R.CLIENT, K.PARTS_ORDERED): lambda d: (
        f"{d.urgency_prefix()}Part {d.part_name} was ordered for your {d.device}. "
        f"Expected in {d.eta}.{d.contact}"
    ),
    (R.CLIENT, K.PARTS_ARRIVED): lambda d: (
        f"Part {d.part_name} for service #{d.ref} has arrived. "
        f"The technician will contact you within 24h.{d.contact}"
    ),
    # Admin
    (R.ADMIN, K.CREATED): lambda d: (
        f"NEW SERVICE #{d.ref} - {d.client_name} ({d.client_phone}), {d.device}, "
        f"Model: {d.model or 'N/A'}, by {d.created_by or 'office'}"
    ),
    (R.ADMIN, K.ASSIGNED): lambda d: (
        f"ASSIGNED #{d.ref} to {d.technician_name}: {d.client_name} ({d.client_phone}), "
        f"{d.device_type}. Partner: {d.partner_name or 'N/A'}"
    ),
    (R.ADMIN, K.CLIENT_UNAVAILABLE): lambda d: (
        f"CLIENT UNAVAILABLE #{d.ref}: {d.client_name} ({d.client_phone}), {d.device_type}, "
        f"Tech: {d.technician_name}. Reason: {d.reason}"
    ),
    (R.ADMIN, K.REPAIR_REFUSED): lambda d: (
        f"REPAIR REFUSED #{d.ref}: {d.client_name} ({d.client_phone}), {d.device_type}, "
        f"Tech: {d.technician_name}. Reason: {d.reason}"
    ),
    (R.ADMIN, K.STATUS_CHANGED): lambda d: (
        f"CHANGE #{d.ref}: {d.client_name} ({d.client_phone}), {d.device}, "
        f"{d.old_status}->{d.new_status}, Tech: {d.technician_name}"
    ),
    (R.ADMIN, K.PARTS_ORDERED): lambda d: (
        f"{d.urgency_prefix()}PART ORDERED {d.part_name} x{d.quantity} for #{d.ref}: "
        f"{d.client_name}, {d.device_type}, Tech: {d.technician_name}, ETA {d.eta}"
    ),
    (R.ADMIN, K.PARTS_ARRIVED): lambda d: (
        f"PART ARRIVED #{d.ref}: {d.part_name}, Client: {d.client_name}, "
        f"Tech: {d.technician_name}. Ready to install."
    ),
    # Business partner
    (R.BUSINESS_PARTNER, K.CREATED): lambda d: (
        f"Confirmed: service #{d.ref} created for {d.client_name} ({d.device_type}). "
        f"A technician will be assigned soon."
    ),
    (R.BUSINESS_PARTNER, K.ASSIGNED): lambda d: (
        f"Your request #{d.ref} for {d.client_name} ({d.device_type}) is assigned to "
        f"technician {d.technician_name}."
    ),
    (R.BUSINESS_PARTNER, K.COMPLETED): lambda d: (
        f"Service #{d.ref} - {d.client_name} ({d.device_type}) completed. "
        f"Technician: {d.technician_name}. Thank you for the cooperation!"
    ),
    (R.BUSINESS_PARTNER, K.CLIENT_UNAVAILABLE): lambda d: (
        f"Client {d.client_name} unavailable for service #{d.ref} ({d.device_type}). "
        f"Technician: {d.technician_name}. Rescheduling needed."
    ),
    (R.BUSINESS_PARTNER, K.REPAIR_REFUSED): lambda d: (
        f"Client {d.client_name} declined the repair for service #{d.ref} ({d.device_type})."
    ),
    (R.BUSINESS_PARTNER, K.STATUS_CHANGED): lambda d: (
        f"Service #{d.ref} status: {d.old_desc} -> {d.new_desc}. "
        f"Client: {d.client_name}, Technician: {d.technician_name}."
    ),
    (R.BUSINESS_PARTNER, K.PARTS_ORDERED): lambda d: (
        f"Part {d.part_name} ordered for service #{d.ref} ({d.client_name}, {d.device_type}). "
        f"Expected in {d.eta}."
    ),
    (R.BUSINESS_PARTNER, K.PARTS_ARRIVED): lambda d: (
        f"Part {d.part_name} arrived for service #{d.ref} ({d.client_name}, {d.device_type}). "
        f"Technician: {d.technician_name}."
    ),
    # Supplier
    (R.SUPPLIER, K.COMPLETED): lambda d: (
        f"{d.manufacturer} service #{d.ref} completed - {d.client_name}, {d.device_type}, "
        f"Technician: {d.technician_name}"
    ),
    (R.SUPPLIER, K.STATUS_CHANGED): lambda d: (
        f"{d.manufacturer} service #{d.ref} - {d.client_name}, status: "
        f"{d.old_status} -> {d.new_status}, Technician: {d.technician_name}"
    ),
    (R.SUPPLIER, K.PARTS_ORDERED): lambda d: (
        f"{d.urgency_prefix()}Part ordered for {d.manufacturer} service #{d.ref}. "
        f"Client: {d.client_name}, Part: {d.part_name} x{d.quantity}, Ordered by: {d.ordered_by or 'office'}"
    ),
    (R.SUPPLIER, K.PARTS_ARRIVED): lambda d: (
        f"{d.manufacturer} service #{d.ref}: part {d.part_name} arrived. Client: {d.client_name}"
    ),
    # Technician
    (R.TECHNICIAN, K.ASSIGNED): lambda d: (
        f"NEW SERVICE #{d.ref} - {d.client_name} ({d.client_phone}), {d.device}, "
        f"Model: {d.model or 'N/A'}. Problem: {d.problem or 'check the appliance'}"
    ),
    (R.TECHNICIAN, K.PARTS_ARRIVED): lambda d: (
        f"Part {d.part_name} for service #{d.ref} has arrived. Client: {d.client_name}. Ready to install."
    ),
}


def template_for(role: RecipientRole, kind: TransitionKind) -> Template | None:
    template = TEMPLATES.get((role, kind))
    if template is None:
        template = TEMPLATES.get((role, TransitionKind.STATUS_CHANGED))
    return template


def render_sms(role: RecipientRole, kind: TransitionKind, data: MessageData) -> str | None:
    """Render the SMS body for a recipient, or None when the role gets no message."""
    template = template_for(role, kind)
    if template is None:
        return None
    return sms_safe(template(data))


_EMAIL_SUBJECTS: dict[TransitionKind, str] = {
    K.CREATED: "Service #{ref} registered",
    K.ASSIGNED: "Service #{ref} assigned to a technician",
    K.STARTED: "Work started on service #{ref}",
    K.COMPLETED: "Service #{ref} completed",
    K.CLIENT_UNAVAILABLE: "We missed you - service #{ref}",
    K.REPAIR_REFUSED: "Repair declined - service #{ref}",
    K.PARTS_ORDERED: "Spare part ordered for service #{ref}",
    K.PARTS_ARRIVED: "Spare part arrived for service #{ref}",
}


def render_email(kind: TransitionKind, data: MessageData) -> tuple[str, str]:
    """Subject and HTML body of the client status email.

    Every interpolated value is HTML-escaped; names and reasons are free text
    typed by staff and partners.
    """
    subject = _EMAIL_SUBJECTS.get(kind, "Service #{ref} status update").format(ref=data.ref)
    detail = ""
    if data.part_name:
        detail = (
            f"<p><strong>Spare part:</strong> {escape(data.part_name)} "
            f"(expected in {escape(data.eta)})</p>"
        )
    elif data.reason:
        detail = f"<p><strong>Note:</strong> {escape(data.reason)}</p>"
    body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #0066cc;">Service status update</h2>
      <p>Dear {escape(data.client_name)},</p>
      <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 15px 0;">
        <p><strong>Service:</strong> #{escape(data.ref)}</p>
        <p><strong>Appliance:</strong> {escape(data.device)}</p>
        <p><strong>Status:</strong> {escape(data.new_desc)}</p>
        <p><strong>Technician:</strong> {escape(data.technician_name)}</p>
        {detail}
      </div>
      <p style="color:#888;font-size:12px;">Questions? Call us at {escape(data.company_phone or 'our office')}.</p>
    </div>
    """
    return subject, body


def render_supplier_email(kind: TransitionKind, data: MessageData, supplier: str) -> tuple[str, str]:
    """Subject and HTML report sent to a supplier for a ticket of its brand."""
    action = "completed" if kind == K.COMPLETED else "update"
    subject = f"{data.manufacturer} service #{data.ref} {action} - {data.client_name}"
    rows = [
        ("Client", data.client_name),
        ("Phone", data.client_phone),
        ("Appliance", f"{data.device} {data.model}".strip()),
        ("Problem", data.problem),
        ("Status", data.new_desc),
        ("Technician", data.technician_name),
    ]
    if data.cost:
        rows.append(("Cost", f"{data.cost:.2f} EUR"))
    if data.reason:
        rows.append(("Note", data.reason))
    table = "\n".join(
        f"<tr><td><strong>{label}:</strong></td><td>{escape(value)}</td></tr>"
        for label, value in rows if value
    )
    body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #1e40af;">{escape(supplier)}: service #{escape(data.ref)} {action}</h2>
      <table style="border-collapse: collapse; width: 100%;">
        {table}
      </table>
    </div>
    """
    return subject, body
