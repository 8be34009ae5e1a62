import logging

import pytest

from repairdesk.config import SupplierRouteConfig
from repairdesk.notifications.dispatcher import (
    EMAIL,
    SMS,
    NotificationContext,
    Recipient,
)
from repairdesk.notifications.routing import SupplierRouting
from repairdesk.notifications.templates import MessageData, RecipientRole as R, TransitionKind as K


def _context(manufacturer: str = "Electrolux", **kwargs) -> NotificationContext:
    data = MessageData(
        service_id="01HZY3K8Q4W7E2N5R9T1V6B0XM",
        client_name="Jelena Jovanovic",
        client_phone="069777888",
        device_type="Washing machine",
        manufacturer=manufacturer,
        technician_name="Marko Petrovic",
        old_status="in_progress",
        new_status="waiting_parts",
    )
    defaults = dict(
        client=Recipient(R.CLIENT, "Jelena Jovanovic", "069777888", "jelena@example.com"),
        technician=Recipient(R.TECHNICIAN, "Marko Petrovic", "067333444"),
        business_partner=Recipient(R.BUSINESS_PARTNER, "Tehno Plus", "068555666"),
        admins=[
            Recipient(R.ADMIN, "Office", "069111222"),
            Recipient(R.ADMIN, "No phone", ""),
        ],
    )
    defaults.update(kwargs)
    return NotificationContext(data=data, **defaults)


def _roles(dispatches):
    return [(d.recipient.role, d.channel) for d in dispatches]


def test_resolve_status_change_recipients(sms, dispatcher_factory):
    dispatcher = dispatcher_factory(sms)
    dispatches = dispatcher.resolve(_context(), K.STATUS_CHANGED)
    assert _roles(dispatches) == [
        (R.CLIENT, SMS),
        (R.ADMIN, SMS),
        (R.BUSINESS_PARTNER, SMS),
        (R.SUPPLIER, SMS),
    ]
    supplier = dispatches[-1]
    assert supplier.recipient.name == "ComPlus"
    assert supplier.recipient.phone == "067590272"


def test_unrouted_brand_skips_supplier(sms, dispatcher_factory):
    dispatcher = dispatcher_factory(sms)
    for kind in (K.STATUS_CHANGED, K.PARTS_ORDERED, K.PARTS_ARRIVED):
        assert R.SUPPLIER not in [d.recipient.role for d in dispatcher.resolve(_context("Beko"), kind)]
        assert R.SUPPLIER in [d.recipient.role for d in dispatcher.resolve(_context("Hoover"), kind)]


def test_technician_only_notified_on_assignment_and_parts(sms, dispatcher_factory):
    dispatcher = dispatcher_factory(sms)
    for kind in (K.ASSIGNED, K.PARTS_ARRIVED):
        assert R.TECHNICIAN in [d.recipient.role for d in dispatcher.resolve(_context(), kind)]
    for kind in (K.STARTED, K.COMPLETED, K.STATUS_CHANGED):
        assert R.TECHNICIAN not in [d.recipient.role for d in dispatcher.resolve(_context(), kind)]


def test_extra_admin_phones_are_deduplicated(sms, dispatcher_factory):
    dispatcher = dispatcher_factory(sms, extra_admin_phones=["069111222", "067000111"])
    admins = [d for d in dispatcher.resolve(_context(), K.CREATED) if d.recipient.role == R.ADMIN]
    assert [a.recipient.phone for a in admins] == ["069111222", "067000111"]


def test_email_only_for_client_without_email_supplier(sms, email, dispatcher_factory):
    without = dispatcher_factory(sms).resolve(_context(), K.COMPLETED)
    assert EMAIL not in [d.channel for d in without]

    with_email = dispatcher_factory(sms, email).resolve(_context(), K.COMPLETED)
    emails = [d for d in with_email if d.channel == EMAIL]
    assert len(emails) == 1
    assert emails[0].address == "jelena@example.com"
    assert emails[0].subject.endswith("completed")


def test_recipients_without_contact_are_skipped(sms, dispatcher_factory):
    context = _context(client=Recipient(R.CLIENT, "Walk-in", "", ""), business_partner=None)
    roles = [d.recipient.role for d in dispatcher_factory(sms).resolve(context, K.STATUS_CHANGED)]
    assert roles == [R.ADMIN, R.SUPPLIER]


async def test_notify_sends_normalized_numbers(sms, dispatcher_factory):
    report = await dispatcher_factory(sms).notify(_context(), K.STATUS_CHANGED)
    assert len(report.sent) == 4
    assert report.failed == []
    assert {phone for phone, _ in sms.sent} == {
        "+38269777888", "+38269111222", "+38268555666", "+38267590272",
    }
    assert all(len(message) <= 160 for _, message in sms.sent)


async def test_rejected_messages_are_logged_and_reported(fake_sms, dispatcher_factory, caplog):
    sms = fake_sms(fail=True)
    with caplog.at_level(logging.WARNING, logger="repairdesk.notifications.dispatcher"):
        report = await dispatcher_factory(sms).notify(_context(), K.STATUS_CHANGED)
    assert len(report.failed) == 4
    assert len(sms.sent) == 4
    assert "rejected by gateway" in caplog.text
    assert "recipient=067590272" in caplog.text


async def test_invalid_phone_is_reported_not_raised(sms, dispatcher_factory):
    context = _context(client=Recipient(R.CLIENT, "Bad number", "12", ""))
    report = await dispatcher_factory(sms).notify(context, K.STATUS_CHANGED)
    failed = [o for o in report.failed if o.dispatch.recipient.role == R.CLIENT]
    assert len(failed) == 1
    assert "12" in failed[0].error
    assert len(report.sent) == 3


async def test_slow_channel_times_out(fake_sms, dispatcher_factory):
    sms = fake_sms(delay=1.0)
    report = await dispatcher_factory(sms, send_timeout=0.05).notify(_context(), K.STATUS_CHANGED)
    assert report.sent == []
    assert all("timed out" in o.error for o in report.failed)


async def test_channel_exception_is_contained(fake_sms, dispatcher_factory):
    sms = fake_sms(raises=RuntimeError("socket closed"))
    report = await dispatcher_factory(sms).notify(_context(), K.STATUS_CHANGED)
    assert report.sent == []
    assert all("RuntimeError" in o.error for o in report.failed)


async def test_failing_email_keeps_sms(sms, fake_email, dispatcher_factory):
    email = fake_email(fail=True)
    report = await dispatcher_factory(sms, email).notify(_context(), K.COMPLETED)
    assert [o.dispatch.channel for o in report.failed] == [EMAIL]
    assert all(o.dispatch.channel == SMS for o in report.sent)
    assert report.kind == K.COMPLETED


@pytest.mark.parametrize("kind", list(K))
def test_every_kind_reaches_someone(sms, dispatcher_factory, kind):
    assert dispatcher_factory(sms).resolve(_context(), kind)


SERVIS_KOMERC = SupplierRouteConfig(
    name="Servis Komerc", email="servis.komerc@example.com", brands=["Beko"], notify_on=["completed"],
)


async def test_email_supplier_receives_completion_report(sms, email, dispatcher_factory, complus_route):
    routing = SupplierRouting.from_config([complus_route, SERVIS_KOMERC])
    dispatcher = dispatcher_factory(sms, email, routing=routing)

    for kind in (K.ASSIGNED, K.STATUS_CHANGED, K.PARTS_ORDERED):
        assert R.SUPPLIER not in [d.recipient.role for d in dispatcher.resolve(_context("Beko"), kind)]

    context = _context("Beko")
    context.data.new_status = "completed"
    context.data.reason = "<b>Door seal</b> replaced"
    report = await dispatcher.notify(context, K.COMPLETED)

    supplier = [o.dispatch for o in report.sent if o.dispatch.recipient.role == R.SUPPLIER]
    assert [(d.channel, d.address) for d in supplier] == [(EMAIL, "servis.komerc@example.com")]
    assert supplier[0].subject.startswith("Beko service #T1V6B0XM completed")
    assert "&lt;b&gt;Door seal&lt;/b&gt;" in supplier[0].message
    assert {to for to, _, _ in email.sent} == {"jelena@example.com", "servis.komerc@example.com"}
    assert "+38267590272" not in {phone for phone, _ in sms.sent}


def test_partner_hears_about_arrived_parts(sms, dispatcher_factory):
    context = _context()
    context.data.old_status = context.data.new_status = "in_progress"
    context.data.part_name = "Drain pump"
    partner = [
        d for d in dispatcher_factory(sms).resolve(context, K.PARTS_ARRIVED)
        if d.recipient.role == R.BUSINESS_PARTNER
    ]
    assert len(partner) == 1
    assert "Drain pump arrived" in partner[0].message
    assert "->" not in partner[0].message
