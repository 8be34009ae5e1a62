import asyncio
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from repairdesk.config import SupplierRouteConfig
from repairdesk.db import crud
from repairdesk.models import Base
from repairdesk.notifications.dispatcher import NotificationDispatcher
from repairdesk.notifications.routing import SupplierRouting
from repairdesk.services.auth import hash_password
from repairdesk.services.channels import SendResult


class FakeSms:
    """Records every message; optionally rejects or stalls."""

    def __init__(self, fail: bool = False, delay: float = 0.0, raises: Exception | None = None):
        self.fail = fail
        self.delay = delay
        self.raises = raises
        self.sent: list[tuple[str, str]] = []

    async def send(self, to_phone: str, message: str) -> SendResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        self.sent.append((to_phone, message))
        if self.fail:
            return SendResult(False, error="rejected by gateway")
        return SendResult(True, provider_message_id=f"sms-{len(self.sent)}")


class FakeEmail:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        self.sent.append((to, subject, html))
        if self.fail:
            return SendResult(False, error="mailbox unavailable")
        return SendResult(True, provider_message_id=f"email-{len(self.sent)}")


COMPLUS = SupplierRouteConfig(
    name="ComPlus",
    phone="067590272",
    brands=["Electrolux", "Elica", "Candy", "Hoover", "Turbo Air"],
    notify_on=[
        "assigned", "started", "completed", "client_unavailable",
        "repair_refused", "status_changed", "parts_ordered", "parts_arrived",
    ],
)


def make_dispatcher(sms, email=None, **kwargs) -> NotificationDispatcher:
    kwargs.setdefault("routing", SupplierRouting.from_config([COMPLUS]))
    return NotificationDispatcher(sms, email, **kwargs)


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def email():
    return FakeEmail()


@pytest_asyncio.fixture
async def seed(db):
    """An admin, a technician with login, a partner, and an Electrolux washer for one client."""
    admin = await crud.create_user(
        db, "admin", hash_password("adminpass1"), "admin", full_name="Office Admin", phone="069111222",
    )
    tech = await crud.create_technician(db, "Marko Petrovic", phone="067333444", specialization="washers")
    tech_user = await crud.create_user(
        db, "marko", hash_password("techpass12"), "technician",
        full_name="Marko Petrovic", technician_id=tech.id,
    )
    partner = await crud.create_user(
        db, "partner", hash_password("partnerpass"), "business_partner",
        full_name="Ana", company_name="Tehno Plus", phone="068555666",
    )
    client = await crud.create_client(db, "Jelena Jovanovic", phone="069777888", email="jelena@example.com")
    washer = await crud.get_or_create_category(db, "Washing machine")
    electrolux = await crud.get_or_create_manufacturer(db, "Electrolux")
    appliance = await crud.create_appliance(db, client.id, washer.id, electrolux.id, model="EW6F428B")
    return SimpleNamespace(
        admin=admin, tech=tech, tech_user=tech_user, partner=partner,
        client=client, appliance=appliance,
    )


@pytest.fixture
def fake_sms():
    """Factory for SMS fakes with custom behaviour."""
    return FakeSms


@pytest.fixture
def dispatcher_factory():
    return make_dispatcher


@pytest.fixture
def fake_email():
    return FakeEmail


@pytest.fixture
def complus_route():
    return COMPLUS
