"""CRUD operations for RepairDesk models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from repairdesk.models import (
    Appliance, ApplianceCategory, Client, Manufacturer, Service,
    ServiceStatusChange, SparePartOrder, Technician, User,
)
from repairdesk.models.base import utcnow


# ── Users ─────────────────────────────────────────────────

async def create_user(
    db: AsyncSession, username: str, password_hash: str, role: str,
    full_name: str = "", email: str = "", phone: str = "",
    company_name: str = "", technician_id: str | None = None,
) -> User:
    user = User(
        username=username, password_hash=password_hash, role=role,
        full_name=full_name, email=email, phone=phone,
        company_name=company_name, technician_id=technician_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def list_admins(db: AsyncSession) -> list[User]:
    """Active admin accounts; these receive every status SMS."""
    result = await db.execute(
        select(User).where(User.role == "admin", User.is_active == True)
    )
    return list(result.scalars().all())


# ── Technicians ───────────────────────────────────────────

async def create_technician(
    db: AsyncSession, full_name: str, email: str = "", phone: str = "", specialization: str = "",
) -> Technician:
    tech = Technician(full_name=full_name, email=email, phone=phone, specialization=specialization)
    db.add(tech)
    await db.commit()
    await db.refresh(tech)
    return tech


async def get_technician(db: AsyncSession, tech_id: str) -> Technician | None:
    return await db.get(Technician, tech_id)


async def list_technicians(db: AsyncSession, active_only: bool = True) -> list[Technician]:
    query = select(Technician).order_by(Technician.full_name)
    if active_only:
        query = query.where(Technician.is_active == True)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_technician(db: AsyncSession, tech: Technician, **kwargs) -> Technician:
    for k, v in kwargs.items():
        if v is not None:
            setattr(tech, k, v)
    await db.commit()
    await db.refresh(tech)
    return tech


# ── Clients ───────────────────────────────────────────────

async def create_client(
    db: AsyncSession, full_name: str, phone: str = "", email: str = "",
    address: str = "", city: str = "",
) -> Client:
    client = Client(full_name=full_name, phone=phone, email=email, address=address, city=city)
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


async def get_client(db: AsyncSession, client_id: str) -> Client | None:
    return await db.get(Client, client_id)


async def list_clients(db: AsyncSession, search: str = "") -> list[Client]:
    query = select(Client).order_by(Client.full_name)
    if search:
        pattern = f"%{search}%"
        query = query.where(Client.full_name.ilike(pattern) | Client.phone.ilike(pattern))
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_client(db: AsyncSession, client: Client, **kwargs) -> Client:
    for k, v in kwargs.items():
        if v is not None:
            setattr(client, k, v)
    await db.commit()
    await db.refresh(client)
    return client


# ── Appliance catalog ─────────────────────────────────────

async def get_or_create_category(db: AsyncSession, name: str, icon: str = "") -> ApplianceCategory:
    result = await db.execute(select(ApplianceCategory).where(ApplianceCategory.name == name))
    category = result.scalars().first()
    if category:
        return category
    category = ApplianceCategory(name=name, icon=icon)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


async def get_or_create_manufacturer(db: AsyncSession, name: str) -> Manufacturer:
    result = await db.execute(select(Manufacturer).where(Manufacturer.name == name))
    manufacturer = result.scalars().first()
    if manufacturer:
        return manufacturer
    manufacturer = Manufacturer(name=name)
    db.add(manufacturer)
    await db.commit()
    await db.refresh(manufacturer)
    return manufacturer


async def list_categories(db: AsyncSession) -> list[ApplianceCategory]:
    result = await db.execute(select(ApplianceCategory).order_by(ApplianceCategory.name))
    return list(result.scalars().all())


async def list_manufacturers(db: AsyncSession) -> list[Manufacturer]:
    result = await db.execute(select(Manufacturer).order_by(Manufacturer.name))
    return list(result.scalars().all())


# ── Appliances ────────────────────────────────────────────

async def create_appliance(
    db: AsyncSession, client_id: str, category_id: str, manufacturer_id: str,
    model: str = "", serial_number: str = "", purchase_date: str = "", notes: str = "",
) -> Appliance:
    appliance = Appliance(
        client_id=client_id, category_id=category_id, manufacturer_id=manufacturer_id,
        model=model, serial_number=serial_number, purchase_date=purchase_date, notes=notes,
    )
    db.add(appliance)
    await db.commit()
    return await get_appliance(db, appliance.id)


async def get_appliance(db: AsyncSession, appliance_id: str) -> Appliance | None:
    result = await db.execute(
        select(Appliance)
        .where(Appliance.id == appliance_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_appliances_for_client(db: AsyncSession, client_id: str) -> list[Appliance]:
    result = await db.execute(
        select(Appliance).where(Appliance.client_id == client_id).order_by(Appliance.created_at)
    )
    return list(result.scalars().unique().all())


async def update_appliance(db: AsyncSession, appliance: Appliance, **kwargs) -> Appliance:
    for k, v in kwargs.items():
        if v is not None:
            setattr(appliance, k, v)
    await db.commit()
    return await get_appliance(db, appliance.id)


# ── Services ──────────────────────────────────────────────

def _service_query():
    return select(Service).options(
        selectinload(Service.client),
        selectinload(Service.appliance),
        selectinload(Service.technician),
        selectinload(Service.business_partner),
    )


async def create_service(
    db: AsyncSession, client_id: str, appliance_id: str, description: str = "",
    warranty_status: str = "out_of_warranty", technician_id: str | None = None,
    business_partner_id: str | None = None, scheduled_date: datetime | None = None,
    actor_user_id: str = "", actor_role: str = "admin",
) -> Service:
    """Insert a pending ticket together with its first audit row."""
    service = Service(
        client_id=client_id, appliance_id=appliance_id, description=description,
        warranty_status=warranty_status, technician_id=technician_id,
        business_partner_id=business_partner_id, scheduled_date=scheduled_date,
        status="pending",
    )
    db.add(service)
    await db.flush()
    db.add(ServiceStatusChange(
        service_id=service.id, old_status="", new_status="pending",
        actor_user_id=actor_user_id, actor_role=actor_role,
    ))
    await db.commit()
    return await get_service(db, service.id)


async def get_service(db: AsyncSession, service_id: str) -> Service | None:
    """Load a ticket with client, appliance, technician and partner, bypassing stale identity-map state."""
    result = await db.execute(
        _service_query()
        .where(Service.id == service_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_services(
    db: AsyncSession, status: str | None = None, technician_id: str | None = None,
    business_partner_id: str | None = None, client_id: str | None = None,
    include_deleted: bool = False,
) -> list[Service]:
    query = _service_query().order_by(Service.created_at.desc())
    if status:
        query = query.where(Service.status == status)
    if technician_id:
        query = query.where(Service.technician_id == technician_id)
    if business_partner_id:
        query = query.where(Service.business_partner_id == business_partner_id)
    if client_id:
        query = query.where(Service.client_id == client_id)
    if not include_deleted:
        query = query.where(Service.deleted_at.is_(None))
    result = await db.execute(query)
    return list(result.scalars().all())


async def apply_status_change(
    db: AsyncSession, service: Service, fields: dict[str, Any], change: ServiceStatusChange,
) -> Service:
    """Write new status columns and the audit row in one commit.

    The version column makes the UPDATE conditional on the version that was
    loaded, so a concurrent writer surfaces as StaleDataError on flush.
    """
    for k, v in fields.items():
        setattr(service, k, v)
    db.add(change)
    await db.commit()
    return await get_service(db, service.id)


async def soft_delete_service(db: AsyncSession, service: Service) -> Service:
    service.deleted_at = utcnow()
    await db.commit()
    return service


async def list_status_changes(db: AsyncSession, service_id: str) -> list[ServiceStatusChange]:
    result = await db.execute(
        select(ServiceStatusChange)
        .where(ServiceStatusChange.service_id == service_id)
        .order_by(ServiceStatusChange.created_at, ServiceStatusChange.id)
    )
    return list(result.scalars().all())


# ── Spare part orders ─────────────────────────────────────

async def create_spare_part_order(
    db: AsyncSession, service_id: str, part_name: str, quantity: int = 1,
    urgency: str = "normal", technician_id: str | None = None,
    catalog_number: str = "", notes: str = "",
) -> SparePartOrder:
    order = SparePartOrder(
        service_id=service_id, part_name=part_name, quantity=quantity, urgency=urgency,
        technician_id=technician_id, catalog_number=catalog_number, notes=notes,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


async def get_spare_part_order(db: AsyncSession, order_id: str) -> SparePartOrder | None:
    result = await db.execute(
        select(SparePartOrder)
        .where(SparePartOrder.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_spare_part_orders(
    db: AsyncSession, status: str | None = None, service_id: str | None = None,
    technician_id: str | None = None,
) -> list[SparePartOrder]:
    query = select(SparePartOrder).order_by(SparePartOrder.created_at.desc())
    if status:
        query = query.where(SparePartOrder.status == status)
    if service_id:
        query = query.where(SparePartOrder.service_id == service_id)
    if technician_id:
        query = query.where(SparePartOrder.technician_id == technician_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_spare_part_order(db: AsyncSession, order: SparePartOrder, **kwargs) -> SparePartOrder:
    for k, v in kwargs.items():
        if v is not None:
            setattr(order, k, v)
    await db.commit()
    await db.refresh(order)
    return order
