"""Client intake API: clients, their appliances and the appliance catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.db import crud
from repairdesk.db.engine import get_db
from repairdesk.dependencies import require_auth, require_role
from repairdesk.schemas import (
    ApplianceCreate, ApplianceRead, ApplianceUpdate, CategoryRead,
    ClientCreate, ClientRead, ClientUpdate, ManufacturerRead,
)

router = APIRouter(prefix="/api", tags=["clients"])

_intake = require_role("admin", "business_partner")


@router.get("/clients", response_model=list[ClientRead])
async def list_clients(
    search: str = "",
    auth=Depends(_intake),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_clients(db, search=search.strip())


@router.post("/clients", status_code=201, response_model=ClientRead)
async def create_client(
    body: ClientCreate,
    auth=Depends(_intake),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_client(
        db,
        full_name=body.full_name.strip(),
        phone=body.phone.strip(),
        email=body.email.strip(),
        address=body.address.strip(),
        city=body.city.strip(),
    )


@router.get("/clients/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: str,
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return client


@router.put("/clients/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    auth=Depends(_intake),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return await crud.update_client(db, client, **body.model_dump(exclude_none=True))


@router.get("/clients/{client_id}/appliances", response_model=list[ApplianceRead])
async def list_client_appliances(
    client_id: str,
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_appliances_for_client(db, client_id)


@router.post("/clients/{client_id}/appliances", status_code=201, response_model=ApplianceRead)
async def create_appliance(
    client_id: str,
    body: ApplianceCreate,
    auth=Depends(_intake),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")

    category = await crud.get_or_create_category(db, body.category.strip())
    manufacturer = await crud.get_or_create_manufacturer(db, body.manufacturer.strip())
    return await crud.create_appliance(
        db,
        client_id=client.id,
        category_id=category.id,
        manufacturer_id=manufacturer.id,
        model=body.model.strip(),
        serial_number=body.serial_number.strip(),
        purchase_date=body.purchase_date.strip(),
        notes=body.notes.strip(),
    )


@router.put("/appliances/{appliance_id}", response_model=ApplianceRead)
async def update_appliance(
    appliance_id: str,
    body: ApplianceUpdate,
    auth=Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    appliance = await crud.get_appliance(db, appliance_id)
    if not appliance:
        raise HTTPException(404, "Appliance not found")
    return await crud.update_appliance(db, appliance, **body.model_dump(exclude_none=True))


@router.get("/catalog/categories", response_model=list[CategoryRead])
async def list_categories(auth=Depends(require_auth), db: AsyncSession = Depends(get_db)):
    return await crud.list_categories(db)


@router.get("/catalog/manufacturers", response_model=list[ManufacturerRead])
async def list_manufacturers(auth=Depends(require_auth), db: AsyncSession = Depends(get_db)):
    return await crud.list_manufacturers(db)
