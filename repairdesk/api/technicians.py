"""Technician management API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.db import crud
from repairdesk.db.engine import get_db
from repairdesk.dependencies import require_auth, require_role
from repairdesk.schemas import TechnicianCreate, TechnicianRead, TechnicianUpdate

router = APIRouter(prefix="/api/technicians", tags=["technicians"])


@router.get("", response_model=list[TechnicianRead])
async def list_technicians(
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_technicians(db, active_only=True)


@router.post("", status_code=201, response_model=TechnicianRead)
async def create_technician(
    body: TechnicianCreate,
    auth=Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_technician(
        db,
        full_name=body.full_name.strip(),
        email=body.email.strip(),
        phone=body.phone.strip(),
        specialization=body.specialization.strip(),
    )


@router.put("/{tech_id}", response_model=TechnicianRead)
async def update_technician(
    tech_id: str,
    body: TechnicianUpdate,
    auth=Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    tech = await crud.get_technician(db, tech_id)
    if not tech:
        raise HTTPException(404, "Technician not found")
    return await crud.update_technician(db, tech, **body.model_dump(exclude_none=True))


@router.delete("/{tech_id}")
async def deactivate_technician(
    tech_id: str,
    auth=Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    tech = await crud.get_technician(db, tech_id)
    if not tech:
        raise HTTPException(404, "Technician not found")

    tech = await crud.update_technician(db, tech, is_active=False)
    return {"ok": True, "id": tech.id}
