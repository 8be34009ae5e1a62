"""Service ticket API: intake, listing, status workflow, spare part requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.db import crud
from repairdesk.db.engine import get_db
from repairdesk.dependencies import (
    get_spare_part_workflow, get_workflow_engine, require_auth, require_role,
)
from repairdesk.models import Service
from repairdesk.schemas import (
    ServiceCreate, ServiceRead, SparePartOrderCreate, SparePartOrderRead,
    StatusChangeRead, StatusChangeRequest,
)
from repairdesk.services.auth import AuthContext
from repairdesk.workflow.engine import WorkflowEngine
from repairdesk.workflow.spare_parts import SparePartWorkflow

router = APIRouter(prefix="/api/services", tags=["services"])


def _can_see(auth: AuthContext, service: Service) -> bool:
    if auth.role == "admin":
        return True
    if auth.role == "technician":
        return bool(auth.technician_id) and service.technician_id == auth.technician_id
    return service.business_partner_id == auth.user_id


async def _visible_service(db: AsyncSession, auth: AuthContext, service_id: str) -> Service:
    service = await crud.get_service(db, service_id)
    if not service or service.deleted_at is not None or not _can_see(auth, service):
        raise HTTPException(404, "Service not found")
    return service


@router.post("", status_code=201, response_model=ServiceRead)
async def create_service(
    body: ServiceCreate,
    auth: AuthContext = Depends(require_role("admin", "business_partner")),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return await engine.create_service(
        auth.to_actor(),
        client_id=body.client_id,
        appliance_id=body.appliance_id,
        description=body.description.strip(),
        warranty_status=body.warranty_status.value,
        technician_id=body.technician_id,
        scheduled_date=body.scheduled_date,
    )


@router.get("", response_model=list[ServiceRead])
async def list_services(
    status: str | None = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    if auth.role == "technician":
        if not auth.technician_id:
            return []
        return await crud.list_services(db, status=status, technician_id=auth.technician_id)
    if auth.role == "business_partner":
        return await crud.list_services(db, status=status, business_partner_id=auth.user_id)
    return await crud.list_services(db, status=status)


@router.get("/{service_id}", response_model=ServiceRead)
async def get_service(
    service_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await _visible_service(db, auth, service_id)


@router.get("/{service_id}/history", response_model=list[StatusChangeRead])
async def get_service_history(
    service_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await _visible_service(db, auth, service_id)
    return await crud.list_status_changes(db, service_id)


@router.put("/{service_id}/status", response_model=ServiceRead)
async def change_service_status(
    service_id: str,
    body: StatusChangeRequest,
    auth: AuthContext = Depends(require_auth),
    engine: WorkflowEngine = Depends(get_workflow_engine),
):
    return await engine.change_status(
        service_id, body.status.value, auth.to_actor(), body.reason_fields(),
    )


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    auth: AuthContext = Depends(require_role("admin")),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the ticket is hidden from listings but kept with its history."""
    service = await crud.get_service(db, service_id)
    if not service or service.deleted_at is not None:
        raise HTTPException(404, "Service not found")
    await crud.soft_delete_service(db, service)
    return {"ok": True, "id": service_id}


@router.post("/{service_id}/spare-parts", status_code=201, response_model=SparePartOrderRead)
async def request_spare_part(
    service_id: str,
    body: SparePartOrderCreate,
    auth: AuthContext = Depends(require_auth),
    workflow: SparePartWorkflow = Depends(get_spare_part_workflow),
):
    return await workflow.request_part(service_id, auth.to_actor(), body.model_dump(mode="json"))


@router.get("/{service_id}/spare-parts", response_model=list[SparePartOrderRead])
async def list_service_spare_parts(
    service_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await _visible_service(db, auth, service_id)
    return await crud.list_spare_part_orders(db, service_id=service_id)
