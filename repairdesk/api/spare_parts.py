"""Spare part order API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.db import crud
from repairdesk.db.engine import get_db
from repairdesk.dependencies import get_spare_part_workflow, require_auth, require_role
from repairdesk.schemas import SparePartOrderRead, SparePartStatusUpdate
from repairdesk.services.auth import AuthContext
from repairdesk.workflow.spare_parts import SparePartWorkflow

router = APIRouter(prefix="/api/spare-parts", tags=["spare_parts"])


@router.get("", response_model=list[SparePartOrderRead])
async def list_spare_parts(
    status: str | None = None,
    auth: AuthContext = Depends(require_role("admin", "technician")),
    db: AsyncSession = Depends(get_db),
):
    if auth.role == "technician":
        if not auth.technician_id:
            return []
        return await crud.list_spare_part_orders(db, status=status, technician_id=auth.technician_id)
    return await crud.list_spare_part_orders(db, status=status)


@router.put("/{order_id}/status", response_model=SparePartOrderRead)
async def change_spare_part_status(
    order_id: str,
    body: SparePartStatusUpdate,
    auth: AuthContext = Depends(require_auth),
    workflow: SparePartWorkflow = Depends(get_spare_part_workflow),
):
    return await workflow.change_part_status(
        order_id, body.status.value, auth.to_actor(),
        body.model_dump(exclude={"status"}, exclude_none=True),
    )
