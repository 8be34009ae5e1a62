"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from repairdesk.api.auth import router as auth_router
from repairdesk.api.clients import router as clients_router
from repairdesk.api.technicians import router as technicians_router
from repairdesk.api.services import router as services_router
from repairdesk.api.spare_parts import router as spare_parts_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(clients_router)
api_router.include_router(technicians_router)
api_router.include_router(services_router)
api_router.include_router(spare_parts_router)
