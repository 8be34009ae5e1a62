"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from repairdesk.api.router import api_router
from repairdesk.config import get_settings
from repairdesk.db.engine import create_tables, dispose_engine
from repairdesk.workflow.errors import WorkflowError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("RepairDesk started (%s)", settings.environment)
    yield
    await dispose_engine()


app = FastAPI(
    title="RepairDesk",
    description="Appliance repair service management: ticket workflow, spare parts and SMS/email notifications.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, **exc.context})


app.include_router(api_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
