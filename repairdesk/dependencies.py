"""FastAPI dependency providers for auth, role enforcement and workflow services."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.config import Settings, get_settings
from repairdesk.db.engine import get_db
from repairdesk.notifications.dispatcher import NotificationDispatcher
from repairdesk.services.auth import AuthContext, get_current_user
from repairdesk.services.email import EmailChannel
from repairdesk.services.sms import SmsChannel
from repairdesk.workflow.engine import WorkflowEngine
from repairdesk.workflow.spare_parts import SparePartWorkflow


@lru_cache
def get_settings_dep() -> Settings:
    return get_settings()


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    settings = get_settings_dep()
    return NotificationDispatcher.from_settings(
        settings,
        SmsChannel(settings.sms, timeout=settings.notifications.send_timeout_seconds),
        EmailChannel(settings.email),
    )


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(403, "Insufficient permissions")
        return auth
    return _check


def get_workflow_engine(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings_dep),
) -> WorkflowEngine:
    return WorkflowEngine(
        db, dispatcher,
        background=settings.notifications.background,
        company_phone=settings.email.company_phone,
    )


def get_spare_part_workflow(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings_dep),
) -> SparePartWorkflow:
    return SparePartWorkflow(
        db, dispatcher,
        background=settings.notifications.background,
        company_phone=settings.email.company_phone,
    )
