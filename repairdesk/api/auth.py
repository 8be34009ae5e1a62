"""Auth API: login, logout and the current user."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.config import Settings
from repairdesk.db.engine import get_db
from repairdesk.dependencies import get_settings_dep, require_auth
from repairdesk.services.auth import (
    AuthContext, SESSION_COOKIE_NAME, SESSION_MAX_AGE_DAYS,
    authenticate, create_session, remove_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


class MeResponse(BaseModel):
    user_id: str
    username: str
    full_name: str
    role: str
    technician_id: str | None = None


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    user = await authenticate(db, body.username, body.password)
    if user is None:
        logger.info("Failed login for username=%s", body.username)
        return JSONResponse(status_code=401, content={"detail": "Invalid credentials"})

    token = await create_session(user, db, ip_address=request.client.host if request.client else "")
    logger.info("User %s logged in as %s", user.username, user.role)

    response = JSONResponse(content={"ok": True, "user_id": user.id, "role": user.role})
    response.set_cookie(
        SESSION_COOKIE_NAME, token,
        httponly=True, samesite="lax", secure=settings.is_production,
        max_age=86400 * SESSION_MAX_AGE_DAYS,
    )
    return response


@router.post("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        await remove_session(token, db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=MeResponse)
async def me(auth: AuthContext = Depends(require_auth)):
    return MeResponse(
        user_id=auth.user_id,
        username=auth.username,
        full_name=auth.full_name,
        role=auth.role,
        technician_id=auth.technician_id,
    )
