"""Login sessions for shop staff and partners.

Passwords are bcrypt hashes. A session is a random token handed to the browser
as a cookie; only its SHA-256 digest is stored, so a leaked users table does not
leak live sessions.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
from fastapi import HTTPException, Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.db import crud
from repairdesk.models import User, UserSession
from repairdesk.models.base import utcnow
from repairdesk.workflow.statuses import Role
from repairdesk.workflow.validator import Actor

SESSION_COOKIE_NAME = "session_token"
SESSION_MAX_AGE_DAYS = 7


@dataclass
class AuthContext:
    user_id: str
    role: str  # 'admin' | 'technician' | 'business_partner'
    username: str
    full_name: str
    technician_id: str | None = None

    @classmethod
    def from_user(cls, user: User) -> AuthContext:
        return cls(
            user_id=user.id,
            role=user.role,
            username=user.username,
            full_name=user.full_name,
            technician_id=user.technician_id,
        )

    def to_actor(self) -> Actor:
        return Actor(role=Role(self.role), user_id=self.user_id, technician_id=self.technician_id)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash, e.g. an account provisioned without a password
        return False


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def authenticate(db: AsyncSession, username: str, password: str) -> User | None:
    """Return the active user matching the credentials, else None."""
    user = await crud.get_user_by_username(db, username.strip())
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def create_session(user: User, db: AsyncSession, ip_address: str = "") -> str:
    """Open a session for user and return the raw cookie token.

    Expired sessions of the same user are dropped in the same commit, and the
    user's last_login_at is stamped.
    """
    now = utcnow()
    await db.execute(
        delete(UserSession).where(UserSession.user_id == user.id, UserSession.expires_at <= now)
    )
    token = secrets.token_urlsafe(48)
    db.add(UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=now + timedelta(days=SESSION_MAX_AGE_DAYS),
        ip_address=ip_address,
    ))
    user.last_login_at = now
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    result = await db.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > utcnow(),
            User.is_active.is_(True),
        )
    )
    return result.scalars().first()


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == _hash_token(token)))
    await db.commit()


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Resolve the session cookie to an AuthContext or raise 401."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if user is None:
        raise HTTPException(status_code=401, detail="Session expired")
    return AuthContext.from_user(user)
