"""Workflow engine: the only code path that changes a service's status."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from repairdesk.db import crud
from repairdesk.models import Service, ServiceStatusChange
from repairdesk.notifications.dispatcher import (
    DispatchReport,
    NotificationContext,
    NotificationDispatcher,
)
from repairdesk.notifications.templates import TransitionKind, transition_kind
from repairdesk.workflow.errors import ConflictError, NotFoundError, RoleError, ValidationError
from repairdesk.workflow.statuses import Role
from repairdesk.workflow.validator import Actor, validate_transition

logger = logging.getLogger(__name__)


class KeyedLock:
    """Per-key asyncio locks, dropped once nobody holds or waits on them."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


service_locks = KeyedLock()

# Strong references to fire-and-forget dispatch tasks until they finish.
_background_tasks: set[asyncio.Task] = set()


class BaseWorkflow:
    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher,
        *,
        locks: KeyedLock = service_locks,
        background: bool = False,
        company_phone: str = "",
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.locks = locks
        self.background = background
        self.company_phone = company_phone
        self.last_report: DispatchReport | None = None

    async def _load_service(self, service_id: str) -> Service:
        service = await crud.get_service(self.db, service_id)
        if not service or service.deleted_at is not None:
            raise NotFoundError(f"Service {service_id} not found", service_id=service_id)
        return service

    async def _actor_name(self, actor: Actor) -> str:
        if not actor.user_id:
            return ""
        user = await crud.get_user(self.db, actor.user_id)
        if not user:
            return ""
        return user.company_name or user.full_name or user.username

    async def _notify(
        self, service: Service, kind: TransitionKind, *,
        old_status: str, new_status: str, actor: Actor, part: Any = None,
    ) -> None:
        """Fire notifications for a committed change. Failures are logged, never raised."""
        try:
            admins = await crud.list_admins(self.db)
            context = NotificationContext.from_service(
                service,
                old_status=old_status,
                new_status=new_status,
                admins=admins,
                part=part,
                actor_name=await self._actor_name(actor),
                company_phone=self.company_phone,
            )
        except Exception:
            logger.exception("Could not build notification context for service %s", service.id)
            return

        if self.background:
            task = asyncio.create_task(self.dispatcher.notify(context, kind))
            _background_tasks.add(task)
            task.add_done_callback(_background_tasks.discard)
        else:
            self.last_report = await self.dispatcher.notify(context, kind)


class WorkflowEngine(BaseWorkflow):
    async def change_status(
        self,
        service_id: str,
        requested_status: str,
        actor: Actor,
        payload: dict[str, Any] | None = None,
    ) -> Service:
        """Validate and persist a status change, then notify the parties.

        Calls for the same service are serialized; the returned Service
        reflects the committed write whatever happens to the notifications.
        """
        async with self.locks.hold(service_id):
            service = await self._load_service(service_id)
            old_status = service.status
            decision = validate_transition(
                old_status,
                requested_status,
                actor,
                payload,
                assigned_technician_id=service.technician_id,
                business_partner_id=service.business_partner_id,
            )
            if decision.noop:
                logger.debug("Service %s already %s; nothing to do", service_id, old_status)
                return service

            new_technician = decision.fields.get("technician_id")
            if new_technician:
                tech = await crud.get_technician(self.db, new_technician)
                if not tech or not tech.is_active:
                    raise ValidationError(
                        f"Technician {new_technician} not found or inactive", field="technician_id",
                    )

            fields = decision.fields
            change = ServiceStatusChange(
                service_id=service.id,
                old_status=old_status,
                new_status=decision.new_status.value,
                actor_user_id=actor.user_id,
                actor_role=Role(actor.role).value,
                reason=fields.get("customer_refusal_reason") or fields.get("client_unavailable_reason") or "",
                notes=fields.get("rescheduling_notes") or fields.get("technician_notes") or "",
            )
            try:
                service = await crud.apply_status_change(self.db, service, fields, change)
            except StaleDataError:
                await self.db.rollback()
                raise ConflictError(
                    f"Service {service_id} was modified concurrently; reload and retry",
                    service_id=service_id,
                )

            logger.info(
                "Service %s: %s -> %s by %s %s",
                service_id, old_status, service.status, Role(actor.role).value, actor.user_id or "-",
            )

        await self._notify(
            service, transition_kind(old_status, service.status),
            old_status=old_status, new_status=service.status, actor=actor,
        )
        return service

    async def create_service(
        self,
        actor: Actor,
        client_id: str,
        appliance_id: str,
        description: str = "",
        warranty_status: str = "out_of_warranty",
        technician_id: str | None = None,
        scheduled_date: datetime | None = None,
    ) -> Service:
        """Client intake: open a pending ticket and announce it."""
        role = Role(actor.role)
        if role == Role.TECHNICIAN:
            raise RoleError("Technicians cannot open service tickets")

        client = await crud.get_client(self.db, client_id)
        if not client:
            raise NotFoundError(f"Client {client_id} not found", client_id=client_id)
        appliance = await crud.get_appliance(self.db, appliance_id)
        if not appliance or appliance.client_id != client_id:
            raise NotFoundError(f"Appliance {appliance_id} not found for this client", appliance_id=appliance_id)
        if technician_id:
            if role != Role.ADMIN:
                raise RoleError("Only admins can pick a technician")
            tech = await crud.get_technician(self.db, technician_id)
            if not tech or not tech.is_active:
                raise ValidationError(f"Technician {technician_id} not found or inactive", field="technician_id")

        service = await crud.create_service(
            self.db,
            client_id=client_id,
            appliance_id=appliance_id,
            description=description,
            warranty_status=warranty_status,
            technician_id=technician_id,
            business_partner_id=actor.user_id if role == Role.BUSINESS_PARTNER else None,
            scheduled_date=scheduled_date,
            actor_user_id=actor.user_id,
            actor_role=role.value,
        )
        logger.info("Service %s created for client %s by %s", service.id, client_id, role.value)

        await self._notify(
            service, TransitionKind.CREATED,
            old_status="", new_status=service.status, actor=actor,
        )
        return service
