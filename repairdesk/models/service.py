"""Service ticket model and its status audit trail."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Float, Boolean, Integer, ForeignKey, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models.base import Base, TimestampMixin, ULIDMixin


class Service(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "services"

    client_id: Mapped[str] = mapped_column(String(26), ForeignKey("clients.id"))
    appliance_id: Mapped[str] = mapped_column(String(26), ForeignKey("appliances.id"))
    technician_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("technicians.id"), nullable=True, default=None
    )
    business_partner_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("users.id"), nullable=True, default=None
    )
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(30), default="pending", index=True)
    warranty_status: Mapped[str] = mapped_column(String(20), default="out_of_warranty")  # in_warranty | out_of_warranty
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    technician_notes: Mapped[str] = mapped_column(Text, default="")
    cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    is_completely_fixed: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=None)
    customer_refusal_reason: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    client_unavailable_reason: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    needs_rescheduling: Mapped[bool] = mapped_column(Boolean, default=False)
    rescheduling_notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    client = relationship("Client")
    appliance = relationship("Appliance")
    technician = relationship("Technician")
    business_partner = relationship("User")
    status_changes = relationship(
        "ServiceStatusChange", back_populates="service",
        order_by="ServiceStatusChange.created_at",
    )
    spare_part_orders = relationship("SparePartOrder", back_populates="service")


class ServiceStatusChange(Base, ULIDMixin):
    __tablename__ = "service_status_changes"

    service_id: Mapped[str] = mapped_column(String(26), ForeignKey("services.id"), index=True)
    old_status: Mapped[str] = mapped_column(String(30))
    new_status: Mapped[str] = mapped_column(String(30))
    actor_user_id: Mapped[str] = mapped_column(String(26), default="")
    actor_role: Mapped[str] = mapped_column(String(20))
    reason: Mapped[str] = mapped_column(Text, default="")
    notes: Mapped[str] = mapped_column(Text, default="")

    service = relationship("Service", back_populates="status_changes")
