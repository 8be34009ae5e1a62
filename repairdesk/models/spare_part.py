"""Spare part orders requested for a service."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Integer, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models.base import Base, TimestampMixin, ULIDMixin


class SparePartOrder(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "spare_part_orders"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_spare_part_quantity"),)

    service_id: Mapped[str] = mapped_column(String(26), ForeignKey("services.id"), index=True)
    technician_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("technicians.id"), nullable=True, default=None
    )
    part_name: Mapped[str] = mapped_column(String(200))
    catalog_number: Mapped[str] = mapped_column(String(100), default="")
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    urgency: Mapped[str] = mapped_column(String(10), default="normal")  # normal | high | urgent
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | ordered | received | delivered | cancelled
    supplier_name: Mapped[str] = mapped_column(String(200), default="")
    estimated_delivery: Mapped[str] = mapped_column(String(50), default="")
    notes: Mapped[str] = mapped_column(String(500), default="")
    ordered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    service = relationship("Service", back_populates="spare_part_orders")
    technician = relationship("Technician")
