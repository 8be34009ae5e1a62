"""Appliance catalog: categories, manufacturers and client-owned appliances."""

from __future__ import annotations

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models.base import Base, ULIDMixin


class ApplianceCategory(Base, ULIDMixin):
    __tablename__ = "appliance_categories"

    name: Mapped[str] = mapped_column(String(100), unique=True)
    icon: Mapped[str] = mapped_column(String(50), default="")


class Manufacturer(Base, ULIDMixin):
    __tablename__ = "manufacturers"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)


class Appliance(Base, ULIDMixin):
    __tablename__ = "appliances"

    client_id: Mapped[str] = mapped_column(String(26), ForeignKey("clients.id"))
    category_id: Mapped[str] = mapped_column(String(26), ForeignKey("appliance_categories.id"))
    manufacturer_id: Mapped[str] = mapped_column(String(26), ForeignKey("manufacturers.id"))
    model: Mapped[str] = mapped_column(String(100), default="")
    serial_number: Mapped[str] = mapped_column(String(100), default="")
    purchase_date: Mapped[str] = mapped_column(String(20), default="")
    notes: Mapped[str] = mapped_column(String(500), default="")

    client = relationship("Client", back_populates="appliances")
    category = relationship("ApplianceCategory", lazy="joined")
    manufacturer = relationship("Manufacturer", lazy="joined")
