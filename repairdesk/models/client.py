"""Client model: the appliance owner a service is performed for."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.models.base import Base, ULIDMixin


class Client(Base, ULIDMixin):
    __tablename__ = "clients"

    full_name: Mapped[str] = mapped_column(String(200))
    phone: Mapped[str] = mapped_column(String(50), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    address: Mapped[str] = mapped_column(String(300), default="")
    city: Mapped[str] = mapped_column(String(100), default="")

    appliances = relationship("Appliance", back_populates="client")
