"""Warehouse model — regional sorting point between pickup and delivery."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from logitrack.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Warehouse(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "warehouses"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    region: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(10), nullable=False)
    # Comma-separated district names served by this warehouse
    areas_served: Mapped[str | None] = mapped_column(Text)
    capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=100, server_default="100"
    )

    @property
    def areas(self) -> list[str]:
        if not self.areas_served:
            return []
        return [area.strip() for area in self.areas_served.split(",") if area.strip()]
