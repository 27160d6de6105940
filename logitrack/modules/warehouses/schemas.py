"""Pydantic v2 schemas for warehouse endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _split_areas(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [area.strip() for area in value.split(",") if area.strip()]
    return value


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    region: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=10)
    areas_served: list[str] = Field(default_factory=list)
    capacity: int = Field(100, ge=1)

    @field_validator("areas_served", mode="before")
    @classmethod
    def split_areas(cls, v):
        # Accept the comma-separated storage form too
        return _split_areas(v)


class WarehouseUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    address: str | None = Field(None, min_length=1)
    city: str | None = Field(None, min_length=1, max_length=100)
    region: str | None = Field(None, min_length=1, max_length=100)
    postal_code: str | None = Field(None, min_length=1, max_length=10)
    areas_served: list[str] | None = None
    capacity: int | None = Field(None, ge=1)

    @field_validator("areas_served", mode="before")
    @classmethod
    def split_areas(cls, v):
        return None if v is None else _split_areas(v)


class WarehouseOrderCounts(BaseModel):
    incoming: int = 0
    in_warehouse: int = 0
    outgoing: int = 0
    total: int = 0


class WarehouseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str
    city: str
    region: str
    postal_code: str
    areas_served: list[str] = []
    capacity: int
    created_at: datetime

    @field_validator("areas_served", mode="before")
    @classmethod
    def split_areas(cls, v):
        return _split_areas(v)


class WarehouseWithCounts(WarehouseResponse):
    order_counts: WarehouseOrderCounts
    available_capacity: int


class WarehouseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    city: str
