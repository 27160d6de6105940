"""Warehouses API router."""

from __future__ import annotations

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.models.enums import UserType
from logitrack.models.warehouse import Warehouse
from logitrack.modules.auth.auth import AuthenticatedUser, require_user_type
from logitrack.modules.warehouses.schemas import (
    WarehouseCreate,
    WarehouseOrderCounts,
    WarehouseResponse,
    WarehouseUpdate,
    WarehouseWithCounts,
)
from logitrack.modules.warehouses.service import WarehouseService, empty_counts

router = APIRouter(prefix="/warehouses", tags=["warehouses"])

_staff = require_user_type(UserType.ADMIN, UserType.DRIVER)
_admin = require_user_type(UserType.ADMIN)


def _with_counts(warehouse: Warehouse, counts: dict[str, int]) -> WarehouseWithCounts:
    return WarehouseWithCounts(
        **WarehouseResponse.model_validate(warehouse).model_dump(),
        order_counts=WarehouseOrderCounts(**counts),
        available_capacity=max(warehouse.capacity - counts["in_warehouse"], 0),
    )


@router.post("", response_model=WarehouseResponse, status_code=201)
async def create_warehouse(
    body: WarehouseCreate,
    _user: AuthenticatedUser = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = WarehouseService(db)
    warehouse = await svc.create_warehouse(**body.model_dump())
    return WarehouseResponse.model_validate(warehouse)


@router.get("", response_model=list[WarehouseWithCounts] | list[WarehouseResponse])
async def list_warehouses(
    include: Literal["orders"] | None = Query(None),
    _user: AuthenticatedUser = Depends(_staff),
    db: AsyncSession = Depends(get_db),
):
    """List warehouses; ``include=orders`` adds per-warehouse order counts."""
    svc = WarehouseService(db)
    warehouses = await svc.list_warehouses()
    if include != "orders":
        return [WarehouseResponse.model_validate(w) for w in warehouses]

    counts = await svc.order_counts([w.id for w in warehouses])
    return [_with_counts(w, counts.get(w.id, empty_counts())) for w in warehouses]


@router.get("/{warehouse_id}", response_model=WarehouseWithCounts | WarehouseResponse)
async def get_warehouse(
    warehouse_id: uuid.UUID,
    include: Literal["orders"] | None = Query(None),
    _user: AuthenticatedUser = Depends(_staff),
    db: AsyncSession = Depends(get_db),
):
    svc = WarehouseService(db)
    warehouse = await svc.get_warehouse(warehouse_id)
    if include != "orders":
        return WarehouseResponse.model_validate(warehouse)

    counts = await svc.order_counts([warehouse.id])
    return _with_counts(warehouse, counts.get(warehouse.id, empty_counts()))


@router.patch("/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    warehouse_id: uuid.UUID,
    body: WarehouseUpdate,
    _user: AuthenticatedUser = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = WarehouseService(db)
    warehouse = await svc.update_warehouse(
        warehouse_id, **body.model_dump(exclude_unset=True)
    )
    return WarehouseResponse.model_validate(warehouse)
