"""Orders API router — listing, purchase and the delivery lifecycle."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.models.enums import OrderStatus, UserType
from logitrack.modules.auth.auth import (
    AuthenticatedUser,
    get_current_user,
    require_user_type,
)
from logitrack.modules.orders.schemas import (
    OrderCancelRequest,
    OrderCreate,
    OrderDetailsUpdate,
    OrderPurchase,
    OrderResponse,
    OrderStatusUpdate,
    WarehouseAssignment,
)
from logitrack.modules.orders.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


async def _respond(svc: OrderService, order_id: uuid.UUID) -> OrderResponse:
    return OrderResponse.model_validate(await svc.get_order(order_id))


# ---------------------------------------------------------------------------
# Listing and queries
# ---------------------------------------------------------------------------


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    body: OrderCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open the listing order for one of the caller's products."""
    svc = OrderService(db)
    order = await svc.create_order(body.product_id, user)
    return await _respond(svc, order.id)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: OrderStatus | None = Query(None),
    _admin: AuthenticatedUser = Depends(require_user_type(UserType.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    return [OrderResponse.model_validate(o) for o in await svc.list_orders(status)]


@router.get("/mine", response_model=list[OrderResponse])
async def list_my_orders(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Orders where the caller is the seller or the buyer."""
    svc = OrderService(db)
    return [OrderResponse.model_validate(o) for o in await svc.list_user_orders(user.id)]


@router.get("/available", response_model=list[OrderResponse])
async def list_available_orders(
    _user: AuthenticatedUser = Depends(
        require_user_type(UserType.DRIVER, UserType.ADMIN)
    ),
    db: AsyncSession = Depends(get_db),
):
    """Pickup and delivery legs that still need a driver."""
    svc = OrderService(db)
    return [OrderResponse.model_validate(o) for o in await svc.list_available_orders()]


@router.get("/driver", response_model=list[OrderResponse])
async def list_driver_orders(
    user: AuthenticatedUser = Depends(require_user_type(UserType.DRIVER)),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    return [OrderResponse.model_validate(o) for o in await svc.list_driver_orders(user.id)]


@router.get("/transaction/{transaction_id}", response_model=OrderResponse)
async def get_order_by_transaction_id(
    transaction_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    order = await svc.get_by_transaction_id(transaction_id)
    svc.ensure_visible(order, user)
    return OrderResponse.model_validate(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    order = await svc.get_order(order_id)
    svc.ensure_visible(order, user)
    return OrderResponse.model_validate(order)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/{order_id}/purchase", response_model=OrderResponse)
async def purchase_order(
    order_id: uuid.UUID,
    body: OrderPurchase,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    await svc.purchase(order_id, user, **body.model_dump())
    return await _respond(svc, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    user: AuthenticatedUser = Depends(
        require_user_type(UserType.DRIVER, UserType.ADMIN)
    ),
    db: AsyncSession = Depends(get_db),
):
    """Advance a driver leg: assignment, pickup, warehouse drop-off, delivery."""
    svc = OrderService(db)
    await svc.update_status(
        order_id,
        user,
        status=body.status,
        description=body.description,
        location=body.location,
        driver_id=body.driver_id,
        warehouse_id=body.warehouse_id,
    )
    return await _respond(svc, order_id)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_details(
    order_id: uuid.UUID,
    body: OrderDetailsUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    await svc.update_details(order_id, user, **body.model_dump(exclude_unset=True))
    return await _respond(svc, order_id)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: uuid.UUID,
    body: OrderCancelRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    await svc.cancel(order_id, user, body.reason)
    return await _respond(svc, order_id)


@router.post("/{order_id}/warehouse", response_model=OrderResponse)
async def assign_order_warehouse(
    order_id: uuid.UUID,
    body: WarehouseAssignment,
    user: AuthenticatedUser = Depends(require_user_type(UserType.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    svc = OrderService(db)
    await svc.assign_warehouse(order_id, user, body.warehouse_id)
    return await _respond(svc, order_id)
