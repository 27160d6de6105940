"""Warehouse management, order routing and capacity checks."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.exceptions import ConflictException, NotFoundException
from logitrack.models.enums import OrderStatus
from logitrack.models.order import Order
from logitrack.models.warehouse import Warehouse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Order count buckets
# ---------------------------------------------------------------------------

INCOMING_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PAID, OrderStatus.PICKUP_ASSIGNED, OrderStatus.PICKED_UP}
)
IN_WAREHOUSE_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.IN_WAREHOUSE})
OUTGOING_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.DELIVERY_ASSIGNED, OrderStatus.IN_TRANSIT}
)


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def join_areas(areas: list[str] | None) -> str | None:
    """Serialize a list of district names for ``areas_served``."""
    if areas is None:
        return None
    cleaned = [a.strip() for a in areas if a and a.strip()]
    return ",".join(cleaned)


def empty_counts() -> dict[str, int]:
    return {"incoming": 0, "in_warehouse": 0, "outgoing": 0, "total": 0}


class WarehouseService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_warehouse(
        self,
        name: str,
        address: str,
        city: str,
        region: str,
        postal_code: str,
        areas_served: list[str] | None = None,
        capacity: int = 100,
    ) -> Warehouse:
        warehouse = Warehouse(
            name=name,
            address=address,
            city=city,
            region=region,
            postal_code=postal_code,
            areas_served=join_areas(areas_served),
            capacity=capacity,
        )
        self.db.add(warehouse)
        await self.db.flush()

        logger.info("Warehouse %s (%s) created", warehouse.id, name)
        return warehouse

    async def list_warehouses(self) -> list[Warehouse]:
        result = await self.db.execute(select(Warehouse).order_by(Warehouse.name))
        return list(result.scalars().all())

    async def get_warehouse(self, warehouse_id: uuid.UUID) -> Warehouse:
        result = await self.db.execute(
            select(Warehouse).where(Warehouse.id == warehouse_id)
        )
        warehouse = result.scalar_one_or_none()
        if warehouse is None:
            raise NotFoundException(f"Warehouse {warehouse_id} not found")
        return warehouse

    async def get_warehouse_for_update(self, warehouse_id: uuid.UUID) -> Warehouse:
        """Lock the warehouse row so concurrent drop-offs serialize on capacity."""
        result = await self.db.execute(
            select(Warehouse)
            .where(Warehouse.id == warehouse_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        warehouse = result.scalar_one_or_none()
        if warehouse is None:
            raise NotFoundException(f"Warehouse {warehouse_id} not found")
        return warehouse

    async def update_warehouse(self, warehouse_id: uuid.UUID, **fields) -> Warehouse:
        warehouse = await self.get_warehouse(warehouse_id)
        if "areas_served" in fields:
            fields["areas_served"] = join_areas(fields["areas_served"])
        for key, value in fields.items():
            if value is None and key != "areas_served":
                continue
            setattr(warehouse, key, value)
        await self.db.flush()
        return warehouse

    # ------------------------------------------------------------------
    # Order counts
    # ------------------------------------------------------------------

    async def order_counts(
        self, warehouse_ids: list[uuid.UUID] | None = None
    ) -> dict[uuid.UUID, dict[str, int]]:
        """Order counts per warehouse, bucketed by where the package is."""
        query = (
            select(Order.warehouse_id, Order.status, func.count())
            .where(Order.warehouse_id.is_not(None))
            .group_by(Order.warehouse_id, Order.status)
        )
        if warehouse_ids is not None:
            query = query.where(Order.warehouse_id.in_(warehouse_ids))
        result = await self.db.execute(query)

        counts: dict[uuid.UUID, dict[str, int]] = {}
        for warehouse_id, status, count in result.all():
            bucket = counts.setdefault(warehouse_id, empty_counts())
            status = OrderStatus(status)
            if status in INCOMING_STATUSES:
                bucket["incoming"] += count
            elif status in IN_WAREHOUSE_STATUSES:
                bucket["in_warehouse"] += count
            elif status in OUTGOING_STATUSES:
                bucket["outgoing"] += count
            bucket["total"] += count
        return counts

    async def count_in_warehouse(
        self, warehouse_id: uuid.UUID, exclude_order_id: uuid.UUID | None = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(Order)
            .where(
                Order.warehouse_id == warehouse_id,
                Order.status == OrderStatus.IN_WAREHOUSE,
            )
        )
        if exclude_order_id is not None:
            query = query.where(Order.id != exclude_order_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def ensure_capacity(
        self, warehouse: Warehouse, order_id: uuid.UUID | None = None
    ) -> None:
        """Raise ConflictException when the warehouse cannot take another package."""
        stored = await self.count_in_warehouse(warehouse.id, exclude_order_id=order_id)
        if stored >= warehouse.capacity:
            raise ConflictException(
                f"Warehouse {warehouse.name} is at capacity ({warehouse.capacity})"
            )

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def find_for_area(self, area: str | None) -> Warehouse | None:
        """Warehouse serving *area*: served districts first, then the city.

        Ties are broken by warehouse name.
        """
        target = _normalize(area)
        if not target:
            return None

        warehouses = await self.list_warehouses()
        for warehouse in warehouses:
            if target in {_normalize(a) for a in warehouse.areas}:
                return warehouse
        for warehouse in warehouses:
            if _normalize(warehouse.city) == target:
                return warehouse
        return None

    async def route_order(self, order: Order) -> Warehouse | None:
        warehouse = await self.find_for_area(order.delivery_city)
        if warehouse is None:
            logger.info(
                "No warehouse serves delivery city %r of order %s",
                order.delivery_city, order.id,
            )
        return warehouse
