"""Product listing service."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from logitrack.exceptions import NotFoundException, ValidationException
from logitrack.models.enums import (
    OrderStatus,
    ProductCategory,
    ProductStatus,
    ShippingCategory,
)
from logitrack.models.order import Order
from logitrack.models.product import Product
from logitrack.modules.products.constants import SHIPPING_PRICES

logger = logging.getLogger(__name__)

# Listing order states in which a product can still be bought
AVAILABLE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PAID)


def resolve_shipping_price(
    shipping_category: ShippingCategory, custom_price: Decimal | None = None
) -> Decimal:
    """Fixed categories use the price table; Custom needs an explicit price."""
    shipping_category = ShippingCategory(shipping_category)
    if shipping_category == ShippingCategory.CUSTOM:
        if custom_price is None or custom_price <= 0:
            raise ValidationException(
                "A positive shipping price is required for the Custom shipping category",
                details=[{"field": "shipping_price", "message": "must be greater than 0"}],
            )
        return Decimal(custom_price)
    return SHIPPING_PRICES[shipping_category]


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_product(
        self,
        seller_id: uuid.UUID,
        name: str,
        shipping_category: ShippingCategory,
        price: Decimal,
        weight: Decimal,
        pickup_address: str,
        city: str,
        postal_code: str,
        quantity: int = 1,
        shipping_price: Decimal | None = None,
        **fields,
    ) -> Product:
        product = Product(
            user_id=seller_id,
            name=name,
            shipping_category=shipping_category,
            shipping_price=resolve_shipping_price(shipping_category, shipping_price),
            price=price,
            weight=weight,
            quantity=quantity,
            pickup_address=pickup_address,
            city=city,
            postal_code=postal_code,
            **fields,
        )
        self.db.add(product)
        await self.db.flush()

        logger.info("Product %s listed by seller %s", product.id, seller_id)
        return product

    async def get_product(self, product_id: uuid.UUID) -> Product:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundException(f"Product {product_id} not found")
        return product

    async def list_products(
        self,
        seller_id: uuid.UUID | None = None,
        category: ProductCategory | None = None,
    ) -> list[Product]:
        query = select(Product)
        if seller_id is not None:
            query = query.where(Product.user_id == seller_id)
        if category is not None:
            query = query.where(Product.category == category)
        result = await self.db.execute(query.order_by(Product.created_at.desc()))
        return list(result.scalars().all())

    async def list_available_products(self) -> list[tuple[Product, Order]]:
        """Products whose listing order has no buyer yet, paired with that order."""
        result = await self.db.execute(
            select(Order)
            .options(joinedload(Order.product), joinedload(Order.seller))
            .where(
                Order.status.in_(list(AVAILABLE_ORDER_STATUSES)),
                Order.buyer_id.is_(None),
            )
            .order_by(Order.created_at.desc())
        )
        return [(order.product, order) for order in result.scalars().all()]

    async def mark_paid(self, product_id: uuid.UUID) -> None:
        product = await self.get_product(product_id)
        if product.product_status != ProductStatus.PAID:
            product.product_status = ProductStatus.PAID
            await self.db.flush()
