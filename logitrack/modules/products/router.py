"""Products API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.models.enums import ProductCategory
from logitrack.modules.auth.auth import AuthenticatedUser, get_current_user
from logitrack.modules.products.schemas import (
    AvailableProductResponse,
    ProductCreate,
    ProductResponse,
)
from logitrack.modules.products.service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    body: ProductCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List a product for sale. The caller becomes the seller."""
    svc = ProductService(db)
    product = await svc.create_product(seller_id=user.id, **body.model_dump())
    return ProductResponse.model_validate(product)


@router.get("", response_model=list[ProductResponse])
async def list_products(
    category: ProductCategory | None = Query(None),
    seller_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    svc = ProductService(db)
    products = await svc.list_products(seller_id=seller_id, category=category)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/available", response_model=list[AvailableProductResponse])
async def list_available_products(db: AsyncSession = Depends(get_db)):
    """Products that can still be purchased, each with its listing order."""
    svc = ProductService(db)
    pairs = await svc.list_available_products()
    return [
        AvailableProductResponse(
            **ProductResponse.model_validate(product).model_dump(),
            order_id=order.id,
            transaction_id=order.transaction_id,
            order_status=order.status,
            seller_name=order.seller.full_name if order.seller else None,
        )
        for product, order in pairs
    ]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = ProductService(db)
    return ProductResponse.model_validate(await svc.get_product(product_id))
