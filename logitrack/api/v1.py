"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from logitrack.modules.auth.router import router as auth_router
from logitrack.modules.orders.router import router as orders_router
from logitrack.modules.payments.router import router as payments_router
from logitrack.modules.products.router import router as products_router
from logitrack.modules.tracking.router import router as tracking_router
from logitrack.modules.users.router import router as users_router
from logitrack.modules.warehouses.router import router as warehouses_router
from logitrack.schemas.responses import ERROR_RESPONSES

v1_router = APIRouter(prefix="/api/v1", responses=ERROR_RESPONSES)
v1_router.include_router(auth_router)
v1_router.include_router(users_router)
v1_router.include_router(products_router)
v1_router.include_router(orders_router)
v1_router.include_router(tracking_router)
v1_router.include_router(warehouses_router)
v1_router.include_router(payments_router)
