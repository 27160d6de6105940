from logitrack.models.order import Order
from logitrack.models.product import Product
from logitrack.models.tracking_event import TrackingEvent
from logitrack.models.user import User
from logitrack.models.warehouse import Warehouse

__all__ = [
    "Order",
    "Product",
    "TrackingEvent",
    "User",
    "Warehouse",
]
