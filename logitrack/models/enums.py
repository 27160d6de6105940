import enum

from sqlalchemy import Enum as SQLAlchemyEnum


class UserType(str, enum.Enum):
    USER = "user"
    DRIVER = "driver"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_FAILED = "payment_failed"
    PAID = "paid"
    PICKUP_ASSIGNED = "pickup_assigned"
    PICKED_UP = "picked_up"
    IN_WAREHOUSE = "in_warehouse"
    DELIVERY_ASSIGNED = "delivery_assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    EXPIRED = "expired"
    FAILED = "failed"
    REFUNDED = "refunded"


class ProductStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class ProductCategory(str, enum.Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    HOME = "Home"
    BOOKS = "Books"
    TOYS = "Toys"
    FOOD = "Food"
    BEAUTY = "Beauty"
    OTHER = "Other"


class ShippingCategory(str, enum.Enum):
    A = "A"  # 30 x 30 x 30 cm
    B = "B"  # 45 x 30 x 30 cm
    C = "C"  # 60 x 30 x 30 cm
    CUSTOM = "Custom"


class ShippingPaidBy(str, enum.Enum):
    BUYER = "buyer"
    SELLER = "seller"


class PaymentProvider(str, enum.Enum):
    MIDTRANS = "midtrans"
    XENDIT = "xendit"


class GatewayPaymentStatus(str, enum.Enum):
    """Gateway-neutral payment status reported by the payment providers."""

    PENDING = "PENDING"
    PAID = "PAID"
    SETTLED = "SETTLED"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


def value_enum(enum_cls: type[enum.Enum], name: str) -> SQLAlchemyEnum:
    """Column type that stores an enum's values (not its names) as VARCHAR."""
    return SQLAlchemyEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )
