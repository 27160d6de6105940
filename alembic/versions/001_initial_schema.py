"""Initial schema - users, warehouses, products, orders, tracking_events

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # 1. users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(10), nullable=True),
        sa.Column("user_type", sa.String(32), server_default="user", nullable=False),
        sa.Column("service_area", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true"), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_user_type", "users", ["user_type"])
    op.execute("CREATE UNIQUE INDEX ix_users_username_lower ON users (lower(username))")

    # 2. warehouses
    op.create_table(
        "warehouses",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("region", sa.String(100), nullable=False),
        sa.Column("postal_code", sa.String(10), nullable=False),
        sa.Column("areas_served", sa.Text, nullable=True),
        sa.Column("capacity", sa.Integer, server_default="100", nullable=False),
        *_timestamps(),
    )

    # 3. products (FK -> users)
    op.create_table(
        "products",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(32), server_default="Other", nullable=False),
        sa.Column("shipping_category", sa.String(32), nullable=False),
        sa.Column("shipping_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("product_status", sa.String(32), server_default="unpaid", nullable=False),
        sa.Column("shipping_paid_by", sa.String(32), server_default="buyer", nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("weight", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("pickup_address", sa.Text, nullable=False),
        sa.Column("pickup_latitude", sa.String(32), nullable=True),
        sa.Column("pickup_longitude", sa.String(32), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("postal_code", sa.String(10), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_products_user_id", "products", ["user_id"])
    op.create_index("ix_products_category", "products", ["category"])

    # 4. orders (FK -> products, users, warehouses)
    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("transaction_id", sa.String(50), nullable=False, unique=True),
        sa.Column("product_id", sa.Uuid, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seller_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("buyer_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(32), server_default="pending", nullable=False),
        sa.Column("pickup_driver_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("delivery_driver_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("warehouse_id", sa.Uuid, sa.ForeignKey("warehouses.id", ondelete="SET NULL"), nullable=True),
        sa.Column("delivery_address", sa.Text, nullable=True),
        sa.Column("delivery_city", sa.String(100), nullable=True),
        sa.Column("delivery_postal_code", sa.String(10), nullable=True),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("payment_status", sa.String(32), server_default="unpaid", nullable=False),
        sa.Column("payment_link", sa.Text, nullable=True),
        sa.Column("payment_provider", sa.String(20), nullable=True),
        sa.Column("payment_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_reason", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_product_id", "orders", ["product_id"])
    op.create_index("ix_orders_seller_id", "orders", ["seller_id"])
    op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"])
    op.create_index("ix_orders_payment_id", "orders", ["payment_id"])
    op.create_index("ix_orders_warehouse_id_status", "orders", ["warehouse_id", "status"])

    # 5. tracking_events (FK -> orders, users)
    op.create_table(
        "tracking_events",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("order_id", sa.Uuid, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("recorded_by", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index(
        "ix_tracking_events_order_id_timestamp", "tracking_events", ["order_id", "timestamp"]
    )


def downgrade() -> None:
    op.drop_table("tracking_events")
    op.drop_table("orders")
    op.drop_table("products")
    op.drop_table("warehouses")
    op.drop_table("users")
