"""initial schema: menu, orders, order items, table bookings"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_BOOKING_CLAUSE = sa.text("payment_status NOT IN ('Cancelled', 'Refunded')")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "menu_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("customer_id", sa.String(255), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("payment_status", sa.String(50), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("coupon_code", sa.String(64), nullable=True),
        sa.Column("discount_applied", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("subtotal_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("net_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_id", sa.Integer, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("menu_item_id", sa.Integer, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_order_items_id", "order_items", ["id"])

    op.create_table(
        "table_bookings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("customer_id", sa.String(50), nullable=False, unique=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("table_type", sa.String(50), nullable=False),
        sa.Column("table_number", sa.Integer, nullable=False),
        sa.Column("seats", sa.Integer, nullable=False),
        sa.Column("booking_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", sa.String(50), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_table_bookings_id", "table_bookings", ["id"])
    op.create_index(
        "uq_active_table_slot",
        "table_bookings",
        ["table_type", "table_number"],
        unique=True,
        sqlite_where=ACTIVE_BOOKING_CLAUSE,
        postgresql_where=ACTIVE_BOOKING_CLAUSE,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_active_table_slot", table_name="table_bookings")
    op.drop_table("table_bookings")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("menu_items")
