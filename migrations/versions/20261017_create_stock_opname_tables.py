"""Create master product, count location and stock count tables.

Revision ID: 20261017_create_stock_opname_tables
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_create_stock_opname_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "master_product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("barcode", sa.String(length=128), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("uom", sa.String(length=32), nullable=False),
        sa.Column("selling_price", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("barcode"),
        sa.CheckConstraint("selling_price >= 0", name="ck_master_product_price_non_negative"),
    )

    op.create_table(
        "count_location",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("pic_name", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "stock_count",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("barcode", sa.String(length=128), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("uom", sa.String(length=32), nullable=False),
        sa.Column("selling_price", sa.BigInteger(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("counted_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["location_id"],
            ["count_location.id"],
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("location_id", "barcode", name="uq_stock_count_location_barcode"),
        sa.CheckConstraint("count >= 0", name="ck_stock_count_non_negative"),
    )
    op.create_index("ix_stock_count_location_id", "stock_count", ["location_id"])


def downgrade() -> None:
    op.drop_index("ix_stock_count_location_id", table_name="stock_count")
    op.drop_table("stock_count")
    op.drop_table("count_location")
    op.drop_table("master_product")
