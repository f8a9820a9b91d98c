"""Create calculations, batches and samples tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "calculations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        # Market parameters
        sa.Column("market_quotation", sa.Float(), nullable=False),
        sa.Column("quotation_date", sa.Date()),
        sa.Column("exchange_rate", sa.Float()),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_calculations_created_at", "calculations", ["created_at"])

    op.create_table(
        "batches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "calculation_id", sa.String(36),
            sa.ForeignKey("calculations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer()),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("batch_code", sa.String(20), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("bales_count", sa.Integer(), nullable=False),
        sa.Column("samples_count", sa.Integer(), nullable=False),
    )
    op.create_index("ix_batches_calculation_id", "batches", ["calculation_id"])

    op.create_table(
        "samples",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "batch_id", sa.String(36),
            sa.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer()),
        # Grading
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("color_grade", sa.String(10), nullable=False),
        sa.Column("leaf_grade", sa.Integer(), nullable=False),
        sa.Column("staple_length", sa.Integer(), nullable=False),
        # Derived at save time
        sa.Column("market_quotation", sa.Float(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("premium_discount", sa.Float(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
    )
    op.create_index("ix_samples_batch_id", "samples", ["batch_id"])


def downgrade() -> None:
    op.drop_index("ix_samples_batch_id", table_name="samples")
    op.drop_table("samples")
    op.drop_index("ix_batches_calculation_id", table_name="batches")
    op.drop_table("batches")
    op.drop_index("ix_calculations_created_at", table_name="calculations")
    op.drop_table("calculations")
