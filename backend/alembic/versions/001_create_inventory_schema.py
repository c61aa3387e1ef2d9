"""Create inventory schema

Revision ID: 001
Revises: None
Create Date: 2025-01-20 00:00:00.000000+00:00

What:  Creates profiles, inventory_items, categories, departments and
       activity_log, plus the handle_updated_at trigger.
How:   PostgreSQL features: gen_random_uuid() defaults, TIMESTAMPTZ, a
       foreign key into the identity provider's auth.users table.

Rollback: downgrade() drops everything this revision created (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    # ── profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'staff'")),
        sa.Column("language", sa.String(5), nullable=False, server_default=sa.text("'en'")),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.PrimaryKeyConstraint("user_id"),
        # Deleting the account deletes its profile
        sa.ForeignKeyConstraint(["user_id"], ["auth.users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('admin', 'staff')", name="profiles_role_check"),
        sa.CheckConstraint("language IN ('en', 'es')", name="profiles_language_check"),
    )

    # ── inventory_items ───────────────────────────────────────────────────
    op.create_table(
        "inventory_items",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("min_quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 0", name="inventory_items_quantity_check"),
        sa.CheckConstraint("min_quantity >= 0", name="inventory_items_min_quantity_check"),
    )
    op.create_index(
        "idx_inventory_items_created_at",
        "inventory_items",
        [sa.text("created_at DESC")],
    )
    op.create_index("idx_inventory_items_department", "inventory_items", ["department"])
    op.create_index("idx_inventory_items_category", "inventory_items", ["category"])

    # ── departments / categories ──────────────────────────────────────────
    op.create_table(
        "departments",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "categories",
        _id_column(),
        sa.Column("department", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_categories_department", "categories", ["department"])

    # ── activity_log ──────────────────────────────────────────────────────
    op.create_table(
        "activity_log",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("item_name", sa.Text(), nullable=False),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "action IN ('created', 'updated', 'deleted')", name="activity_log_action_check"
        ),
    )
    op.create_index(
        "idx_activity_log_created_at",
        "activity_log",
        [sa.text("created_at DESC")],
    )

    # ── updated_at trigger ────────────────────────────────────────────────
    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.handle_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    for table in ("profiles", "inventory_items"):
        op.execute(
            f"""
            CREATE TRIGGER set_{table}_updated_at
            BEFORE UPDATE ON public.{table}
            FOR EACH ROW EXECUTE FUNCTION public.handle_updated_at();
            """
        )


def downgrade() -> None:
    """Drop every table and the trigger function. All data is lost."""
    for table in ("profiles", "inventory_items"):
        op.execute(f"DROP TRIGGER IF EXISTS set_{table}_updated_at ON public.{table}")
    op.execute("DROP FUNCTION IF EXISTS public.handle_updated_at()")

    op.drop_index("idx_activity_log_created_at", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_index("idx_categories_department", table_name="categories")
    op.drop_table("categories")
    op.drop_table("departments")
    op.drop_index("idx_inventory_items_category", table_name="inventory_items")
    op.drop_index("idx_inventory_items_department", table_name="inventory_items")
    op.drop_index("idx_inventory_items_created_at", table_name="inventory_items")
    op.drop_table("inventory_items")
    op.drop_table("profiles")
