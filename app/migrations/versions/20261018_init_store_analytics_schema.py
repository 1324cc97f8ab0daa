"""init store analytics schema

Revision ID: 20261018_init
Revises:
Create Date: 2026-10-18 10:12:41.318842

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

ACTION_TYPES = (
    "home_page_visit",
    "store_details_open",
    "product_view",
    "product_favorite",
    "product_unfavorite",
    "whatsapp_click",
    "phone_click",
    "map_open",
    "search",
    "branch_visit",
)

revision: str = "20261018_init"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(100), nullable=False, unique=True),
        sa.Column("country_code", sa.String(10), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="client"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "store",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="retail"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_store_owner_id", "store", ["owner_id"])

    op.create_table(
        "branches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("store_id", sa.String(36), sa.ForeignKey("store.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(255), nullable=False, server_default=""),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_branches_store_id", "branches", ["store_id"])

    op.create_table(
        "employees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("from_user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_employees_from_user_id", "employees", ["from_user_id"])
    op.create_index("ix_employees_to_user_id", "employees", ["to_user_id"])

    op.create_table(
        "employee_branches",
        sa.Column("employee_id", sa.String(36), sa.ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "product",
        sa.Column("product_code", sa.String(50), primary_key=True),
        sa.Column("product_name", sa.String(100), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "product_branches",
        sa.Column("product_code", sa.String(50), sa.ForeignKey("product.product_code", ondelete="CASCADE"), primary_key=True),
        sa.Column("branch_id", sa.String(36), sa.ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "user_actions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("anonymous_user_id", sa.String(255), nullable=True),
        sa.Column("action_type", sa.Enum(*ACTION_TYPES, name="action_type"), nullable=False),
        sa.Column("store_id", sa.String(36), sa.ForeignKey("store.id", ondelete="SET NULL"), nullable=True),
        sa.Column("product_id", sa.String(50), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("ip_address", sa.String(50), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "(user_id IS NULL) <> (anonymous_user_id IS NULL)",
            name="ck_user_actions_single_actor",
        ),
        mysql_engine="InnoDB",
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_user_actions_user_id", "user_actions", ["user_id"])
    op.create_index("ix_user_actions_anonymous_user_id", "user_actions", ["anonymous_user_id"])
    op.create_index("ix_user_actions_action_type", "user_actions", ["action_type"])
    op.create_index("ix_user_actions_store_id", "user_actions", ["store_id"])
    op.create_index("ix_user_actions_product_id", "user_actions", ["product_id"])
    op.create_index("ix_user_actions_created_at", "user_actions", ["created_at"])


def downgrade() -> None:
    op.drop_table("user_actions")
    op.drop_table("product_branches")
    op.drop_table("product")
    op.drop_table("employee_branches")
    op.drop_index("ix_employees_to_user_id", table_name="employees")
    op.drop_index("ix_employees_from_user_id", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_branches_store_id", table_name="branches")
    op.drop_table("branches")
    op.drop_index("ix_store_owner_id", table_name="store")
    op.drop_table("store")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
