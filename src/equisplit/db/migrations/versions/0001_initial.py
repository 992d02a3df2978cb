"""initial ledger schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("position", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("avatar", sa.Text()),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("paid_by", sa.Text(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tag", sa.Text(), nullable=False, server_default="shared"),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("receipt_url", sa.Text()),
        sa.CheckConstraint("amount >= 0 AND amount < 'Infinity'", name="expenses_amount_check"),
        sa.CheckConstraint(
            "tag in ('food','travel','shared','personal','housing','entertainment')",
            name="expenses_tag_check",
        ),
    )

    op.create_table(
        "expense_splits",
        sa.Column("expense_id", sa.Text(), sa.ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Text(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.CheckConstraint("weight >= 0 AND weight < 'Infinity'", name="expense_splits_weight_check"),
        sa.CheckConstraint("amount >= 0 AND amount < 'Infinity'", name="expense_splits_amount_check"),
    )

    op.create_index("idx_expenses_date", "expenses", ["date"])
    op.create_index("idx_expense_splits_user", "expense_splits", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_expense_splits_user", table_name="expense_splits")
    op.drop_index("idx_expenses_date", table_name="expenses")

    op.drop_table("expense_splits")
    op.drop_table("expenses")
    op.drop_table("users")
