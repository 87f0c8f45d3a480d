"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "gift_exchanges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "assignments_generated",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_assignment_seed", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_gift_exchanges_created_by", "gift_exchanges", ["created_by"])

    op.create_table(
        "gift_exchange_participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("exchange_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("opted_in", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("assigned_to_user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["exchange_id"], ["gift_exchanges.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "exchange_id",
            "user_id",
            name="uq_gift_exchange_participants_exchange_user",
        ),
    )

    op.create_table(
        "gift_exchange_exclusions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("exchange_id", sa.Integer(), nullable=False),
        sa.Column("giver_user_id", sa.String(), nullable=False),
        sa.Column("recipient_user_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["exchange_id"], ["gift_exchanges.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "exchange_id",
            "giver_user_id",
            "recipient_user_id",
            name="uq_gift_exchange_exclusions_pair",
        ),
    )


def downgrade() -> None:
    op.drop_table("gift_exchange_exclusions")
    op.drop_table("gift_exchange_participants")
    op.drop_index("ix_gift_exchanges_created_by", table_name="gift_exchanges")
    op.drop_table("gift_exchanges")
