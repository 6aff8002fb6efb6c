"""Presences, their generated slots, and reservations on slots.

- slots: unique per (presence_id, start_at); start_at is UTC.
- reservations: token unique (self-service credential), quantity >= 1.
- presences -> slots -> reservations cascade on delete.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "presences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_presences_date", "presences", ["date"], unique=False)

    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("presence_id", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["presence_id"], ["presences.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("presence_id", "start_at", name="uq_slots_presence_start"),
    )
    op.create_index("ix_slots_presence_id", "slots", ["presence_id"], unique=False)
    op.create_index("ix_slots_start_at", "slots", ["start_at"], unique=False)

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slot_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("last_name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity >= 1", name="ck_reservations_quantity_positive"),
        sa.ForeignKeyConstraint(["slot_id"], ["slots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reservations_slot_id", "reservations", ["slot_id"], unique=False)
    op.create_index("ix_reservations_token", "reservations", ["token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_reservations_token", table_name="reservations")
    op.drop_index("ix_reservations_slot_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ix_slots_start_at", table_name="slots")
    op.drop_index("ix_slots_presence_id", table_name="slots")
    op.drop_table("slots")
    op.drop_index("ix_presences_date", table_name="presences")
    op.drop_table("presences")
