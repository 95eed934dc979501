"""ComUniMo v1 — societies, athletes, championships, races and registrations

Revision ID: 001
Revises:
Create Date: 2026-10-16 00:00:00.000000

Changes:
  - users + user_societies: bot operators and the societies they manage
  - societies, members
  - championships, events (races; championship_id NULL = standalone race)
  - championship_registrations: bib / athlete unique per championship (all statuses)
  - event_registrations: bib / athlete unique per race (all statuses)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Operators ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    # ── Societies & athletes ──────────────────────────────────────────────────
    op.create_table(
        "societies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("society_code", sa.String(20), nullable=True, unique=True),
        sa.Column("organization", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "user_societies",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("society_id", sa.Integer(), sa.ForeignKey("societies.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("society_id", sa.Integer(), sa.ForeignKey("societies.id"), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(5), nullable=True),
        sa.Column("membership_number", sa.String(50), nullable=True),
        sa.Column("organization", sa.String(20), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_members_society_id", "members", ["society_id"])
    op.create_index("ix_members_membership_number", "members", ["membership_number"])

    # ── Championships & races ─────────────────────────────────────────────────
    op.create_table(
        "championships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("season", sa.String(50), nullable=True),
        sa.Column("championship_type", sa.String(30), nullable=False, server_default="cross_country"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("championship_id", sa.Integer(), sa.ForeignKey("championships.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_number", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("poster_url", sa.String(500), nullable=True),
        sa.Column("results_url", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_events_championship_id", "events", ["championship_id"])

    # ── Registrations ─────────────────────────────────────────────────────────
    op.create_table(
        "championship_registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("championship_id", sa.Integer(), sa.ForeignKey("championships.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("society_id", sa.Integer(), sa.ForeignKey("societies.id"), nullable=True),
        sa.Column("bib_number", sa.Integer(), nullable=False),
        sa.Column("organization", sa.String(20), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("created_by", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("championship_id", "bib_number", name="uq_championship_registrations_bib_number"),
        sa.UniqueConstraint("championship_id", "member_id", name="uq_championship_registrations_member"),
    )
    op.create_index(
        "ix_championship_registrations_championship_id",
        "championship_registrations",
        ["championship_id"],
    )
    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("society_id", sa.Integer(), sa.ForeignKey("societies.id"), nullable=True),
        sa.Column("bib_number", sa.Integer(), nullable=True),
        sa.Column("organization", sa.String(20), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "bib_number", name="uq_event_registrations_bib_number"),
        sa.UniqueConstraint("event_id", "member_id", name="uq_event_registrations_member"),
    )
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_event_registrations_event_id", table_name="event_registrations")
    op.drop_table("event_registrations")
    op.drop_index("ix_championship_registrations_championship_id", table_name="championship_registrations")
    op.drop_table("championship_registrations")
    op.drop_index("ix_events_championship_id", table_name="events")
    op.drop_table("events")
    op.drop_table("championships")
    op.drop_index("ix_members_membership_number", table_name="members")
    op.drop_index("ix_members_society_id", table_name="members")
    op.drop_table("members")
    op.drop_table("user_societies")
    op.drop_table("societies")
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
