"""Initial migration: create event, event_bracket, league, match tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create event table
    op.create_table(
        "event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sport", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="upcoming"),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create event_bracket table (knockout trees and league/manual placeholders)
    op.create_table(
        "event_bracket",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("mode", sa.String(), nullable=False, server_default="BRACKET"),
        sa.Column("draw_type", sa.String(), nullable=False, server_default="bracket"),
        sa.Column("round_name", sa.String(), nullable=True),
        sa.Column("bracket_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["event.id"],
        ),
    )
    op.create_index("ix_event_bracket_event_id", "event_bracket", ["event_id"])
    op.create_index("ix_event_bracket_category_id", "event_bracket", ["category_id"])

    # Create league table (round-robin blueprints)
    op.create_table(
        "league",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("category_label", sa.String(), nullable=False),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("rules", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["event.id"],
        ),
        sa.UniqueConstraint("event_id", "category_label", name="uq_league_event_label"),
    )
    op.create_index("ix_league_event_id", "league", ["event_id"])

    # Create match table; the unique key makes generation idempotent
    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("bracket_id", sa.Integer(), nullable=False),
        sa.Column("round_name", sa.String(), nullable=False),
        sa.Column("match_index", sa.Integer(), nullable=False),
        sa.Column("player_a", sa.JSON(), nullable=False),
        sa.Column("player_b", sa.JSON(), nullable=False),
        sa.Column("score", sa.JSON(), nullable=True),
        sa.Column("winner", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="SCHEDULED"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["event.id"],
        ),
        sa.ForeignKeyConstraint(
            ["bracket_id"],
            ["event_bracket.id"],
        ),
        sa.UniqueConstraint("bracket_id", "round_name", "match_index", name="uq_match_bracket_round_index"),
    )
    op.create_index("ix_match_event_id", "match", ["event_id"])
    op.create_index("ix_match_category_id", "match", ["category_id"])


def downgrade() -> None:
    op.drop_index("ix_match_category_id", table_name="match")
    op.drop_index("ix_match_event_id", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_league_event_id", table_name="league")
    op.drop_table("league")
    op.drop_index("ix_event_bracket_category_id", table_name="event_bracket")
    op.drop_index("ix_event_bracket_event_id", table_name="event_bracket")
    op.drop_table("event_bracket")
    op.drop_table("event")
