"""create_subway_tables

Creates stations, lines and sections. A line's sections must form a single
path, so each station may start at most one section and end at most one
section on the same line.

Revision ID: 4b1e7c92a0d3
Revises:
Create Date: 2026-10-19 09:12:44.183025

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4b1e7c92a0d3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "stations",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stations_name"), "stations", ["name"], unique=False)

    op.create_table(
        "lines",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=50), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lines_name"), "lines", ["name"], unique=True)

    op.create_table(
        "sections",
        sa.Column("line_id", sa.Uuid(), nullable=False),
        sa.Column("up_station_id", sa.Uuid(), nullable=False),
        sa.Column("down_station_id", sa.Uuid(), nullable=False),
        sa.Column("distance", sa.Integer(), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("distance > 0", name="ck_sections_distance_positive"),
        sa.CheckConstraint("up_station_id <> down_station_id", name="ck_sections_distinct_stations"),
        sa.ForeignKeyConstraint(["line_id"], ["lines.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["up_station_id"], ["stations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["down_station_id"], ["stations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("line_id", "up_station_id", name="uq_sections_line_up_station"),
        sa.UniqueConstraint("line_id", "down_station_id", name="uq_sections_line_down_station"),
    )
    op.create_index("ix_sections_line", "sections", ["line_id"], unique=False)
    op.create_index("ix_sections_up_station", "sections", ["up_station_id"], unique=False)
    op.create_index("ix_sections_down_station", "sections", ["down_station_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_sections_down_station", table_name="sections")
    op.drop_index("ix_sections_up_station", table_name="sections")
    op.drop_index("ix_sections_line", table_name="sections")
    op.drop_table("sections")

    op.drop_index(op.f("ix_lines_name"), table_name="lines")
    op.drop_table("lines")

    op.drop_index(op.f("ix_stations_name"), table_name="stations")
    op.drop_table("stations")
