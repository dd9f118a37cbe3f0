"""Create movies table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  The catalog table, its value constraints and the two GIN indexes that
       back title search and genre filtering.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "movies",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("runtime", sa.Integer(), nullable=False),
        sa.Column("genres", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("runtime >= 0", name="movies_runtime_check"),
        sa.CheckConstraint("year BETWEEN 1888 AND date_part('year', now())", name="movies_year_check"),
        sa.CheckConstraint("array_length(genres, 1) BETWEEN 1 AND 5", name="genres_length_check"),
    )

    # Title search: to_tsvector('simple', title) @@ plainto_tsquery('simple', :title)
    op.execute("CREATE INDEX IF NOT EXISTS movies_title_idx ON movies USING GIN (to_tsvector('simple', title))")
    # Genre filter: genres @> :genres
    op.execute("CREATE INDEX IF NOT EXISTS movies_genres_idx ON movies USING GIN (genres)")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS movies_genres_idx")
    op.execute("DROP INDEX IF EXISTS movies_title_idx")
    op.drop_table("movies")
