"""
MovieGo API: Movie SQLAlchemy Model
===================================

What:  ORM model representing the `movies` table in PostgreSQL.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   Used by SqlMovieStore for CRUD and list queries.

Table Design Rationale:
    - BIGSERIAL primary key: ids appear in URLs (/v1/movies/42)
    - genres: text[] so containment (`genres @> :genres`) uses a GIN index
    - version: optimistic-concurrency counter, starts at 1 and is bumped by
      every successful UPDATE ... WHERE id = :id AND version = :version
    - created_at: UTC with timezone, never exposed in API responses

    GIN indexes on to_tsvector('simple', title) and genres back the two
    list filters; both are created by migration 001.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Integer, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from moviego.database import Base


class MovieRow(Base):
    """A catalog entry. Invariants are enforced by Validator and by check constraints."""

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("now()"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Minutes
    runtime: Mapped[int] = mapped_column(Integer, nullable=False)

    genres: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default=text("1"),
    )

    __table_args__ = (
        CheckConstraint("runtime >= 0", name="movies_runtime_check"),
        CheckConstraint(
            "year BETWEEN 1888 AND date_part('year', now())",
            name="movies_year_check",
        ),
        CheckConstraint(
            "array_length(genres, 1) BETWEEN 1 AND 5",
            name="genres_length_check",
        ),
    )

    def __repr__(self) -> str:
        return f"<MovieRow(id={self.id}, title='{self.title}', version={self.version})>"
