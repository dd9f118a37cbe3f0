"""
MovieGo API: Movie Service
==========================

What:  Orchestrates validation and persistence for the movie endpoints.
Who:   Called by routes/movies.py; calls the injected MovieStore.

Update Flow (PATCH /v1/movies/{id}):
    ┌──────────┐    ┌──────────────┐    ┌──────────┐    ┌──────────────────┐
    │  Fetch   │───▶│  Precondition│───▶│  Merge & │───▶│ Conditional write│
    │  current │    │  X-Expected- │    │  validate│    │ (id, version)    │
    └──────────┘    │  Version     │    └──────────┘    └──────────────────┘
                    └──────────────┘
    A stale header or a concurrent writer both end in EditConflictError (409).
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from moviego.exceptions import EditConflictError
from moviego.schemas.filters import MovieFilters, PaginationMetadata
from moviego.schemas.movie import Movie, MovieCreate, MovieUpdate
from moviego.store.base import MovieStore, utc_now
from moviego.validation import Validator, validate_filters, validate_movie

logger = logging.getLogger(__name__)


class MovieService:
    def __init__(self, movies: MovieStore, clock: Optional[Callable[[], datetime]] = None):
        self._movies = movies
        self._clock = clock or utc_now

    def _validate(self, movie_fields: dict) -> None:
        v = Validator()
        validate_movie(v, now=self._clock(), **movie_fields)
        v.raise_if_invalid()

    async def create(self, data: MovieCreate) -> Movie:
        fields = data.model_dump(include={"title", "year", "runtime", "genres"})
        self._validate(fields)
        movie = await self._movies.insert(Movie(**fields))
        logger.info("Created movie %d", movie.id)
        return movie

    async def get(self, movie_id: int) -> Movie:
        return await self._movies.get(movie_id)

    async def update(
        self,
        movie_id: int,
        data: MovieUpdate,
        expected_version: Optional[str] = None,
    ) -> Movie:
        """
        Apply a partial update.

        `expected_version` is the raw X-Expected-Version header; when present
        it must equal the decimal string of the stored version.
        """
        current = await self._movies.get(movie_id)
        if expected_version and expected_version.strip() != str(current.version):
            raise EditConflictError(
                context={"movie_id": movie_id, "expected": expected_version, "actual": current.version}
            )

        merged = data.apply_to(current)
        self._validate(
            {"title": merged.title, "year": merged.year, "runtime": merged.runtime, "genres": merged.genres}
        )
        updated = await self._movies.update(merged)
        logger.info("Updated movie %d to version %d", updated.id, updated.version)
        return updated

    async def delete(self, movie_id: int) -> None:
        await self._movies.delete(movie_id)
        logger.info("Deleted movie %d", movie_id)

    async def list(
        self, title: str, genres: Sequence[str], filters: MovieFilters
    ) -> Tuple[List[Movie], PaginationMetadata]:
        v = Validator()
        validate_filters(v, filters)
        v.raise_if_invalid()

        movies, total = await self._movies.list(title, genres, filters)
        return movies, PaginationMetadata.calculate(total, filters.page, filters.page_size)
