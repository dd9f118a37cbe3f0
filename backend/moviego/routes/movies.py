"""
MovieGo API: Movie Routes
=========================

What:  CRUD and listing for the movie catalog.
Who:   Reads require the `movies:read` permission, writes `movies:write`.

Response envelopes:
    {"movie": {...}}                          create / show / update
    {"movies": [...], "metadata": {...}}      list
    {"message": "movie successfully deleted"} delete
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from moviego.container import Container
from moviego.dependencies import get_container, read_id_param, require_permission
from moviego.schemas.common import MessageResponse
from moviego.schemas.filters import MovieFilters
from moviego.schemas.movie import MovieCreate, MovieUpdate
from moviego.validation import Validator, validate_filters

router = APIRouter(prefix="/v1/movies", tags=["Movies"])

can_read = [Depends(require_permission("movies:read"))]
can_write = [Depends(require_permission("movies:write"))]


def _read_int(v: Validator, raw: Optional[str], field: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        v.add_error(field, "must be an integer value")
        return default


def _read_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


@router.get("", dependencies=can_read, summary="List movies")
async def list_movies(
    title: str = Query(default=""),
    genres: Optional[str] = Query(default=None),
    page: Optional[str] = Query(default=None),
    page_size: Optional[str] = Query(default=None),
    sort: str = Query(default="id"),
    container: Container = Depends(get_container),
) -> dict:
    v = Validator()
    filters = MovieFilters(
        page=_read_int(v, page, "page", 1),
        page_size=_read_int(v, page_size, "page_size", 20),
        sort=sort or "id",
    )
    validate_filters(v, filters)
    v.raise_if_invalid()

    movies, metadata = await container.movies.list(title, _read_csv(genres), filters)
    return {"movies": [m.model_dump() for m in movies], "metadata": metadata.to_dict()}


@router.post("", status_code=201, dependencies=can_write, summary="Create a movie")
async def create_movie(
    data: MovieCreate,
    response: Response,
    container: Container = Depends(get_container),
) -> dict:
    movie = await container.movies.create(data)
    response.headers["Location"] = f"/v1/movies/{movie.id}"
    return {"movie": movie.model_dump()}


@router.get("/{id}", dependencies=can_read, summary="Show a movie")
async def show_movie(
    movie_id: int = Depends(read_id_param),
    container: Container = Depends(get_container),
) -> dict:
    movie = await container.movies.get(movie_id)
    return {"movie": movie.model_dump()}


@router.patch("/{id}", dependencies=can_write, summary="Partially update a movie")
async def update_movie(
    data: MovieUpdate,
    movie_id: int = Depends(read_id_param),
    x_expected_version: Optional[str] = Header(default=None),
    container: Container = Depends(get_container),
) -> dict:
    movie = await container.movies.update(movie_id, data, expected_version=x_expected_version)
    return {"movie": movie.model_dump()}


@router.delete("/{id}", dependencies=can_write, response_model=MessageResponse, summary="Delete a movie")
async def delete_movie(
    movie_id: int = Depends(read_id_param),
    container: Container = Depends(get_container),
) -> MessageResponse:
    await container.movies.delete(movie_id)
    return MessageResponse(message="movie successfully deleted")
