"""
MovieGo API: Movie Schemas
==========================

What:  The Movie domain record plus the request bodies for create and update.
How:   Request bodies use strict types and `extra="forbid"` so a wrong JSON
       type or an unknown key is a 400 (see main.py), while value rules
       (year range, genre count) are checked by `validation.validate_movie`
       and reported as 422 field errors.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class Movie(BaseModel):
    """
    A catalog entry as stored and as returned to clients.

    `created_at` is kept on the record but never serialized.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = 0
    created_at: Optional[datetime] = Field(default=None, exclude=True)
    title: str
    year: int
    runtime: int = Field(description="Runtime in minutes")
    genres: List[str]
    version: int = 1


class MovieCreate(BaseModel):
    """
    Body of POST /v1/movies.

    Every field is optional at the parsing stage so that a missing field is
    reported as a field error ("must be provided") rather than a parse error.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[StrictStr] = None
    year: Optional[StrictInt] = None
    runtime: Optional[StrictInt] = None
    genres: Optional[List[StrictStr]] = None


class MovieUpdate(MovieCreate):
    """
    Body of PATCH /v1/movies/{id}.

    Only the fields present in the body are copied onto the stored movie;
    the merged record is validated as a whole before the conditional update.
    """

    def apply_to(self, movie: Movie) -> Movie:
        changes = self.model_dump(exclude_unset=True, exclude_none=True)
        return movie.model_copy(update=changes)
