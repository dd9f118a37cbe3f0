"""
MovieGo API: In-Memory Record Stores
====================================

What:  Process-local implementations of the store interfaces.
Who:   Selected with STORE_BACKEND=memory; used by the test suite and for
       running the API without PostgreSQL.
How:   All four stores share one `MemoryBackend`. A single asyncio.Lock
       guards every read-modify-write, so the version check and the version
       bump of an update happen atomically, exactly like the conditional
       UPDATE of the SQL store.

Limitations:
    - Single process only; data is lost on restart.
    - Title search approximates PostgreSQL's `plainto_tsquery('simple', ...)`:
      every word of the query must appear as a word of the title,
      case-insensitively.
"""

import asyncio
import itertools
import re
from typing import Dict, List, Optional, Sequence, Set, Tuple

from moviego.exceptions import DuplicateKeyError, EditConflictError, NotFoundError
from moviego.schemas.filters import MovieFilters
from moviego.schemas.movie import Movie
from moviego.schemas.token import Token
from moviego.schemas.user import Permissions, User
from moviego.services.credentials import hash_token
from moviego.store.base import (
    Clock,
    MovieStore,
    PermissionStore,
    Stores,
    TokenStore,
    UserStore,
    utc_now,
)

DEFAULT_PERMISSION_CODES = ("movies:read", "movies:write")

_WORD_RX = re.compile(r"\w+")


def _words(text: str) -> List[str]:
    return _WORD_RX.findall(text.lower())


class MemoryBackend:
    """The shared tables and the lock that serializes access to them."""

    def __init__(self, clock: Optional[Clock] = None, permission_codes: Sequence[str] = DEFAULT_PERMISSION_CODES):
        self.clock: Clock = clock or utc_now
        self.lock = asyncio.Lock()
        self.movies: Dict[int, Movie] = {}
        self.users: Dict[int, User] = {}
        self.tokens: Dict[bytes, Token] = {}
        self.permission_codes: Set[str] = set(permission_codes)
        self.user_permissions: Dict[int, Set[str]] = {}
        self._movie_ids = itertools.count(1)
        self._user_ids = itertools.count(1)

    def next_movie_id(self) -> int:
        return next(self._movie_ids)

    def next_user_id(self) -> int:
        return next(self._user_ids)


class MemoryMovieStore(MovieStore):
    def __init__(self, backend: MemoryBackend):
        self._db = backend

    async def insert(self, movie: Movie) -> Movie:
        async with self._db.lock:
            stored = movie.model_copy(
                update={
                    "id": self._db.next_movie_id(),
                    "created_at": self._db.clock(),
                    "version": 1,
                    "genres": list(movie.genres),
                },
                deep=True,
            )
            self._db.movies[stored.id] = stored
            return stored.model_copy(deep=True)

    async def get(self, movie_id: int) -> Movie:
        async with self._db.lock:
            movie = self._db.movies.get(movie_id)
            if movie is None:
                raise NotFoundError("movie", str(movie_id))
            return movie.model_copy(deep=True)

    async def update(self, movie: Movie) -> Movie:
        async with self._db.lock:
            current = self._db.movies.get(movie.id)
            if current is None or current.version != movie.version:
                raise EditConflictError(context={"movie_id": movie.id, "version": movie.version})
            stored = movie.model_copy(
                update={
                    "created_at": current.created_at,
                    "version": current.version + 1,
                    "genres": list(movie.genres),
                },
                deep=True,
            )
            self._db.movies[movie.id] = stored
            return stored.model_copy(deep=True)

    async def delete(self, movie_id: int) -> None:
        async with self._db.lock:
            if self._db.movies.pop(movie_id, None) is None:
                raise NotFoundError("movie", str(movie_id))

    async def list(
        self, title: str, genres: Sequence[str], filters: MovieFilters
    ) -> Tuple[List[Movie], int]:
        column = filters.sort_column()
        descending = filters.sort_direction() == "DESC"
        query_words = _words(title) if title else []
        wanted_genres = set(genres)

        async with self._db.lock:
            snapshot = [m.model_copy(deep=True) for m in self._db.movies.values()]

        matches = []
        for movie in snapshot:
            if query_words and not set(query_words) <= set(_words(movie.title)):
                continue
            if wanted_genres and not wanted_genres <= set(movie.genres):
                continue
            matches.append(movie)

        # Stable sorts: id ascending survives as the tie-break
        matches.sort(key=lambda m: m.id)
        matches.sort(key=lambda m: getattr(m, column), reverse=descending)

        start = filters.offset()
        return matches[start : start + filters.limit()], len(matches)


class MemoryUserStore(UserStore):
    def __init__(self, backend: MemoryBackend):
        self._db = backend

    def _email_taken(self, email: str, exclude_id: int = 0) -> bool:
        return any(u.email == email and u.id != exclude_id for u in self._db.users.values())

    async def insert(self, user: User) -> User:
        async with self._db.lock:
            if self._email_taken(user.email):
                raise DuplicateKeyError(context={"email": user.email})
            stored = user.model_copy(
                update={
                    "id": self._db.next_user_id(),
                    "created_at": self._db.clock(),
                    "version": 1,
                },
                deep=True,
            )
            self._db.users[stored.id] = stored
            return stored.model_copy(deep=True)

    async def get_by_email(self, email: str) -> User:
        async with self._db.lock:
            for user in self._db.users.values():
                if user.email == email:
                    return user.model_copy(deep=True)
        raise NotFoundError("user")

    async def update(self, user: User) -> User:
        async with self._db.lock:
            current = self._db.users.get(user.id)
            if current is None or current.version != user.version:
                raise EditConflictError(context={"user_id": user.id, "version": user.version})
            if self._email_taken(user.email, exclude_id=user.id):
                raise DuplicateKeyError(context={"email": user.email})
            stored = user.model_copy(
                update={"created_at": current.created_at, "version": current.version + 1},
                deep=True,
            )
            self._db.users[user.id] = stored
            return stored.model_copy(deep=True)

    async def get_for_token(self, scope: str, plaintext: str) -> User:
        token_hash = hash_token(plaintext)
        async with self._db.lock:
            token = self._db.tokens.get(token_hash)
            if token is None or token.scope != scope or token.expiry <= self._db.clock():
                raise NotFoundError("user")
            user = self._db.users.get(token.user_id)
            if user is None:
                raise NotFoundError("user")
            return user.model_copy(deep=True)


class MemoryTokenStore(TokenStore):
    def __init__(self, backend: MemoryBackend):
        super().__init__(clock=backend.clock)
        self._db = backend

    async def insert(self, token: Token) -> None:
        async with self._db.lock:
            # Only the hash is kept, as in the tokens table
            self._db.tokens[token.hash] = token.model_copy(update={"plaintext": ""}, deep=True)

    async def delete_all_for_user(self, scope: str, user_id: int) -> None:
        async with self._db.lock:
            doomed = [
                h for h, t in self._db.tokens.items() if t.scope == scope and t.user_id == user_id
            ]
            for token_hash in doomed:
                del self._db.tokens[token_hash]


class MemoryPermissionStore(PermissionStore):
    def __init__(self, backend: MemoryBackend):
        self._db = backend

    async def get_all_for_user(self, user_id: int) -> Permissions:
        async with self._db.lock:
            return Permissions(self._db.user_permissions.get(user_id, ()))

    async def add_for_user(self, user_id: int, *codes: str) -> None:
        async with self._db.lock:
            known = {code for code in codes if code in self._db.permission_codes}
            self._db.user_permissions.setdefault(user_id, set()).update(known)


def create_memory_stores(clock: Optional[Clock] = None) -> Stores:
    backend = MemoryBackend(clock=clock)
    return Stores(
        movies=MemoryMovieStore(backend),
        users=MemoryUserStore(backend),
        tokens=MemoryTokenStore(backend),
        permissions=MemoryPermissionStore(backend),
    )
