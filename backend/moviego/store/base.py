"""
MovieGo API: Record Store Interfaces
====================================

What:  Abstract base classes for the four record stores (movies, users,
       tokens, permissions) and the `Stores` container handed to services.
Why:   Services depend only on these contracts, so the backend (PostgreSQL
       or in-memory) is chosen once at construction time.
How:   Concrete implementations live in `store.sql` and `store.memory`.

Contract shared by every implementation:
    - get/delete of a missing id raise NotFoundError
    - update is conditioned on (id, version); a mismatch raises
      EditConflictError and a success returns the record with version + 1
    - a call that times out or loses its connection raises
      TransientStoreError, never NotFoundError
    - uniqueness violations raise DuplicateKeyError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from moviego.schemas.filters import MovieFilters
from moviego.schemas.movie import Movie
from moviego.schemas.token import Token
from moviego.schemas.user import Permissions, User
from moviego.services.credentials import generate_token

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MovieStore(ABC):
    """Persistence for catalog entries."""

    @abstractmethod
    async def insert(self, movie: Movie) -> Movie:
        """Store a new movie; returns it with id, created_at and version=1 assigned."""
        ...

    @abstractmethod
    async def get(self, movie_id: int) -> Movie:
        ...

    @abstractmethod
    async def update(self, movie: Movie) -> Movie:
        """
        Write every field of `movie` if the stored version still equals
        `movie.version`.

        Returns:
            The movie carrying its new version.
        Raises:
            EditConflictError: the record changed (or vanished) since it was read.
        """
        ...

    @abstractmethod
    async def delete(self, movie_id: int) -> None:
        ...

    @abstractmethod
    async def list(
        self, title: str, genres: Sequence[str], filters: MovieFilters
    ) -> Tuple[List[Movie], int]:
        """
        One page of movies plus the total number of matches.

        An empty `title` or `genres` matches everything. Results are ordered
        by the filter's sort column with `id` ascending as the tie-break.
        """
        ...


class UserStore(ABC):
    """Persistence for accounts."""

    @abstractmethod
    async def insert(self, user: User) -> User:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User:
        ...

    @abstractmethod
    async def update(self, user: User) -> User:
        ...

    @abstractmethod
    async def get_for_token(self, scope: str, plaintext: str) -> User:
        """
        Resolve a token plaintext to its owner.

        Only non-expired tokens of exactly `scope` match; anything else is
        NotFoundError.
        """
        ...


class TokenStore(ABC):
    """Persistence for token hashes."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now

    async def new(self, user_id: int, ttl: timedelta, scope: str) -> Token:
        """
        Issue a token: generate, persist the hash, return the plaintext once.
        """
        plaintext, token_hash = generate_token()
        token = Token(
            plaintext=plaintext,
            hash=token_hash,
            user_id=user_id,
            expiry=self._clock() + ttl,
            scope=scope,
        )
        await self.insert(token)
        return token

    @abstractmethod
    async def insert(self, token: Token) -> None:
        ...

    @abstractmethod
    async def delete_all_for_user(self, scope: str, user_id: int) -> None:
        ...


class PermissionStore(ABC):
    """Read and grant capability strings."""

    @abstractmethod
    async def get_all_for_user(self, user_id: int) -> Permissions:
        ...

    @abstractmethod
    async def add_for_user(self, user_id: int, *codes: str) -> None:
        """Grant `codes`; granting an already-held permission is a no-op."""
        ...


@dataclass
class Stores:
    """The set of stores one application instance works against."""

    movies: MovieStore
    users: UserStore
    tokens: TokenStore
    permissions: PermissionStore
