"""
MovieGo API: PostgreSQL Record Stores
=====================================

What:  SQLAlchemy (async, asyncpg) implementations of the store interfaces.
How:   Each public method builds one statement, runs it inside
       `session_scope()` (commit on success, rollback on error) and bounds
       the whole round trip with `bounded()` (TransientStoreError on timeout).

Optimistic concurrency:
    UPDATE movies SET ..., version = version + 1
    WHERE id = :id AND version = :version
    RETURNING version

    No returned row means another writer got there first (or the row was
    deleted), which is reported as EditConflictError. Two concurrent updates
    from the same version can therefore never both succeed.

Error mapping:
    IntegrityError on users_email_key  → DuplicateKeyError
    timeout / lost connection          → TransientStoreError (from bounded())
    any other SQLAlchemyError          → DatabaseError (opaque 500)
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import BigInteger, delete, func, insert, literal, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moviego.database import bounded, session_scope
from moviego.exceptions import (
    DatabaseError,
    DuplicateKeyError,
    EditConflictError,
    NotFoundError,
)
from moviego.models import MovieRow, PermissionRow, TokenRow, UserRow, users_permissions
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

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = async_sessionmaker[AsyncSession]


class _SqlStore:
    """Shared plumbing: one session per call, bounded by the store timeout."""

    def __init__(self, session_factory: SessionFactory, timeout: float):
        self._session_factory = session_factory
        self._timeout = timeout

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        async def _in_session() -> T:
            async with session_scope(self._session_factory) as session:
                return await work(session)

        try:
            return await bounded(_in_session(), self._timeout, operation)
        except SQLAlchemyError as exc:
            logger.error(
                "Store operation %s failed: %s",
                operation,
                type(exc).__name__,
                exc_info=True,
            )
            raise DatabaseError(
                context={"operation": operation, "error_type": type(exc).__name__}
            ) from exc


def _is_duplicate_email(exc: IntegrityError) -> bool:
    return "users_email_key" in str(exc.orig)


# ══════════════════════════════════════════════════════════════════════════
# Movies
# ══════════════════════════════════════════════════════════════════════════


class SqlMovieStore(_SqlStore, MovieStore):
    async def insert(self, movie: Movie) -> Movie:
        stmt = (
            insert(MovieRow)
            .values(
                title=movie.title,
                year=movie.year,
                runtime=movie.runtime,
                genres=list(movie.genres),
            )
            .returning(MovieRow.id, MovieRow.created_at, MovieRow.version)
        )

        async def work(session: AsyncSession) -> Movie:
            row = (await session.execute(stmt)).one()
            return movie.model_copy(
                update={"id": row.id, "created_at": row.created_at, "version": row.version}
            )

        return await self._run("movies.insert", work)

    async def get(self, movie_id: int) -> Movie:
        if movie_id < 1:
            raise NotFoundError("movie", str(movie_id))
        stmt = select(MovieRow).where(MovieRow.id == movie_id)

        async def work(session: AsyncSession) -> Optional[MovieRow]:
            return (await session.execute(stmt)).scalar_one_or_none()

        row = await self._run("movies.get", work)
        if row is None:
            raise NotFoundError("movie", str(movie_id))
        return Movie.model_validate(row)

    async def update(self, movie: Movie) -> Movie:
        stmt = (
            update(MovieRow)
            .where(MovieRow.id == movie.id, MovieRow.version == movie.version)
            .values(
                title=movie.title,
                year=movie.year,
                runtime=movie.runtime,
                genres=list(movie.genres),
                version=MovieRow.version + 1,
            )
            .returning(MovieRow.version)
            .execution_options(synchronize_session=False)
        )

        async def work(session: AsyncSession) -> Optional[int]:
            return (await session.execute(stmt)).scalar_one_or_none()

        new_version = await self._run("movies.update", work)
        if new_version is None:
            raise EditConflictError(context={"movie_id": movie.id, "version": movie.version})
        return movie.model_copy(update={"version": new_version})

    async def delete(self, movie_id: int) -> None:
        if movie_id < 1:
            raise NotFoundError("movie", str(movie_id))
        stmt = delete(MovieRow).where(MovieRow.id == movie_id)

        async def work(session: AsyncSession) -> int:
            return (await session.execute(stmt)).rowcount

        if await self._run("movies.delete", work) == 0:
            raise NotFoundError("movie", str(movie_id))

    async def list(
        self, title: str, genres: Sequence[str], filters: MovieFilters
    ) -> Tuple[List[Movie], int]:
        column = getattr(MovieRow, filters.sort_column())
        ordering = column.desc() if filters.sort_direction() == "DESC" else column.asc()

        conditions = []
        if title:
            conditions.append(
                func.to_tsvector("simple", MovieRow.title).op("@@")(
                    func.plainto_tsquery("simple", title)
                )
            )
        if genres:
            conditions.append(MovieRow.genres.contains(list(genres)))

        stmt = (
            select(func.count().over().label("total_records"), MovieRow)
            .where(*conditions)
            .order_by(ordering, MovieRow.id.asc())
            .limit(filters.limit())
            .offset(filters.offset())
        )

        async def work(session: AsyncSession) -> Tuple[List[Any], int]:
            rows = list((await session.execute(stmt)).all())
            if rows:
                return rows, rows[0].total_records
            if filters.page == 1:
                return rows, 0
            # Past the last page the window count has no row to ride on
            count = select(func.count()).select_from(MovieRow).where(*conditions)
            return rows, (await session.execute(count)).scalar_one()

        rows, total = await self._run("movies.list", work)
        return [Movie.model_validate(row.MovieRow) for row in rows], total


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class SqlUserStore(_SqlStore, UserStore):
    def __init__(self, session_factory: SessionFactory, timeout: float, clock: Optional[Clock] = None):
        super().__init__(session_factory, timeout)
        self._clock = clock or utc_now

    async def insert(self, user: User) -> User:
        stmt = (
            insert(UserRow)
            .values(
                name=user.name,
                email=user.email,
                password_hash=user.password_hash,
                activated=user.activated,
            )
            .returning(UserRow.id, UserRow.created_at, UserRow.version)
        )

        async def work(session: AsyncSession) -> User:
            try:
                row = (await session.execute(stmt)).one()
            except IntegrityError as exc:
                if _is_duplicate_email(exc):
                    raise DuplicateKeyError(context={"email": user.email}) from exc
                raise
            return user.model_copy(
                update={"id": row.id, "created_at": row.created_at, "version": row.version}
            )

        return await self._run("users.insert", work)

    async def get_by_email(self, email: str) -> User:
        stmt = select(UserRow).where(UserRow.email == email)

        async def work(session: AsyncSession) -> Optional[UserRow]:
            return (await session.execute(stmt)).scalar_one_or_none()

        row = await self._run("users.get_by_email", work)
        if row is None:
            raise NotFoundError("user")
        return User.model_validate(row)

    async def update(self, user: User) -> User:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user.id, UserRow.version == user.version)
            .values(
                name=user.name,
                email=user.email,
                password_hash=user.password_hash,
                activated=user.activated,
                version=UserRow.version + 1,
            )
            .returning(UserRow.version)
            .execution_options(synchronize_session=False)
        )

        async def work(session: AsyncSession) -> Optional[int]:
            try:
                return (await session.execute(stmt)).scalar_one_or_none()
            except IntegrityError as exc:
                if _is_duplicate_email(exc):
                    raise DuplicateKeyError(context={"email": user.email}) from exc
                raise

        new_version = await self._run("users.update", work)
        if new_version is None:
            raise EditConflictError(context={"user_id": user.id, "version": user.version})
        return user.model_copy(update={"version": new_version})

    async def get_for_token(self, scope: str, plaintext: str) -> User:
        now: datetime = self._clock()
        stmt = (
            select(UserRow)
            .join(TokenRow, TokenRow.user_id == UserRow.id)
            .where(
                TokenRow.hash == hash_token(plaintext),
                TokenRow.scope == scope,
                TokenRow.expiry > now,
            )
        )

        async def work(session: AsyncSession) -> Optional[UserRow]:
            return (await session.execute(stmt)).scalar_one_or_none()

        row = await self._run("users.get_for_token", work)
        if row is None:
            raise NotFoundError("user")
        return User.model_validate(row)


# ══════════════════════════════════════════════════════════════════════════
# Tokens
# ══════════════════════════════════════════════════════════════════════════


class SqlTokenStore(_SqlStore, TokenStore):
    def __init__(self, session_factory: SessionFactory, timeout: float, clock: Optional[Clock] = None):
        _SqlStore.__init__(self, session_factory, timeout)
        TokenStore.__init__(self, clock)

    async def insert(self, token: Token) -> None:
        stmt = insert(TokenRow).values(
            hash=token.hash,
            user_id=token.user_id,
            expiry=token.expiry,
            scope=token.scope,
        )

        async def work(session: AsyncSession) -> None:
            await session.execute(stmt)

        await self._run("tokens.insert", work)

    async def delete_all_for_user(self, scope: str, user_id: int) -> None:
        stmt = delete(TokenRow).where(TokenRow.scope == scope, TokenRow.user_id == user_id)

        async def work(session: AsyncSession) -> None:
            await session.execute(stmt)

        await self._run("tokens.delete_all_for_user", work)


# ══════════════════════════════════════════════════════════════════════════
# Permissions
# ══════════════════════════════════════════════════════════════════════════


class SqlPermissionStore(_SqlStore, PermissionStore):
    async def get_all_for_user(self, user_id: int) -> Permissions:
        stmt = (
            select(PermissionRow.code)
            .join(users_permissions, users_permissions.c.permission_id == PermissionRow.id)
            .where(users_permissions.c.user_id == user_id)
        )

        async def work(session: AsyncSession) -> List[str]:
            return list((await session.execute(stmt)).scalars().all())

        return Permissions(await self._run("permissions.get_all_for_user", work))

    async def add_for_user(self, user_id: int, *codes: str) -> None:
        if not codes:
            return
        # INSERT ... SELECT keeps unknown codes out without a second round trip
        source = select(literal(user_id, BigInteger), PermissionRow.id).where(
            PermissionRow.code.in_(codes)
        )
        stmt = (
            pg_insert(users_permissions)
            .from_select(["user_id", "permission_id"], source)
            .on_conflict_do_nothing()
        )

        async def work(session: AsyncSession) -> None:
            await session.execute(stmt)

        await self._run("permissions.add_for_user", work)


def create_sql_stores(
    session_factory: SessionFactory,
    timeout: float,
    clock: Optional[Clock] = None,
) -> Stores:
    return Stores(
        movies=SqlMovieStore(session_factory, timeout),
        users=SqlUserStore(session_factory, timeout, clock),
        tokens=SqlTokenStore(session_factory, timeout, clock),
        permissions=SqlPermissionStore(session_factory, timeout),
    )
