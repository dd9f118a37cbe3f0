"""
MovieGo API: Permission SQLAlchemy Models
=========================================

What:  `permissions` holds the capability strings (e.g. "movies:read");
       `users_permissions` is the many-to-many join table.
How:   Permissions are seeded by migration 003 and only ever granted, never
       revoked, by the application.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, Table, Text
from sqlalchemy.orm import Mapped, mapped_column

from moviego.database import Base


class PermissionRow(Base):
    __tablename__ = "permissions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


users_permissions = Table(
    "users_permissions",
    Base.metadata,
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        BigInteger,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
