"""
MovieGo API: User SQLAlchemy Model
==================================

What:  ORM model for the `users` table.

Column notes:
    email           citext-like uniqueness is enforced by `users_email_key`;
                    addresses are lower-cased by the user service before insert
    password_hash   bcrypt output (60 bytes); the plaintext is never stored
    activated       false until the activation token is redeemed
    version         bumped by every successful conditional UPDATE
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Integer, LargeBinary, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from moviego.database import Base


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("now()"),
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    password_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    activated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1")
    )

    __table_args__ = (UniqueConstraint("email", name="users_email_key"),)

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, email='{self.email}', activated={self.activated})>"
