"""
MovieGo API: Token SQLAlchemy Model
===================================

What:  ORM model for the `tokens` table.
How:   Only the SHA-256 hash of a token is stored; it doubles as the primary
       key, so resolving a bearer token is a single index lookup. Tokens are
       removed together with their user (ON DELETE CASCADE).
"""

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, LargeBinary, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from moviego.database import Base


class TokenRow(Base):
    __tablename__ = "tokens"

    hash: Mapped[bytes] = mapped_column(LargeBinary, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    expiry: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # "activation" | "authentication"
    scope: Mapped[str] = mapped_column(Text, nullable=False)
