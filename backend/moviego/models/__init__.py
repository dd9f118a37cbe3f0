"""
MovieGo API: ORM Models
=======================

Importing this package registers every table with `Base.metadata`, which is
what Alembic's env.py and the SQL stores rely on.
"""

from moviego.models.movie import MovieRow
from moviego.models.permission import PermissionRow, users_permissions
from moviego.models.token import TokenRow
from moviego.models.user import UserRow

__all__ = ["MovieRow", "PermissionRow", "TokenRow", "UserRow", "users_permissions"]
