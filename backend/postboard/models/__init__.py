"""SQLAlchemy models registered on the shared metadata.

Importing this package makes every table visible to Flask-Migrate.
"""

from __future__ import annotations

from .refresh_token import RefreshToken
from .user import Account, User

__all__ = ["User", "Account", "RefreshToken"]
