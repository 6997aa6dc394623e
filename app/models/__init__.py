"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.
"""

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.profile import FarmProfile

__all__ = [
    "Base",
    "FarmProfile",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
