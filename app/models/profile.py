"""FarmProfile ORM model, one open-ended profile document per user.

The profile body lives in ``document`` (JSONB) so clients may store any set
of farm attributes, e.g.::

    {
        "farmName": "Green Acres",
        "location": "Nakuru",
        "farmSize": 12.5,
        "crops": ["maize", "beans"]
    }

Only ``user_id`` and the audit columns are owned by the record itself.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class FarmProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Per-user farm profile document."""

    __tablename__ = "farm_profiles"

    user_id: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False, index=True
    )
    document: Mapped[dict[str, Any]] = mapped_column(
        nullable=False, default=dict, server_default=text("'{}'::jsonb")
    )

    def __repr__(self) -> str:
        return f"<FarmProfile id={self.id} user={self.user_id!r}>"
