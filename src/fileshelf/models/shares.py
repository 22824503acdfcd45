"""ShareLink model — unguessable, optionally expiring tokens for a path.

Provides ``ShareLinkBase`` (non-table) and ``ShareLink`` (concrete table).
Subclass ``ShareLinkBase`` with ``table=True`` and a custom ``__tablename__``
to use a different table name per backend.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class ShareLinkBase(SQLModel):
    """Base fields for a share link. Subclass with ``table=True`` for a concrete table."""

    hash: str = Field(primary_key=True)
    path: str = Field(index=True)
    expires: bool = Field(default=False)
    expire_date: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    # Equals ``path`` for permanent links and NULL otherwise; the unique
    # constraint allows at most one permanent link per path.
    permanent_path: str | None = Field(default=None, unique=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True if the link expires and its expiry date has passed."""
        if not self.expires or self.expire_date is None:
            return False
        now = now or datetime.now(UTC)
        exp = self.expire_date
        # SQLite hands back naive datetimes
        if exp.tzinfo is None:
            exp = exp.replace(tzinfo=UTC)
        return exp < now

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "path": self.path,
            "expires": self.expires,
            "expireDate": self.expire_date.isoformat() if self.expire_date else None,
        }


class ShareLink(ShareLinkBase, table=True):
    """Default share link table — ``fileshelf_share_links``."""

    __tablename__ = "fileshelf_share_links"
