"""ShareStore — share-link persistence.

Stateless service that receives the share model at construction
and a session at call time.  Methods flush but never commit; the
caller owns the transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import select

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from fileshelf.models.shares import ShareLinkBase


class ShareStore:
    """Key-addressed store of share links.

    Constructor receives the concrete share model so callers can use
    custom SQLModel subclasses with different table names.
    """

    def __init__(self, share_model: type[ShareLinkBase]) -> None:
        self._share_model = share_model

    @property
    def model(self) -> type[ShareLinkBase]:
        return self._share_model

    async def get_by_path(self, session: AsyncSession, path: str) -> list[ShareLinkBase]:
        """List all links (expired or not) for *path*, oldest first."""
        model = self._share_model
        result = await session.execute(
            select(model).where(model.path == path).order_by(model.created_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def get_permanent(self, session: AsyncSession, path: str) -> ShareLinkBase | None:
        """Return the canonical non-expiring link for *path*, if any."""
        model = self._share_model
        result = await session.execute(
            select(model).where(model.permanent_path == path)
        )
        return result.scalar_one_or_none()

    async def get_by_hash(self, session: AsyncSession, hash: str) -> ShareLinkBase | None:
        return await session.get(self._share_model, hash)

    async def save(self, session: AsyncSession, link: ShareLinkBase) -> ShareLinkBase:
        """Insert or update *link*. Flushes but does not commit."""
        if not link.expires:
            link.permanent_path = link.path
        session.add(link)
        await session.flush()
        return link

    async def delete(self, session: AsyncSession, hash: str) -> bool:
        """Delete the link with *hash*. Returns True if found; a missing hash is not an error."""
        link = await session.get(self._share_model, hash)
        if link is None:
            return False
        await session.delete(link)
        await session.flush()
        return True
