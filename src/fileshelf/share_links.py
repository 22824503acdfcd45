"""ShareLinkManager — share-link lifecycle for authorized users.

Issues tokens, reuses the canonical permanent link of a path, and
sweeps expired links lazily whenever they are read.
"""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
import weakref
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .exceptions import InternalError, InvalidOptionError, NotFoundError
from .models.shares import ShareLink
from .paths import require, resolve_path, strip_prefix
from .sharing import ShareStore
from .types import CreateLinkResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .config import Settings
    from .models.shares import ShareLinkBase
    from .users import User

logger = logging.getLogger(__name__)

UNITS = {
    "seconds": timedelta(seconds=1),
    "minutes": timedelta(minutes=1),
    "days": timedelta(days=1),
}
DEFAULT_UNIT = timedelta(hours=1)


def expiry_delta(amount: int, unit: str | None) -> timedelta:
    """Convert *amount* of *unit* into a timedelta; unknown units mean hours."""
    return UNITS.get(unit or "", DEFAULT_UNIT) * amount


def new_token(nbytes: int) -> str:
    """Return a URL-safe token drawn from *nbytes* of secure randomness."""
    try:
        return secrets.token_urlsafe(nbytes)
    except OSError as e:
        raise InternalError() from e


class ShareLinkManager:
    """Request-level share-link operations.

    Methods acting for a user authorize it first and never touch the
    store when the check fails.  ``get_link`` is the public token lookup
    and takes no user.  Each call runs in its own session and commits
    before returning.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[..., AsyncSession],
        *,
        share_model: type[ShareLinkBase] = ShareLink,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory
        self._store = ShareStore(share_model)
        # Per-path creation locks, dropped once no request holds them
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def store(self) -> ShareStore:
        return self._store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Share store failure: %s", e)
                raise InternalError() from e

    def _lock_for(self, path: str) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        return lock

    def _share_path(self, user: User, raw_path: str) -> str:
        """Authorize *raw_path* for sharing and return its absolute scoped path."""
        path = resolve_path(raw_path, self._settings.share_prefix, user)
        require(user, "share")
        return os.path.normpath(os.path.join(user.scope, path.lstrip("/")))

    def url_for(self, link: ShareLinkBase) -> str:
        return f"{self._settings.base_url}/share/{link.hash}"

    async def _sweep(
        self, session: AsyncSession, links: list[ShareLinkBase]
    ) -> list[ShareLinkBase]:
        """Return the unexpired *links*, deleting the expired ones from the store."""
        now = datetime.now(UTC)
        active: list[ShareLinkBase] = []
        expired: list[ShareLinkBase] = []
        for link in links:
            (expired if link.is_expired(now) else active).append(link)

        for link in expired:
            logger.debug("Share link %s for %s expired", link.hash, link.path)
            await self._store.delete(session, link.hash)
        if expired:
            await session.commit()
        return active

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_links(self, user: User, raw_path: str) -> list[ShareLinkBase]:
        """List the live links for a path, removing expired ones."""
        path = self._share_path(user, raw_path)
        async with self._session() as session:
            links = await self._store.get_by_path(session, path)
            return await self._sweep(session, links)

    async def create_link(
        self,
        user: User,
        raw_path: str,
        expires: str | int | None = None,
        unit: str | None = None,
    ) -> CreateLinkResult:
        """Create a share link for a path.

        Without *expires* the path's permanent link is returned when one
        exists; creation is serialized per path so concurrent requests
        cannot produce two permanent links.

        Raises:
            InvalidOptionError: if *expires* is not a non-negative integer.
        """
        path = self._share_path(user, raw_path)

        if expires is None or expires == "":
            return await self._create_permanent(path)

        try:
            amount = int(expires)
        except (TypeError, ValueError):
            raise InvalidOptionError(f"Invalid expiry: {expires!r}") from None
        if amount < 0:
            raise InvalidOptionError(f"Invalid expiry: {expires!r}")

        link = self._store.model(
            hash=new_token(self._settings.token_bytes),
            path=path,
            expires=True,
            expire_date=datetime.now(UTC) + expiry_delta(amount, unit),
        )
        async with self._session() as session:
            await self._store.save(session, link)
            await session.commit()

        logger.info("Created share link %s for %s until %s", link.hash, path, link.expire_date)
        return CreateLinkResult(link=link, url=self.url_for(link))

    async def _create_permanent(self, path: str) -> CreateLinkResult:
        async with self._lock_for(path), self._session() as session:
            existing = await self._store.get_permanent(session, path)
            if existing is not None:
                return CreateLinkResult(link=existing, url=self.url_for(existing), reused=True)

            link = self._store.model(
                hash=new_token(self._settings.token_bytes),
                path=path,
                expires=False,
            )
            try:
                await self._store.save(session, link)
                await session.commit()
            except IntegrityError:
                # Another process won the race; its link is canonical
                await session.rollback()
                existing = await self._store.get_permanent(session, path)
                if existing is None:
                    raise InternalError() from None
                return CreateLinkResult(link=existing, url=self.url_for(existing), reused=True)

        logger.info("Created permanent share link %s for %s", link.hash, path)
        return CreateLinkResult(link=link, url=self.url_for(link))

    async def delete_link(self, user: User, raw_path: str) -> None:
        """Delete the link whose token is the last segment of *raw_path*.

        Deleting an unknown token is not an error.
        """
        require(user, "share")
        hash = strip_prefix(raw_path, self._settings.share_prefix).strip("/")
        if not hash:
            return

        async with self._session() as session:
            found = await self._store.delete(session, hash)
            await session.commit()

        if found:
            logger.info("Deleted share link %s", hash)

    async def get_link(self, hash: str) -> ShareLinkBase:
        """Resolve a public token to its live link.

        Raises:
            NotFoundError: if the token is unknown or has expired (an
                expired link is removed on the way).
        """
        async with self._session() as session:
            link = await self._store.get_by_hash(session, hash)
            if link is None:
                raise NotFoundError()
            if not await self._sweep(session, [link]):
                raise NotFoundError()
            return link
