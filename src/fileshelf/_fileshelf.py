"""FileShelf — async facade wiring settings, share store, runner and services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import Settings
from .models.shares import ShareLink
from .resources import ResourceService
from .runner import Runner
from .share_links import ShareLinkManager

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from .models.shares import ShareLinkBase

logger = logging.getLogger(__name__)


class FileShelf:
    """Composition root for the resource and share-link services.

    Engine-based setup::

        engine = create_async_engine("sqlite+aiosqlite:///shelf.db")
        shelf = FileShelf(Settings(base_url="https://files.example.com"), engine=engine)
        await shelf.create_tables()

        await shelf.resources.write(user, "/api/resources/notes.txt", "POST", b"hi")
        result = await shelf.shares.create_link(user, "/api/share/notes.txt")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        engine: AsyncEngine | None = None,
        session_factory: Callable[..., AsyncSession] | None = None,
        runner: Runner | None = None,
        share_model: type[ShareLinkBase] = ShareLink,
    ) -> None:
        if engine is not None and session_factory is not None:
            raise ValueError("Provide engine or session_factory, not both")
        if engine is None and session_factory is None:
            raise ValueError("Provide engine or session_factory")

        self.settings = settings or Settings()
        self._engine = engine
        self._share_model = share_model

        if session_factory is None:
            session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        self._session_factory = session_factory

        self.runner = runner or Runner.from_commands(self.settings.hooks)
        self.resources = ResourceService(self.settings, self.runner)
        self.shares = ShareLinkManager(
            self.settings, session_factory, share_model=share_model
        )

    async def create_tables(self) -> None:
        """Create the share-link table if it does not exist."""
        if self._engine is None:
            raise ValueError("create_tables() needs an engine")
        model = self._share_model
        async with self._engine.begin() as conn:
            await conn.run_sync(
                lambda c: model.__table__.create(c, checkfirst=True)  # type: ignore[attr-defined]
            )
        logger.debug("Ensured table %s", model.__tablename__)

    async def close(self) -> None:
        """Dispose of the engine, if this instance was given one."""
        if self._engine is not None:
            await self._engine.dispose()
