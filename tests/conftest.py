"""Shared fixtures for fileshelf tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from fileshelf import FileShelf, Permissions, Settings, User
from fileshelf.models.shares import ShareLink  # noqa: F401  (registers the table)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """File-backed async SQLite engine with all tables created.

    A file database lets independent sessions see each other's commits.
    """
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shelf.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url="https://files.example.com/")


@pytest.fixture
def scope(tmp_path: Path) -> Path:
    """User scope directory with a small tree inside."""
    root = tmp_path / "scope"
    root.mkdir()
    (root / "docs").mkdir()
    (root / "docs" / "readme.txt").write_text("hello\n")
    (root / "empty.txt").write_bytes(b"")
    (root / "private").mkdir()
    (root / "private" / "secret.txt").write_text("top secret\n")
    return root


@pytest.fixture
def user(scope: Path) -> User:
    """A user with every permission."""
    return User(username="alice", scope=str(scope), perm=Permissions.all())


@pytest.fixture
def reader(scope: Path) -> User:
    """A user who may only read."""
    return User(username="bob", scope=str(scope), perm=Permissions())


@pytest.fixture
async def shelf(settings: Settings, async_engine: AsyncEngine) -> FileShelf:
    return FileShelf(settings, engine=async_engine)
