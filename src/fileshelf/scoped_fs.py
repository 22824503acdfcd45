"""Scoped filesystem — every operation confined beneath a user's scope.

``ScopedFileSystem`` is the capability the operation layer talks to;
``LocalScopedFileSystem`` implements it on the host disk.  Errors are
plain ``OSError`` subclasses, classified once by the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .utils import normalize_path, validate_path

if TYPE_CHECKING:
    from collections.abc import AsyncIterable


@dataclass
class FileStat:
    """Metadata for one scoped path."""

    path: str
    name: str
    is_dir: bool
    size: int
    modified: datetime
    mode: int
    mtime_ns: int

    @property
    def etag(self) -> str:
        """Opaque integrity tag derived from modification time and size."""
        return f'"{self.mtime_ns:x}{self.size:x}"'


@runtime_checkable
class ScopedFileSystem(Protocol):
    """Filesystem capability confined to a single root scope.

    All paths are scope-relative (``/`` is the scope root).  Paths that
    would resolve outside the scope raise ``PermissionError``.
    """

    root: Path

    def real_path(self, path: str) -> Path: ...

    async def stat(self, path: str) -> FileStat: ...

    async def exists(self, path: str) -> bool: ...

    async def list_dir(self, path: str) -> list[FileStat]: ...

    async def read_bytes(self, path: str, limit: int | None = None) -> bytes: ...

    async def write_bytes(self, path: str, data: bytes | AsyncIterable[bytes]) -> FileStat: ...

    async def remove_all(self, path: str) -> None: ...

    async def rename(self, src: str, dst: str) -> None: ...

    async def mkdir_all(self, path: str) -> None: ...

    async def copy(self, src: str, dst: str) -> None: ...


class LocalScopedFileSystem:
    """Host-disk implementation of ``ScopedFileSystem``.

    Security: ``real_path()`` resolves symlinks and ``..`` before checking
    containment, so nothing outside ``root`` is ever touched.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

        if not self.root.exists():
            raise FileNotFoundError(f"Scope directory does not exist: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Scope path is not a directory: {self.root}")

    def __repr__(self) -> str:
        return f"LocalScopedFileSystem({str(self.root)!r})"

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def real_path(self, path: str) -> Path:
        """Resolve a scope-relative path to a physical path inside ``root``."""
        valid, error = validate_path(path)
        if not valid:
            raise PermissionError(error)

        rel = normalize_path(path).lstrip("/")
        if not rel:
            return self.root

        candidate = self.root / rel
        parent = candidate.parent.resolve()
        for target in (parent, candidate.resolve()):
            try:
                target.relative_to(self.root)
            except ValueError:
                raise PermissionError(
                    f"Path traversal detected: {path} resolves outside scope"
                ) from None
        # The final component stays unresolved so a symlink is handled as itself
        return parent / candidate.name

    def _stat_physical(self, physical: Path, scoped: str) -> FileStat:
        st = physical.stat()
        is_dir = physical.is_dir()
        return FileStat(
            path=scoped,
            name=physical.name if scoped != "/" else "",
            is_dir=is_dir,
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            mode=st.st_mode,
            mtime_ns=st.st_mtime_ns,
        )

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def stat(self, path: str) -> FileStat:
        physical = self.real_path(path)
        return await asyncio.to_thread(self._stat_physical, physical, normalize_path(path))

    async def exists(self, path: str) -> bool:
        try:
            physical = self.real_path(path)
        except PermissionError:
            return False
        return await asyncio.to_thread(physical.exists)

    async def list_dir(self, path: str) -> list[FileStat]:
        physical = self.real_path(path)
        base = normalize_path(path)

        def _scan() -> list[FileStat]:
            entries: list[FileStat] = []
            with os.scandir(physical) as it:
                for entry in it:
                    child = base.rstrip("/") + "/" + entry.name
                    try:
                        if entry.is_symlink():
                            self.real_path(child)
                        entries.append(self._stat_physical(Path(entry.path), child))
                    except OSError:
                        # Dangling or escaping symlinks, entries removed mid-scan
                        continue
            return entries

        return await asyncio.to_thread(_scan)

    async def read_bytes(self, path: str, limit: int | None = None) -> bytes:
        physical = self.real_path(path)

        def _read() -> bytes:
            with physical.open("rb") as f:
                return f.read() if limit is None else f.read(limit)

        return await asyncio.to_thread(_read)

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def write_bytes(self, path: str, data: bytes | AsyncIterable[bytes]) -> FileStat:
        """Create or truncate *path* and stream *data* into it.

        Returns the stat of the written file.  An interrupted stream leaves
        a partially written file; its tag differs from any complete write.
        """
        physical = self.real_path(path)
        scoped = normalize_path(path)

        if isinstance(data, (bytes, bytearray, memoryview)):
            def _write() -> FileStat:
                with physical.open("wb") as f:
                    f.write(data)
                return self._stat_physical(physical, scoped)

            return await asyncio.to_thread(_write)

        f = await asyncio.to_thread(physical.open, "wb")
        try:
            async for chunk in data:
                await asyncio.to_thread(f.write, chunk)
        finally:
            await asyncio.to_thread(f.close)
        return await asyncio.to_thread(self._stat_physical, physical, scoped)

    async def remove_all(self, path: str) -> None:
        physical = self.real_path(path)
        if physical == self.root:
            raise PermissionError("Refusing to remove the scope root")

        def _remove() -> None:
            if physical.is_dir() and not physical.is_symlink():
                shutil.rmtree(physical)
            else:
                physical.unlink()

        await asyncio.to_thread(_remove)

    async def rename(self, src: str, dst: str) -> None:
        src_physical = self.real_path(src)
        dst_physical = self.real_path(dst)
        await asyncio.to_thread(os.rename, src_physical, dst_physical)

    async def mkdir_all(self, path: str) -> None:
        physical = self.real_path(path)
        await asyncio.to_thread(physical.mkdir, mode=0o775, parents=True, exist_ok=True)

    async def copy(self, src: str, dst: str) -> None:
        """Copy a file or a whole directory tree."""
        src_physical = self.real_path(src)
        dst_physical = self.real_path(dst)

        def _copy() -> None:
            if src_physical.is_dir():
                if dst_physical == src_physical or src_physical in dst_physical.parents:
                    raise OSError(f"Cannot copy a directory into itself: {src}")
                shutil.copytree(src_physical, dst_physical)
            else:
                shutil.copy2(src_physical, dst_physical)

        try:
            await asyncio.to_thread(_copy)
        except shutil.Error as e:
            with contextlib.suppress(OSError):
                if dst_physical.is_dir():
                    shutil.rmtree(dst_physical)
            raise OSError(f"Copy failed: {e}") from e
