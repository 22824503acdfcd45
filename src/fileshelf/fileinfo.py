"""FileInfo construction — type classification, listings, checksums."""

from __future__ import annotations

import asyncio
import hashlib
import posixpath
from typing import TYPE_CHECKING

from .exceptions import InvalidOptionError
from .types import FileInfo, Listing
from .utils import SNIFF_BYTES, guess_mime_type, is_binary_content, split_path

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .scoped_fs import FileStat, ScopedFileSystem

SUBTITLE_EXTENSIONS = (".vtt",)
CHECKSUM_CHUNK = 64 * 1024
TEXT_APPLICATION_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/javascript",
    "application/x-sh",
})


def classify_by_name(name: str) -> str | None:
    """Classify a file from its name alone; None when the name is not decisive."""
    mime = guess_mime_type(name) or ""
    if mime.startswith("video/"):
        return "video"
    if mime.startswith("audio/"):
        return "audio"
    if mime.startswith("image/"):
        return "image"
    if mime == "application/pdf":
        return "pdf"
    if mime.startswith("text/") or mime in TEXT_APPLICATION_TYPES:
        return "text"
    return None


def classify(name: str, head: bytes) -> str:
    """Classify a file from its name and the first bytes of its content."""
    kind = classify_by_name(name)
    if kind is not None and kind != "text":
        return kind
    # A text extension does not override binary content
    if is_binary_content(head):
        return "blob"
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut at the sniff boundary is still text
        if e.start < len(head) - 3:
            return "blob"
    return "text"


def _from_stat(st: FileStat) -> FileInfo:
    _, ext = posixpath.splitext(st.name)
    return FileInfo(
        path=st.path,
        name=st.name,
        is_dir=st.is_dir,
        size=st.size,
        modified=st.modified,
        mode=st.mode,
        type="directory" if st.is_dir else "blob",
        extension="" if st.is_dir else ext,
    )


async def new_file_info(
    fs: ScopedFileSystem,
    path: str,
    *,
    max_content_size: int = 10 * 1024 * 1024,
) -> FileInfo:
    """Stat *path* and build its FileInfo.

    Directories get a ``Listing`` (unsorted; callers apply the active
    order).  Text files up to *max_content_size* carry their content.
    """
    st = await fs.stat(path)
    info = _from_stat(st)

    if st.is_dir:
        info.listing = await _build_listing(fs, path)
        return info

    head = await fs.read_bytes(path, limit=SNIFF_BYTES)
    info.type = classify(st.name, head)

    if info.type == "text":
        if st.size > max_content_size:
            info.type = "blob"
        else:
            raw = await fs.read_bytes(path)
            try:
                info.content = raw.decode("utf-8")
            except UnicodeDecodeError:
                info.type = "blob"

    return info


async def _build_listing(fs: ScopedFileSystem, path: str) -> Listing:
    listing = Listing()
    for st in await fs.list_dir(path):
        child = _from_stat(st)
        if st.is_dir:
            listing.num_dirs += 1
        else:
            listing.num_files += 1
            child.type = classify_by_name(st.name) or "blob"
        listing.items.append(child)
    return listing


async def detect_subtitles(fs: ScopedFileSystem, info: FileInfo) -> None:
    """Fill ``info.subtitles`` with sibling subtitle files sharing the video's stem."""
    if info.type != "video":
        return

    parent, name = split_path(info.path)
    stem, _ = posixpath.splitext(name)

    info.subtitles = sorted(
        st.path
        for st in await fs.list_dir(parent)
        if not st.is_dir
        and posixpath.splitext(st.name)[0] == stem
        and posixpath.splitext(st.name)[1].lower() in SUBTITLE_EXTENSIONS
    )


def _hash_file(physical: Path, algorithm: str) -> str:
    digest = hashlib.new(algorithm)
    with physical.open("rb") as f:
        while chunk := f.read(CHECKSUM_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()


async def checksum(
    fs: ScopedFileSystem,
    info: FileInfo,
    algorithm: str,
    allowed: Iterable[str] = ("md5", "sha1", "sha256", "sha512"),
) -> str:
    """Compute *algorithm* over the file and store it in ``info.checksums``.

    Raises:
        InvalidOptionError: if *algorithm* is not one of *allowed* or the
            path is a directory.
    """
    algorithm = algorithm.lower()
    if algorithm not in allowed or info.is_dir:
        raise InvalidOptionError(f"Unsupported checksum: {algorithm}")

    physical = fs.real_path(info.path)
    info.checksums[algorithm] = await asyncio.to_thread(_hash_file, physical, algorithm)
    return info.checksums[algorithm]
