"""Result types: FileInfo, Listing, WriteResult, etc."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from .exceptions import HookError
    from .models.shares import ShareLink
    from .sorting import Cookie

SORT_KEYS = ("name", "size")
SORT_ORDERS = ("asc", "desc")


@dataclass
class Listing:
    """Children of a directory plus the order they are presented in."""

    items: list[FileInfo] = field(default_factory=list)
    num_dirs: int = 0
    num_files: int = 0
    sort: str = "name"
    order: str = "asc"

    def apply_sort(self) -> None:
        """Sort ``items`` in place by ``sort`` and ``order``.

        Name comparison is case-insensitive; ties on size fall back to name.
        Unknown keys sort by name.
        """
        reverse = self.order == "desc"
        if self.sort == "size":
            self.items.sort(key=lambda f: (f.size, f.name.lower()), reverse=reverse)
        else:
            self.items.sort(key=lambda f: (f.name.lower(), f.name), reverse=reverse)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "numDirs": self.num_dirs,
            "numFiles": self.num_files,
            "sort": self.sort,
            "order": self.order,
        }


@dataclass
class FileInfo:
    """Request-scoped view of a file or directory. Never persisted."""

    path: str
    name: str
    is_dir: bool
    size: int
    modified: datetime
    mode: int
    type: str = "blob"
    extension: str = ""
    content: str = ""
    checksums: dict[str, str] = field(default_factory=dict)
    subtitles: list[str] = field(default_factory=list)
    listing: Listing | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "extension": self.extension,
            "modified": self.modified.isoformat(),
            "mode": self.mode,
            "isDir": self.is_dir,
            "type": self.type,
        }
        if self.content:
            data["content"] = self.content
        if self.checksums:
            data["checksums"] = dict(self.checksums)
        if self.subtitles:
            data["subtitles"] = list(self.subtitles)
        if self.listing is not None:
            data["listing"] = self.listing.to_dict()
        return data


@dataclass
class WriteResult:
    """Result of a create/overwrite request."""

    path: str
    etag: str | None = None
    created: bool = False
    is_dir: bool = False
    hook_errors: list[HookError] = field(default_factory=list)


@dataclass
class ActionResult:
    """Result of a delete, rename or copy request."""

    action: str
    src: str
    dst: str = ""
    hook_errors: list[HookError] = field(default_factory=list)


@dataclass
class CreateLinkResult:
    """Result of a share-link creation.

    ``reused`` is True when an existing permanent link was returned
    instead of issuing a new token.
    """

    link: ShareLink
    url: str
    reused: bool = False


@dataclass
class ReadResult:
    """Result of a get request: the resource plus preference cookies to set."""

    info: FileInfo
    cookies: tuple[Cookie, ...] = ()
