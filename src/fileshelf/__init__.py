"""fileshelf — scoped file operations and share links for a multi-user file service."""

from fileshelf._fileshelf import FileShelf
from fileshelf.config import Settings
from fileshelf.exceptions import (
    ConflictError,
    FileshelfError,
    ForbiddenError,
    HookError,
    InternalError,
    InvalidOptionError,
    MethodNotAllowedError,
    NotFoundError,
)
from fileshelf.models.shares import ShareLink
from fileshelf.resources import ResourceService
from fileshelf.rules import Rule, is_allowed
from fileshelf.runner import CommandHook, HookEvent, Runner
from fileshelf.scoped_fs import FileStat, LocalScopedFileSystem, ScopedFileSystem
from fileshelf.share_links import ShareLinkManager
from fileshelf.types import FileInfo, Listing
from fileshelf.users import Permissions, Sorting, User, check_password, hash_password

__version__ = "0.1.0"

__all__ = [
    "CommandHook",
    "ConflictError",
    "FileInfo",
    "FileShelf",
    "FileStat",
    "FileshelfError",
    "ForbiddenError",
    "HookError",
    "HookEvent",
    "InternalError",
    "InvalidOptionError",
    "Listing",
    "LocalScopedFileSystem",
    "MethodNotAllowedError",
    "NotFoundError",
    "Permissions",
    "ResourceService",
    "Rule",
    "Runner",
    "ScopedFileSystem",
    "Settings",
    "ShareLink",
    "ShareLinkManager",
    "Sorting",
    "User",
    "__version__",
    "check_password",
    "hash_password",
    "is_allowed",
]
