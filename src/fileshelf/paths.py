"""Request path resolution and authorization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import ForbiddenError
from .utils import normalize_path

if TYPE_CHECKING:
    from .users import User

logger = logging.getLogger(__name__)


def strip_prefix(raw_path: str, prefix: str) -> str:
    """Remove the routing *prefix* and any trailing separator from *raw_path*."""
    prefix = prefix.rstrip("/")
    if prefix and (raw_path == prefix or raw_path.startswith(prefix + "/")):
        raw_path = raw_path[len(prefix):]
    return raw_path.rstrip("/") or "/"


def is_directory_request(raw_path: str) -> bool:
    """A request path ending in a separator names a directory."""
    return raw_path.endswith("/")


def resolve_path(raw_path: str, prefix: str, user: User) -> str:
    """Turn an untrusted request path into a canonical, authorized scoped path.

    The path is canonicalized (``..`` and duplicate separators resolved,
    never above ``/``) before the user's rules are evaluated, so a rule
    cannot be sidestepped by spelling a path differently.

    Raises:
        ForbiddenError: if the user's rules deny the path.
    """
    path = normalize_path(strip_prefix(raw_path, prefix))
    authorize(user, path)
    return path


def authorize(user: User, path: str) -> None:
    """Raise ``ForbiddenError`` unless *user* may reach canonical *path*."""
    if not user.is_allowed(path):
        logger.debug("Path %s denied by rules for %s", path, user.username)
        raise ForbiddenError()


def require(user: User, flag: str) -> None:
    """Raise ``ForbiddenError`` unless the permission *flag* is set for *user*."""
    if not getattr(user.perm, flag):
        logger.debug("Permission %r missing for %s", flag, user.username)
        raise ForbiddenError()
