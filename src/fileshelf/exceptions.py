"""Custom exception hierarchy for the fileshelf operation layer.

Every error carries the HTTP status an external router should answer with,
so callers never have to inspect messages to pick a response.
"""

from __future__ import annotations

import errno
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class FileshelfError(Exception):
    """Base exception for all fileshelf errors."""

    status_code: int = 500

    def __init__(self, message: str = "", *, hook_errors: Sequence[HookError] = ()) -> None:
        super().__init__(message or self.__class__.__doc__ or "")
        self.hook_errors: list[HookError] = list(hook_errors)


class ForbiddenError(FileshelfError):
    """Access denied."""

    status_code = 403


class NotFoundError(FileshelfError):
    """Resource not found."""

    status_code = 404


class ConflictError(FileshelfError):
    """Resource already exists."""

    status_code = 409


class InvalidOptionError(FileshelfError):
    """Invalid or unsupported option."""

    status_code = 400


class MethodNotAllowedError(FileshelfError):
    """Method not allowed for this resource."""

    status_code = 405


class InternalError(FileshelfError):
    """Internal server error."""

    status_code = 500


class HookError(Exception):
    """Raised (and collected) when a before/after hook fails."""

    def __init__(self, trigger: str, cause: BaseException) -> None:
        super().__init__(f"hook {trigger!r} failed: {cause}")
        self.trigger = trigger
        self.cause = cause


def classify_os_error(exc: OSError) -> FileshelfError:
    """Map a filesystem error onto the fileshelf taxonomy.

    The returned error carries a generic message; host paths from the
    original exception are never exposed.
    """
    if isinstance(exc, PermissionError):
        return ForbiddenError()
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return NotFoundError()
    if isinstance(exc, (FileExistsError, IsADirectoryError)) or exc.errno == errno.ENOTEMPTY:
        return ConflictError()
    return InternalError()
