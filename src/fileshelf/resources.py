"""ResourceService — path-scoped file operations for authorized users.

Every request path is canonicalized and checked against the user's rules
before the filesystem is touched.  Mutations run through the ``Runner``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import unquote

from .exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOptionError,
    MethodNotAllowedError,
    classify_os_error,
)
from .fileinfo import checksum, detect_subtitles, new_file_info
from .paths import authorize, is_directory_request, require, resolve_path
from .runner import Runner
from .sorting import resolve_sort
from .types import ActionResult, ReadResult, WriteResult
from .utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Mapping

    from .config import Settings
    from .users import User

logger = logging.getLogger(__name__)

EMPTY: dict[str, str] = {}


class ResourceService:
    """Get, delete, create/overwrite and rename/copy resources."""

    def __init__(self, settings: Settings, runner: Runner | None = None) -> None:
        self._settings = settings
        self._runner = runner or Runner()

    @property
    def runner(self) -> Runner:
        return self._runner

    def _resolve(self, user: User, raw_path: str) -> str:
        return resolve_path(raw_path, self._settings.resource_prefix, user)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(
        self,
        user: User,
        raw_path: str,
        query: Mapping[str, str] = EMPTY,
        cookies: Mapping[str, str] = EMPTY,
        *,
        secure: bool = False,
    ) -> ReadResult:
        """Describe a file, or list a directory in the active sort order.

        Raises:
            ForbiddenError: path denied by the user's rules.
            NotFoundError: nothing exists at the path.
            InvalidOptionError: unsupported ``checksum`` algorithm.
        """
        path = self._resolve(user, raw_path)

        try:
            info = await new_file_info(
                user.fs, path, max_content_size=self._settings.max_content_size
            )
        except OSError as e:
            raise classify_os_error(e) from e

        if info.listing is not None:
            choice = resolve_sort(
                query,
                cookies,
                secure=secure,
                max_age=self._settings.sort_cookie_max_age,
            )
            info.listing.sort = choice.sort
            info.listing.order = choice.order
            info.listing.apply_sort()
            return ReadResult(info, choice.cookies)

        if not user.perm.modify and info.type == "text":
            info.type = "textImmutable"

        try:
            await detect_subtitles(user.fs, info)
            if algorithm := query.get("checksum"):
                await checksum(user.fs, info, algorithm, self._settings.checksum_algorithms)
                # Checksum responses never carry the content
                info.content = ""
        except OSError as e:
            raise classify_os_error(e) from e

        return ReadResult(info)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, user: User, raw_path: str) -> ActionResult:
        """Recursively remove a file or directory. The scope root is never removed."""
        path = self._resolve(user, raw_path)
        if path == "/" or not user.perm.delete:
            raise ForbiddenError()

        outcome = await self._runner.run(
            lambda: user.fs.remove_all(path), "delete", path, "", user
        )
        logger.info("%s deleted %s", user.username, path)
        return ActionResult("delete", path, hook_errors=outcome.hook_errors)

    # ------------------------------------------------------------------
    # Create / overwrite
    # ------------------------------------------------------------------

    async def write(
        self,
        user: User,
        raw_path: str,
        method: str,
        body: bytes | AsyncIterable[bytes] = b"",
        query: Mapping[str, str] = EMPTY,
    ) -> WriteResult:
        """Create (POST) or overwrite (PUT) a resource.

        A *raw_path* ending in ``/`` creates a directory (POST only, and
        idempotent).  A POST onto an existing path needs ``override=true``.

        Raises:
            ForbiddenError: missing ``create`` (POST) or ``modify`` (PUT).
            MethodNotAllowedError: PUT on a directory path, or another method.
            ConflictError: target exists and may not be replaced.
        """
        method = method.upper()
        path = self._resolve(user, raw_path)

        if method == "POST":
            require(user, "create")
        elif method == "PUT":
            require(user, "modify")
        else:
            raise MethodNotAllowedError()

        if is_directory_request(raw_path):
            if method == "PUT":
                raise MethodNotAllowedError()
            return await self._mkdir(user, path)

        try:
            existed = await user.fs.exists(path)
        except OSError as e:
            raise classify_os_error(e) from e

        if method == "POST" and existed and query.get("override") != "true":
            raise ConflictError()

        outcome = await self._runner.run(
            lambda: user.fs.write_bytes(path, body), "upload", path, "", user
        )
        logger.info("%s wrote %s (%d bytes)", user.username, path, outcome.value.size)
        return WriteResult(
            path=path,
            etag=outcome.value.etag,
            created=not existed,
            hook_errors=outcome.hook_errors,
        )

    async def _mkdir(self, user: User, path: str) -> WriteResult:
        try:
            existed = await user.fs.exists(path)
            await user.fs.mkdir_all(path)
        except OSError as e:
            raise classify_os_error(e) from e

        if existed:
            logger.debug("Directory %s already present", path)
        else:
            logger.info("%s created directory %s", user.username, path)
        return WriteResult(path=path, created=not existed, is_dir=True)

    # ------------------------------------------------------------------
    # Rename / copy
    # ------------------------------------------------------------------

    async def patch(
        self,
        user: User,
        raw_path: str,
        query: Mapping[str, str] = EMPTY,
    ) -> ActionResult:
        """Rename (default) or copy a resource to ``destination``.

        Raises:
            ForbiddenError: source or destination is the scope root or denied
                by rules, or the ``rename``/``create`` permission is missing.
            ConflictError: destination is the source or lies beneath it.
            InvalidOptionError: no destination given.
        """
        src = self._resolve(user, raw_path)

        raw_dst = unquote(query.get("destination", ""))
        if not raw_dst:
            raise InvalidOptionError("Missing destination")
        dst = normalize_path(raw_dst)
        authorize(user, dst)

        if src == "/" or dst == "/":
            raise ForbiddenError()
        if dst == src or dst.startswith(src.rstrip("/") + "/"):
            raise ConflictError(f"Cannot move {src} into itself")

        action = query.get("action", "rename")
        if action == "copy":
            require(user, "create")
            outcome = await self._runner.run(
                lambda: user.fs.copy(src, dst), "copy", src, dst, user
            )
        else:
            action = "rename"
            require(user, "rename")
            outcome = await self._runner.run(
                lambda: user.fs.rename(src, dst), "rename", src, dst, user
            )

        logger.info("%s %s %s -> %s", user.username, action, src, dst)
        return ActionResult(action, src, dst, hook_errors=outcome.hook_errors)
