"""User, Permissions and Sorting — authorization state consumed by the core.

User records are owned by an external user-management collaborator; this
module only defines their shape and the behavior the operation layer
needs (rule checks, the lazily built scoped filesystem, password hashing).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import bcrypt

from .rules import Rule, is_allowed
from .scoped_fs import LocalScopedFileSystem, ScopedFileSystem


class ViewMode(str, Enum):
    """How the client renders directory listings."""

    LIST = "list"
    MOSAIC = "mosaic"


@dataclass
class Permissions:
    """Capability flags for a user."""

    admin: bool = False
    execute: bool = False
    create: bool = False
    rename: bool = False
    modify: bool = False
    delete: bool = False
    share: bool = False
    download: bool = False
    commands: list[str] = field(default_factory=list)
    """External command names the user may trigger through hooks."""

    @classmethod
    def all(cls) -> Permissions:
        return cls(
            admin=True,
            execute=True,
            create=True,
            rename=True,
            modify=True,
            delete=True,
            share=True,
            download=True,
        )


@dataclass
class Sorting:
    """Stored listing order for a user."""

    by: str = "name"
    asc: bool = True


@dataclass
class User:
    """A user and everything needed to authorize its requests."""

    username: str
    scope: str
    password: str = ""
    id: int | None = None
    locale: str = "en"
    lock_password: bool = False
    view_mode: ViewMode = ViewMode.LIST
    perm: Permissions = field(default_factory=Permissions)
    sorting: Sorting = field(default_factory=Sorting)
    rules: list[Rule] = field(default_factory=list)

    _fs: ScopedFileSystem | None = field(default=None, init=False, repr=False, compare=False)
    _fs_scope: str | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def fs(self) -> ScopedFileSystem:
        """Scoped filesystem for this user, built on first access.

        The handle is cached for the user's lifetime and only rebuilt when
        ``scope`` changes.
        """
        if self._fs is None or self._fs_scope != self.scope:
            self._fs = LocalScopedFileSystem(self.scope)
            self._fs_scope = self.scope
        return self._fs

    @fs.setter
    def fs(self, value: ScopedFileSystem) -> None:
        self._fs = value
        self._fs_scope = self.scope

    def is_allowed(self, path: str) -> bool:
        """Check whether this user's rules let it reach *path*."""
        return is_allowed(path, self.rules)

    def to_dict(self) -> dict[str, Any]:
        """Public representation; never includes the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "scope": self.scope,
            "locale": self.locale,
            "lockPassword": self.lock_password,
            "viewMode": self.view_mode.value,
            "perm": {
                "admin": self.perm.admin,
                "execute": self.perm.execute,
                "create": self.perm.create,
                "rename": self.perm.rename,
                "edit": self.perm.modify,
                "delete": self.perm.delete,
                "share": self.perm.share,
                "download": self.perm.download,
                "commands": list(self.perm.commands),
            },
            "sorting": {"by": self.sorting.by, "asc": self.sorting.asc},
            "rules": [r.to_dict() for r in self.rules],
        }


def hash_password(password: str) -> str:
    """Hash *password* with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    """Return True if *password* matches the bcrypt *hashed* value."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
