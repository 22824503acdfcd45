"""Tests for the User model, lazy filesystem handle and password hashing."""

from __future__ import annotations

import pytest

from fileshelf.rules import Rule
from fileshelf.scoped_fs import LocalScopedFileSystem
from fileshelf.users import Permissions, User, ViewMode, check_password, hash_password


class TestUserFs:
    def test_built_lazily_and_cached(self, scope):
        u = User(username="alice", scope=str(scope))
        assert u._fs is None
        first = u.fs
        assert isinstance(first, LocalScopedFileSystem)
        assert u.fs is first

    def test_rebuilt_when_scope_changes(self, scope):
        u = User(username="alice", scope=str(scope))
        first = u.fs
        u.scope = str(scope / "docs")
        assert u.fs is not first
        assert u.fs.root == (scope / "docs").resolve()

    def test_missing_scope(self, tmp_path):
        u = User(username="alice", scope=str(tmp_path / "nope"))
        with pytest.raises(FileNotFoundError):
            u.fs


class TestUserRules:
    def test_is_allowed(self, scope):
        u = User(username="alice", scope=str(scope), rules=[Rule("/private", allow=False)])
        assert u.is_allowed("/docs")
        assert not u.is_allowed("/private/secret.txt")


class TestPermissions:
    def test_defaults_deny(self):
        perm = Permissions()
        assert not any(
            [perm.admin, perm.create, perm.rename, perm.modify, perm.delete, perm.share]
        )

    def test_all(self):
        perm = Permissions.all()
        assert perm.share and perm.delete and perm.modify
        assert perm.commands == []


class TestSerialization:
    def test_to_dict_hides_password(self, scope):
        u = User(username="alice", scope=str(scope), password=hash_password("pw"))
        data = u.to_dict()
        assert "password" not in data
        assert data["viewMode"] == ViewMode.LIST.value
        assert data["perm"]["edit"] is False


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert check_password("s3cret", hashed)
        assert not check_password("wrong", hashed)

    def test_malformed_hash(self):
        assert check_password("pw", "not-a-hash") is False
