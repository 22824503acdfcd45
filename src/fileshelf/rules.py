"""Path rules — ordered allow/deny predicates deciding path reachability."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass
class Rule:
    """A single allow/deny rule.

    Plain rules match the rule path itself and everything beneath it.
    Regex rules match when ``re.search`` finds the pattern anywhere in the
    canonical path.
    """

    path: str
    allow: bool = True
    regex: bool = False
    _pattern: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.regex:
            self._pattern = re.compile(self.path)
        else:
            self.path = normalize_path(self.path)

    def matches(self, path: str) -> bool:
        """Return True if *path* (already canonical) is covered by this rule."""
        if self._pattern is not None:
            return self._pattern.search(path) is not None
        if self.path == "/":
            return True
        return path == self.path or path.startswith(self.path + "/")

    def to_dict(self) -> dict[str, object]:
        return {"path": self.path, "allow": self.allow, "regex": self.regex}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Rule:
        return cls(
            path=str(data["path"]),
            allow=bool(data.get("allow", True)),
            regex=bool(data.get("regex", False)),
        )


def is_allowed(path: str, rules: Iterable[Rule]) -> bool:
    """Decide whether *path* is reachable under *rules*.

    Rules are evaluated in order and the last matching rule wins, so a
    broad deny can be followed by narrower allows (and vice versa).
    A path no rule matches is allowed.
    """
    path = normalize_path(path)
    allowed = True
    for rule in rules:
        if rule.matches(path):
            allowed = rule.allow
    return allowed
