"""Listing sort preference carried in long-lived client cookies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import ONE_YEAR
from .types import SORT_KEYS, SORT_ORDERS

if TYPE_CHECKING:
    from collections.abc import Mapping

SORT_COOKIE = "sort"
ORDER_COOKIE = "order"


@dataclass(frozen=True)
class Cookie:
    """A cookie the transport layer should set on the response."""

    name: str
    value: str
    max_age: int = ONE_YEAR
    path: str = "/"
    secure: bool = False


@dataclass
class SortChoice:
    """The sort key and order to apply, and cookies to persist a new choice."""

    sort: str = "name"
    order: str = "asc"
    cookies: tuple[Cookie, ...] = ()


def resolve_sort(
    query: Mapping[str, str],
    cookies: Mapping[str, str],
    *,
    secure: bool = False,
    scope: str = "/",
    max_age: int = ONE_YEAR,
) -> SortChoice:
    """Pick the listing order for a request.

    An explicit, valid ``sort``/``order`` query parameter wins and is
    persisted as a cookie.  Otherwise the stored cookie value is used when
    it is valid, falling back to ``name``/``asc``.  Unrecognized values are
    ignored, never rejected.
    """
    new_cookies: list[Cookie] = []

    sort = query.get("sort", "")
    if sort in SORT_KEYS:
        new_cookies.append(Cookie(SORT_COOKIE, sort, max_age, scope, secure))
    else:
        sort = cookies.get(SORT_COOKIE, "")
        if sort not in SORT_KEYS:
            sort = "name"

    order = query.get("order", "")
    if order in SORT_ORDERS:
        new_cookies.append(Cookie(ORDER_COOKIE, order, max_age, scope, secure))
    else:
        order = cookies.get(ORDER_COOKIE, "")
        if order not in SORT_ORDERS:
            order = "asc"

    return SortChoice(sort, order, tuple(new_cookies))
