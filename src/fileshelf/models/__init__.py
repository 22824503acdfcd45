"""SQLModel database models for fileshelf."""

from fileshelf.models.shares import ShareLink, ShareLinkBase

__all__ = [
    "ShareLink",
    "ShareLinkBase",
]
