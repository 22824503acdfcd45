"""Settings — explicitly injected process configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

MIN_TOKEN_BYTES = 6
ONE_YEAR = 365 * 24 * 60 * 60


@dataclass
class Settings:
    """Configuration shared by the resource and share-link services."""

    base_url: str = ""
    """Public URL prefix used when composing share links, e.g. "https://files.example.com"."""

    resource_prefix: str = "/api/resources"
    """Routing prefix stripped from resource request paths."""

    share_prefix: str = "/api/share"
    """Routing prefix stripped from share request paths."""

    token_bytes: int = MIN_TOKEN_BYTES
    """Random bytes per share token. Never below ``MIN_TOKEN_BYTES``."""

    sort_cookie_max_age: int = ONE_YEAR
    """Lifetime in seconds of the sort/order preference cookies."""

    checksum_algorithms: tuple[str, ...] = ("md5", "sha1", "sha256", "sha512")
    """Checksum algorithms a client may request."""

    max_content_size: int = 10 * 1024 * 1024
    """Text files above this size are not embedded in responses."""

    hooks: dict[str, list[str]] = field(default_factory=dict)
    """External commands per trigger, e.g. ``{"after_upload": ["notify"]}``."""

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.resource_prefix = "/" + self.resource_prefix.strip("/")
        self.share_prefix = "/" + self.share_prefix.strip("/")
        if self.token_bytes < MIN_TOKEN_BYTES:
            raise ValueError(
                f"token_bytes must be at least {MIN_TOKEN_BYTES}, got {self.token_bytes}"
            )
