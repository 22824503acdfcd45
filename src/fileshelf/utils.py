"""Path utilities, MIME guessing, binary detection."""

from __future__ import annotations

import mimetypes
import posixpath

# Sniff window for binary detection
SNIFF_BYTES = 512


# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a scope-relative path.

    - Ensures a single leading /
    - Resolves .. and . references (never above the root)
    - Removes double slashes
    - Removes trailing slash (except for root)

    Examples:
        normalize_path("foo.txt") -> "/foo.txt"
        normalize_path("/foo//bar.txt") -> "/foo/bar.txt"
        normalize_path("/foo/../../bar.txt") -> "/bar.txt"
        normalize_path("/foo/") -> "/foo"
        normalize_path("") -> "/"
    """
    if not path:
        return "/"

    path = path.strip().replace("\\", "/")
    path = "/" + path.lstrip("/")
    path = posixpath.normpath(path)

    if path != "/" and path.endswith("/"):
        path = path[:-1]

    return path


def split_path(path: str) -> tuple[str, str]:
    """Split path into (parent_dir, filename).

    Examples:
        split_path("/foo/bar.txt") -> ("/foo", "bar.txt")
        split_path("/foo.txt") -> ("/", "foo.txt")
        split_path("/") -> ("/", "")
    """
    path = normalize_path(path)
    if path == "/":
        return "/", ""
    return posixpath.split(path)


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for null bytes, control characters and length limits.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f) except \t, \n, \r
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F and ch not in ("\t", "\n", "\r"):
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > 4096:
        return False, "Path too long (max 4096 characters)"

    path = normalize_path(path)
    _, name = split_path(path)

    if name and len(name) > 255:
        return False, "Filename too long (max 255 characters)"

    return True, ""


def guess_mime_type(filename: str) -> str | None:
    """Guess the MIME type of a file based on its name."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type


# =============================================================================
# Binary Detection
# =============================================================================


def is_binary_content(chunk: bytes) -> bool:
    """Check whether *chunk* looks like binary data.

    Null bytes are a hard signal; otherwise more than 30% non-printable
    control characters marks the content as binary.
    """
    if not chunk:
        return False

    if b"\x00" in chunk:
        return True

    non_printable = sum(
        1 for byte in chunk
        if byte < 9 or (13 < byte < 32)
    )

    return (non_printable / len(chunk)) > 0.3
