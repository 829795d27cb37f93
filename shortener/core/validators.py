"""
Input Validators

Validation helpers for destination URLs and short codes.

Short codes only ever contain ASCII letters and digits, which keeps them
safe to embed in URLs and to use as store keys without escaping.
"""

import re
import secrets
import string
from typing import Optional

ALPHABET = string.ascii_letters + string.digits

ALLOWED_URL_PREFIXES = ("http://", "https://")
MIN_URL_LENGTH = 11

# Top-level paths owned by the service itself
RESERVED_SLUGS = frozenset({"api", "admin", "health", "static", "docs", "redoc"})

_SLUG_RE = re.compile(r"[A-Za-z0-9]+")


def is_valid_url(url: str) -> bool:
    """
    Check that a destination URL is acceptable for shortening.

    The URL must start with http:// or https:// and be longer than the
    bare scheme plus a minimal host.
    """
    if not url or not isinstance(url, str):
        return False
    return len(url) >= MIN_URL_LENGTH and url.startswith(ALLOWED_URL_PREFIXES)


def is_valid_slug(slug: str) -> bool:
    """Return True if slug is a non-empty run of ASCII letters and digits."""
    if not slug or not isinstance(slug, str):
        return False
    return _SLUG_RE.fullmatch(slug) is not None


def is_reserved_slug(slug: str) -> bool:
    return slug in RESERVED_SLUGS


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize a short code taken from a request path.

    Args:
        short_code: The raw path segment

    Returns:
        The code if it is well formed and not reserved, None otherwise
    """
    if not is_valid_slug(short_code) or is_reserved_slug(short_code):
        return None
    return short_code


def generate_short_code(length: int = 6) -> str:
    """
    Draw a random short code uniformly from [A-Za-z0-9].

    Args:
        length: Number of characters (default: 6)

    Returns:
        The generated code
    """
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
