"""
Custom Exceptions

Domain errors raised by the services and storage layer. The API layer maps
each of them to an HTTP status code; see shortener.api.endpoints.
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(reason)


class InvalidSlugError(URLShortenerException):
    """Raised when a custom short code is malformed or reserved."""

    def __init__(self, slug: str, reason: str = "Custom slug must be alphanumeric"):
        self.slug = slug
        self.reason = reason
        super().__init__(reason)


class SlugConflictError(URLShortenerException):
    """Raised when a requested short code is already taken."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__("Short URL already exists")


class ShortCodeNotFoundError(URLShortenerException):
    """Raised when a short code is not found in the store."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__("URL not found")


class StorageError(URLShortenerException):
    """Raised when a store operation or (de)serialization fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Storage error: {message}")


class ShortCodeExhaustedError(StorageError):
    """Raised when every generated short code collided with an existing one."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"could not allocate a free short code after {attempts} attempts")
