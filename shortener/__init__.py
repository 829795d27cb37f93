"""URL shortener with click counting on an embedded key-value store."""

__version__ = "1.0.0"
