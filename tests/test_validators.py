"""Tests for URL and short code validation helpers."""

import re

import pytest

from shortener.core.validators import (
    ALPHABET,
    generate_short_code,
    is_reserved_slug,
    is_valid_slug,
    is_valid_url,
    sanitize_short_code,
)

_BASE62_RE = re.compile(r"^[A-Za-z0-9]+$")


class TestURLValidation:
    """Test URL validation function."""

    def test_valid_urls(self):
        """Test that http and https URLs are accepted."""
        valid_urls = [
            "http://example.com",
            "https://example.com",
            "https://www.example.com/path/to/page",
            "http://subdomain.example.com:8080/path?query=value",
        ]
        for url in valid_urls:
            assert is_valid_url(url), f"Should be valid: {url}"

    def test_invalid_urls(self):
        """Test that other schemes and too-short URLs are rejected."""
        invalid_urls = [
            "not-a-url",
            "ftp://example.com",
            "example.com",
            "",
            "http://",
            "https://a",
            "javascript:alert(1)",
            "HTTP://EXAMPLE.COM",
        ]
        for url in invalid_urls:
            assert not is_valid_url(url), f"Should be invalid: {url}"

    def test_minimum_length_boundary(self):
        assert not is_valid_url("http://a.b")
        assert is_valid_url("http://a.bc")


class TestSlugValidation:

    @pytest.mark.parametrize("slug", ["foo123", "ABC", "a", "0", "MixedCase42"])
    def test_accepts_alphanumeric(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["foo-bar", "foo_bar", "foo bar", "nope!", "", "café", "١٢", "foo\n", "\nfoo"])
    def test_rejects_non_alphanumeric(self, slug):
        assert not is_valid_slug(slug)

    def test_reserved_slugs(self):
        for slug in ["api", "admin", "health", "static", "docs", "redoc"]:
            assert is_reserved_slug(slug)
        assert not is_reserved_slug("Health")

    def test_sanitize_short_code(self):
        assert sanitize_short_code("abc123") == "abc123"
        assert sanitize_short_code("abc-123") is None
        assert sanitize_short_code("health") is None
        assert sanitize_short_code("") is None
        assert sanitize_short_code("abc123\n") is None


class TestCodeGeneration:

    def test_default_length_and_alphabet(self):
        code = generate_short_code()
        assert len(code) == 6
        assert _BASE62_RE.fullmatch(code)

    def test_custom_length(self):
        assert len(generate_short_code(8)) == 8
        assert len(generate_short_code(1)) == 1

    def test_alphabet_has_62_symbols(self):
        assert len(ALPHABET) == 62
        assert len(set(ALPHABET)) == 62

    def test_codes_vary(self):
        codes = {generate_short_code() for _ in range(50)}
        assert len(codes) > 1
