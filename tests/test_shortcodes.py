"""Unit tests for short-code generation and validation utilities."""

import pytest

from app.shortcodes import ALPHABET, generate_id, generate_short_code, is_valid_short_code, is_valid_url


def test_alphabet_is_62_alphanumerics() -> None:
    assert len(ALPHABET) == 62
    assert len(set(ALPHABET)) == 62
    assert all(c.isascii() and c.isalnum() for c in ALPHABET)


def test_generate_short_code_default_length() -> None:
    assert len(generate_short_code()) == 6


def test_generate_short_code_custom_length() -> None:
    assert len(generate_short_code(length=8)) == 8


def test_generate_short_code_only_alphanumeric() -> None:
    for _ in range(100):
        code = generate_short_code()
        assert all(c in ALPHABET for c in code)


def test_generate_short_code_rejects_non_positive_length() -> None:
    with pytest.raises(AssertionError):
        generate_short_code(0)


def test_generate_id_uniqueness() -> None:
    ids = {generate_id() for _ in range(1000)}
    assert len(ids) == 1000


@pytest.mark.parametrize("code", ["a", "promo1", "ABCxyz123", "a" * 20])
def test_valid_short_codes(code: str) -> None:
    assert is_valid_short_code(code)


@pytest.mark.parametrize("code", ["", "a" * 21, "my-code", "with space", "under_score", "ümlaut", "abc\n"])
def test_invalid_short_codes(code: str) -> None:
    assert not is_valid_short_code(code)


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/a",
        "http://www.python.org/downloads?x=1",
        "https://sub.example.org:8443/p#frag",
        "http://localhost:3000/page",
        "http://intranet/wiki",
        "MAILTO:team@example.com",
    ],
)
def test_valid_urls(url: str) -> None:
    assert is_valid_url(url)


@pytest.mark.parametrize("url", ["", "not-a-url", "example.com", "https://", "://missing-scheme.com", "mailto:", "mailto:not-an-address"])
def test_invalid_urls(url: str) -> None:
    assert not is_valid_url(url)
