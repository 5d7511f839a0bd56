"""Short code and identifier helpers.

Functions:
    generate_short_code():  Uniform random code over ``A-Za-z0-9``.
    generate_id():  Opaque unique id for mappings and clicks.
    is_valid_short_code():  Caller-supplied code format check.
    is_valid_url():  Absolute URL syntax check.
"""

import re
import string

import validators
from nanoid import generate

__all__ = [
    "ALPHABET",
    "SHORT_CODE_PATTERN",
    "generate_short_code",
    "generate_id",
    "is_valid_short_code",
    "is_valid_url",
]

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{1,20}$")


def generate_short_code(length: int = 6) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


def generate_id() -> str:
    return generate()


def is_valid_short_code(code: str) -> bool:
    return isinstance(code, str) and SHORT_CODE_PATTERN.fullmatch(code) is not None


MAILTO_SCHEME = "mailto:"


def is_valid_url(url: str) -> bool:
    """True for an absolute URL, including single-label hosts such as ``localhost``."""
    if not isinstance(url, str) or not url:
        return False
    if url[: len(MAILTO_SCHEME)].lower() == MAILTO_SCHEME:
        return validators.email(url[len(MAILTO_SCHEME) :]) is True
    return validators.url(url, simple_host=True) is True
