"""Errors raised by the URL registry when a creation request is rejected.

Each error carries its ``RegistryErrorKind`` and the request field that
failed, so the caller can map it to a response and re-prompt for that field.
A missing or expired code is not an error here: lookups return ``None``.
"""

from app.enums import RegistryErrorKind

__all__ = [
    "RegistryError",
    "InvalidUrlError",
    "InvalidShortCodeError",
    "ShortCodeTakenError",
]


class RegistryError(ValueError):
    kind: RegistryErrorKind

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidUrlError(RegistryError):
    kind = RegistryErrorKind.INVALID_URL


class InvalidShortCodeError(RegistryError):
    kind = RegistryErrorKind.INVALID_SHORT_CODE


class ShortCodeTakenError(RegistryError):
    kind = RegistryErrorKind.SHORT_CODE_TAKEN
