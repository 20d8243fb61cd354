"""Error taxonomy for the scheduling flow.

Decode errors are returned inside ``kungfu.Error`` by the codec; the rest
are raised and caught by the dispatcher, which turns each into a reply
without touching other users' flows.
"""

from __future__ import annotations


class LessonflowError(Exception):
    """Base for everything the flow raises on purpose."""


# ═══════════════════════════════════════════════════════════════════════════════
# Token errors
# ═══════════════════════════════════════════════════════════════════════════════


class DecodeError(LessonflowError, ValueError):
    """Token could not be turned back into a payload."""

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"{reason} (token={token!r})")
        self.token = token
        self.reason = reason


class MalformedToken(DecodeError):
    """Unknown discriminator or a body that does not match the payload shape."""


class InvalidField(DecodeError):
    """A field value is outside its declared type or range."""

    def __init__(self, token: str, field_name: str, reason: str) -> None:
        super().__init__(token, f"field {field_name!r}: {reason}")
        self.field_name = field_name


class TokenTooLong(DecodeError):
    """Encoded token exceeds the platform's callback-data byte limit."""


# ═══════════════════════════════════════════════════════════════════════════════
# Flow errors
# ═══════════════════════════════════════════════════════════════════════════════


class StaleStateError(LessonflowError):
    """A well-formed token points at a slot or record that is no longer valid."""


class AccessorError(LessonflowError):
    """The lesson store call failed or timed out."""


class RecordNotFound(AccessorError):
    """The draft or record the token refers to does not exist anymore."""


class TransportError(LessonflowError):
    """Sending or deleting a chat message failed."""


__all__ = (
    "AccessorError",
    "DecodeError",
    "InvalidField",
    "LessonflowError",
    "MalformedToken",
    "RecordNotFound",
    "StaleStateError",
    "TokenTooLong",
    "TransportError",
)
