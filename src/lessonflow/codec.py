"""Callback-data codec — typed payload dataclass <-> compact token.

Wire format::

    <discriminator>:<field1>=<value1>&<field2>=<value2>

Field types are read from the payload dataclass annotations. Supported
scalars: ``int``, ``str``, ``datetime.date`` (ISO ``YYYY-MM-DD``, so lexical
order equals chronological order) and ``Enum`` subclasses (by value).
Constraints ride along as ``Annotated`` metadata::

    @dataclass(frozen=True, slots=True)
    class PickTime:
        time: Annotated[int, Range(0, 23)]

    codec = CallbackCodec("t", PickTime)
    codec.encode(PickTime(time=14))   # "t:time=14"
    codec.decode("t:time=14")         # Ok(PickTime(time=14))
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, get_args, get_origin, get_type_hints
from urllib.parse import quote, unquote

from kungfu import Error, Ok, Result

from lessonflow.errors import DecodeError, InvalidField, MalformedToken, TokenTooLong

# Telegram rejects callback_data longer than this many bytes.
TOKEN_LIMIT = 64

DISCRIMINATOR_SEPARATOR = ":"
FIELD_SEPARATOR = "&"
VALUE_SEPARATOR = "="


# ═══════════════════════════════════════════════════════════════════════════════
# Field constraints
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MaxLen:
    """Upper bound on a string field's length."""

    length: int


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive bounds for an integer field."""

    min: int
    max: int


@dataclass(frozen=True, slots=True)
class Pattern:
    """Regular expression a string field must match in full."""

    regex: str


type Constraint = MaxLen | Range | Pattern


def _check(value: object, constraints: tuple[Constraint, ...]) -> str | None:
    """Run constraints on a field value. Returns error message or None."""
    for c in constraints:
        if isinstance(c, MaxLen) and isinstance(value, str) and len(value) > c.length:
            return f"longer than {c.length} chars"
        if isinstance(c, Range) and isinstance(value, int) and not (c.min <= value <= c.max):
            return f"must be between {c.min} and {c.max}"
        if isinstance(c, Pattern) and isinstance(value, str) and re.fullmatch(c.regex, value) is None:
            return f"does not match {c.regex!r}"
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Field specs
# ═══════════════════════════════════════════════════════════════════════════════


def _dump_scalar(value: object) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value)


def _loader_for(base: type) -> Callable[[str], object]:
    if base is int:
        return int
    if base is str:
        return str
    if base is dt.date:
        return dt.date.fromisoformat
    if isinstance(base, type) and issubclass(base, Enum):
        return base
    raise TypeError(f"Unsupported callback field type: {base!r}")


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One payload field: name, scalar type, constraints."""

    name: str
    base_type: type
    constraints: tuple[Constraint, ...] = ()

    def dump(self, value: object) -> str:
        return quote(_dump_scalar(value), safe="")

    def load(self, raw: str) -> object:
        text = unquote(raw)
        value = _loader_for(self.base_type)(text)
        # "007", " 7" or "20240310" parse fine but would not survive a re-encode
        if _dump_scalar(value) != text:
            raise ValueError(f"non-canonical value {text!r}")
        return value


def payload_fields(payload_type: type) -> tuple[FieldSpec, ...]:
    """Inspect a payload dataclass into ordered FieldSpecs.

    Raises TypeError for non-dataclasses or unsupported field types so a
    bad payload class fails at registration, not at the first button press.
    """
    if not dataclasses.is_dataclass(payload_type):
        raise TypeError(f"{payload_type.__name__} must be a dataclass")
    hints = get_type_hints(payload_type, include_extras=True)
    specs: list[FieldSpec] = []
    for f in dataclasses.fields(payload_type):
        hint = hints[f.name]
        constraints: tuple[Constraint, ...] = ()
        if get_origin(hint) is Annotated:
            base, *extras = get_args(hint)
            constraints = tuple(e for e in extras if isinstance(e, (MaxLen, Range, Pattern)))
        else:
            base = hint
        _loader_for(base)
        specs.append(FieldSpec(name=f.name, base_type=base, constraints=constraints))
    return tuple(specs)


# ═══════════════════════════════════════════════════════════════════════════════
# Codec
# ═══════════════════════════════════════════════════════════════════════════════


class CallbackCodec[P]:
    """Encode/decode one payload type under one discriminator."""

    def __init__(self, discriminator: str, payload_type: type[P], limit: int = TOKEN_LIMIT) -> None:
        if not discriminator or DISCRIMINATOR_SEPARATOR in discriminator:
            raise ValueError(
                f"Discriminator must be non-empty and free of "
                f"{DISCRIMINATOR_SEPARATOR!r}: {discriminator!r}"
            )
        self.discriminator = discriminator
        self.payload_type = payload_type
        self.limit = limit
        self.fields = payload_fields(payload_type)
        self._prefix = discriminator + DISCRIMINATOR_SEPARATOR

    def __repr__(self) -> str:
        return f"CallbackCodec({self.discriminator!r}, {self.payload_type.__name__})"

    def accepts(self, token: str) -> bool:
        """True when the token carries this codec's discriminator."""
        return token.startswith(self._prefix)

    def encode(self, payload: P) -> str:
        """Mint a token. Raises InvalidField / TokenTooLong instead of truncating."""
        if not isinstance(payload, self.payload_type):
            raise TypeError(
                f"{self!r} cannot encode {type(payload).__name__}"
            )
        parts: list[str] = []
        for spec in self.fields:
            value = getattr(payload, spec.name)
            error = _check(value, spec.constraints)
            if error is not None:
                raise InvalidField(self._prefix, spec.name, error)
            parts.append(f"{spec.name}{VALUE_SEPARATOR}{spec.dump(value)}")
        token = self._prefix + FIELD_SEPARATOR.join(parts)
        size = len(token.encode())
        if size > self.limit:
            raise TokenTooLong(token, f"{size} bytes exceeds the {self.limit}-byte limit")
        return token

    def decode(self, token: str) -> Result[P, DecodeError]:
        if not self.accepts(token):
            return Error(MalformedToken(token, f"expected discriminator {self.discriminator!r}"))
        if len(token.encode()) > self.limit:
            return Error(TokenTooLong(token, f"longer than {self.limit} bytes"))

        body = token[len(self._prefix):]
        raw_fields: dict[str, str] = {}
        for part in body.split(FIELD_SEPARATOR) if body else ():
            name, sep, raw = part.partition(VALUE_SEPARATOR)
            if not sep or name in raw_fields:
                return Error(MalformedToken(token, f"bad field segment {part!r}"))
            raw_fields[name] = raw

        expected = [spec.name for spec in self.fields]
        if sorted(raw_fields) != sorted(expected):
            return Error(MalformedToken(
                token, f"fields {sorted(raw_fields)} do not match {sorted(expected)}"
            ))

        values: dict[str, object] = {}
        for spec in self.fields:
            try:
                value = spec.load(raw_fields[spec.name])
            except ValueError as exc:
                return Error(InvalidField(token, spec.name, str(exc)))
            error = _check(value, spec.constraints)
            if error is not None:
                return Error(InvalidField(token, spec.name, error))
            values[spec.name] = value
        return Ok(self.payload_type(**values))


__all__ = (
    "CallbackCodec",
    "Constraint",
    "FieldSpec",
    "MaxLen",
    "Pattern",
    "Range",
    "TOKEN_LIMIT",
    "payload_fields",
)
