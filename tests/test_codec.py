"""Tests for lessonflow.codec — callback token encode/decode."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Annotated

import pytest
from kungfu import Error, Ok

from lessonflow.actions import (
    ApplyEventAction,
    CreateDate,
    NextDates,
    OpenEvent,
    PickPeriod,
    PickTime,
    PreviousDates,
    SetLocale,
)
from lessonflow.codec import TOKEN_LIMIT, CallbackCodec, MaxLen, Pattern, Range, payload_fields
from lessonflow.errors import InvalidField, MalformedToken, TokenTooLong
from lessonflow.models import ENTITY_ID_PATTERN, MAX_ENTITY_ID_LENGTH, EventAction, Locale, Period


def _ok(result: object) -> object:
    match result:
        case Ok(value):
            return value
        case Error(err):
            raise AssertionError(f"expected Ok, got {err!r}")
    raise AssertionError(f"not a Result: {result!r}")


def _err(result: object) -> object:
    match result:
        case Error(err):
            return err
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")
    raise AssertionError(f"not a Result: {result!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Field inspection
# ═══════════════════════════════════════════════════════════════════════════════


class TestPayloadFields:
    def test_plain_and_annotated_fields(self) -> None:
        specs = payload_fields(ApplyEventAction)
        assert [s.name for s in specs] == ["action", "id"]
        assert specs[0].base_type is EventAction
        assert specs[1].base_type is str
        assert specs[1].constraints == (MaxLen(MAX_ENTITY_ID_LENGTH), Pattern(ENTITY_ID_PATTERN))

    def test_range_constraint(self) -> None:
        (spec,) = payload_fields(PickTime)
        assert spec.base_type is int
        assert spec.constraints == (Range(0, 23),)

    def test_rejects_non_dataclass(self) -> None:
        with pytest.raises(TypeError):
            payload_fields(int)

    def test_rejects_unsupported_type(self) -> None:
        @dataclass(frozen=True)
        class Bad:
            values: list[int]

        with pytest.raises(TypeError):
            payload_fields(Bad)


# ═══════════════════════════════════════════════════════════════════════════════
# Encoding
# ═══════════════════════════════════════════════════════════════════════════════


class TestEncode:
    def test_date_is_iso(self) -> None:
        codec = CallbackCodec("cd", CreateDate)
        assert codec.encode(CreateDate(date=date(2024, 3, 10))) == "cd:date=2024-03-10"

    def test_int(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert codec.encode(PickTime(time=14)) == "t:time=14"

    def test_enum_by_value(self) -> None:
        codec = CallbackCodec("p", PickPeriod)
        assert codec.encode(PickPeriod(period=Period.WEEKLY)) == "p:period=weekly"

    def test_multiple_fields_in_declaration_order(self) -> None:
        codec = CallbackCodec("ea", ApplyEventAction)
        token = codec.encode(ApplyEventAction(action=EventAction.CANCEL, id="abc"))
        assert token == "ea:action=cancel&id=abc"

    def test_separators_in_strings_are_escaped(self) -> None:
        codec = CallbackCodec("pg", _Page)
        token = codec.encode(_Page(n=1, q="a&b=c"))
        assert token == "pg:n=1&q=a%26b%3Dc"
        assert _ok(codec.decode(token)) == _Page(n=1, q="a&b=c")

    def test_deterministic(self) -> None:
        codec = CallbackCodec("nd", NextDates)
        payload = NextDates(date=date(2024, 12, 31))
        assert codec.encode(payload) == codec.encode(payload)

    def test_hour_out_of_range_raises(self) -> None:
        codec = CallbackCodec("t", PickTime)
        with pytest.raises(InvalidField) as exc_info:
            codec.encode(PickTime(time=24))
        assert exc_info.value.field_name == "time"

    def test_id_over_max_len_raises(self) -> None:
        codec = CallbackCodec("e", OpenEvent)
        with pytest.raises(InvalidField):
            codec.encode(OpenEvent(id="x" * (MAX_ENTITY_ID_LENGTH + 1)))

    def test_too_long_raises_instead_of_truncating(self) -> None:
        codec = CallbackCodec("pg", _Page)
        # 20 chars, but each escapes to three bytes
        with pytest.raises(TokenTooLong):
            codec.encode(_Page(n=1, q="&" * 20))

    def test_id_outside_alphabet_raises(self) -> None:
        codec = CallbackCodec("e", OpenEvent)
        for bad in ("урок", "a&b", "3f2504e0-4f89-11d3-9a0c-0305e82c3301", ""):
            with pytest.raises(InvalidField):
                codec.encode(OpenEvent(id=bad))

    def test_every_allowed_id_fits(self) -> None:
        codec = CallbackCodec("ea", ApplyEventAction)
        longest = "Z" * MAX_ENTITY_ID_LENGTH
        for action in EventAction:
            token = codec.encode(ApplyEventAction(action=action, id=longest))
            assert len(token.encode()) <= TOKEN_LIMIT

    def test_wrong_payload_type(self) -> None:
        codec = CallbackCodec("t", PickTime)
        with pytest.raises(TypeError):
            codec.encode(PickPeriod(period=Period.ONCE))  # type: ignore[arg-type]

    def test_discriminator_cannot_contain_separator(self) -> None:
        with pytest.raises(ValueError):
            CallbackCodec("a:b", PickTime)
        with pytest.raises(ValueError):
            CallbackCodec("", PickTime)


# ═══════════════════════════════════════════════════════════════════════════════
# Decoding
# ═══════════════════════════════════════════════════════════════════════════════


class TestDecode:
    def test_round_trip_each_kind(self) -> None:
        cases = [
            ("cd", CreateDate(date=date(2024, 3, 10))),
            ("nd", NextDates(date=date(2024, 1, 1))),
            ("pd", PreviousDates(date=date(2023, 12, 31))),
            ("t", PickTime(time=0)),
            ("t", PickTime(time=23)),
            ("p", PickPeriod(period=Period.MONTHLY)),
            ("l", SetLocale(locale=Locale.RU)),
            ("e", OpenEvent(id="65f1c0ffee0123456789abcd")),
            ("ea", ApplyEventAction(action=EventAction.RESCHEDULE, id="65f1c0ffee0123456789abcd")),
        ]
        for discriminator, payload in cases:
            codec = CallbackCodec(discriminator, type(payload))
            assert _ok(codec.decode(codec.encode(payload))) == payload

    def test_other_discriminator_is_malformed(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("p:time=14")), MalformedToken)

    def test_prefix_of_discriminator_is_not_accepted(self) -> None:
        codec = CallbackCodec("e", OpenEvent)
        assert not codec.accepts("ea:action=cancel&id=1")

    def test_non_numeric_hour(self) -> None:
        codec = CallbackCodec("t", PickTime)
        err = _err(codec.decode("t:time=noon"))
        assert isinstance(err, InvalidField)
        assert err.field_name == "time"

    def test_hour_out_of_range(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("t:time=42")), InvalidField)

    def test_non_canonical_values_rejected(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("t:time=014")), InvalidField)
        date_codec = CallbackCodec("cd", CreateDate)
        assert isinstance(_err(date_codec.decode("cd:date=20240310")), InvalidField)

    def test_bad_date(self) -> None:
        codec = CallbackCodec("cd", CreateDate)
        assert isinstance(_err(codec.decode("cd:date=2024-02-30")), InvalidField)

    def test_escaped_id_rejected(self) -> None:
        codec = CallbackCodec("e", OpenEvent)
        assert isinstance(_err(codec.decode("e:id=a%26b")), InvalidField)

    def test_unknown_enum_value(self) -> None:
        codec = CallbackCodec("p", PickPeriod)
        assert isinstance(_err(codec.decode("p:period=daily")), InvalidField)

    def test_missing_field(self) -> None:
        codec = CallbackCodec("ea", ApplyEventAction)
        assert isinstance(_err(codec.decode("ea:action=cancel")), MalformedToken)

    def test_extra_field(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("t:time=1&x=2")), MalformedToken)

    def test_duplicate_field(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("t:time=1&time=2")), MalformedToken)

    def test_segment_without_value_separator(self) -> None:
        codec = CallbackCodec("t", PickTime)
        assert isinstance(_err(codec.decode("t:time")), MalformedToken)

    def test_over_limit_token(self) -> None:
        codec = CallbackCodec("e", OpenEvent)
        assert isinstance(_err(codec.decode("e:id=" + "a" * TOKEN_LIMIT)), TokenTooLong)


# ═══════════════════════════════════════════════════════════════════════════════
# Custom payloads
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class _Page:
    n: Annotated[int, Range(1, 99)]
    q: str


class TestCustomPayload:
    def test_round_trip(self) -> None:
        codec = CallbackCodec("pg", _Page)
        payload = _Page(n=7, q="hello world")
        token = codec.encode(payload)
        assert token == "pg:n=7&q=hello%20world"
        assert _ok(codec.decode(token)) == payload

    def test_lower_bound(self) -> None:
        codec = CallbackCodec("pg", _Page)
        assert isinstance(_err(codec.decode("pg:n=0&q=x")), InvalidField)
