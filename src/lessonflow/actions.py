"""Action kinds and their payloads — one frozen dataclass per button kind.

``Action`` is the tagged union the dispatcher matches on exhaustively::

    match action:
        case CreateDate(date=d): ...
        case PickTime(time=h): ...

Payload annotations double as the wire schema read by ``CallbackCodec``.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from lessonflow.codec import MaxLen, Pattern, Range
from lessonflow.models import ENTITY_ID_PATTERN, MAX_ENTITY_ID_LENGTH, EventAction, Locale, Period


class ActionKind(Enum):
    CREATE_DATE = "create-date"
    NEXT_DATES = "next-dates"
    PREVIOUS_DATES = "previous-dates"
    TIME = "time"
    PERIOD = "period"
    LOCALE = "locale"
    ENTITY_ID = "entity-id"
    ENTITY_ACTION = "entity-action"


@dataclass(frozen=True, slots=True)
class CreateDate:
    """Select this date for the draft."""

    date: dt.date


@dataclass(frozen=True, slots=True)
class NextDates:
    """Show the window after the one starting at ``date``."""

    date: dt.date


@dataclass(frozen=True, slots=True)
class PreviousDates:
    """Show the window before the one starting at ``date``."""

    date: dt.date


@dataclass(frozen=True, slots=True)
class PickTime:
    time: Annotated[int, Range(0, 23)]


@dataclass(frozen=True, slots=True)
class PickPeriod:
    period: Period


@dataclass(frozen=True, slots=True)
class SetLocale:
    locale: Locale


@dataclass(frozen=True, slots=True)
class OpenEvent:
    id: Annotated[str, MaxLen(MAX_ENTITY_ID_LENGTH), Pattern(ENTITY_ID_PATTERN)]


@dataclass(frozen=True, slots=True)
class ApplyEventAction:
    action: EventAction
    id: Annotated[str, MaxLen(MAX_ENTITY_ID_LENGTH), Pattern(ENTITY_ID_PATTERN)]


type Action = (
    CreateDate
    | NextDates
    | PreviousDates
    | PickTime
    | PickPeriod
    | SetLocale
    | OpenEvent
    | ApplyEventAction
)


__all__ = (
    "Action",
    "ActionKind",
    "ApplyEventAction",
    "CreateDate",
    "NextDates",
    "OpenEvent",
    "PickPeriod",
    "PickTime",
    "PreviousDates",
    "SetLocale",
)
