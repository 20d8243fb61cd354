"""Domain values shared by the codec, keyboards and dispatcher.

Enums are closed sets known up front; records mirror what the remote
lesson store returns and are never owned by the bot.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum


class Locale(Enum):
    EN = "en"
    RU = "ru"


class Period(Enum):
    """Recurrence of a booked lesson."""

    ONCE = "once"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class EventAction(Enum):
    """What a user can do with an already booked lesson."""

    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


# Remote store ids are 24-char hex object ids. Ids are limited to an alphabet
# that needs no escaping, so an id of any allowed length fits a token.
MAX_ENTITY_ID_LENGTH = 24
ENTITY_ID_PATTERN = rf"[0-9A-Za-z_-]{{1,{MAX_ENTITY_ID_LENGTH}}}"


@dataclass(frozen=True, slots=True)
class EventRecord:
    """A lesson record as the store sees it.

    Drafts are records with ``finalized=False``; date, time and period are
    filled in step by step while the user walks the creation flow.
    """

    id: str
    name: str
    owner: int
    contact: str = ""
    date: date | None = None
    time: int | None = None
    period: Period | None = None
    finalized: bool = False

    @property
    def is_complete(self) -> bool:
        return self.date is not None and self.time is not None and self.period is not None

    @classmethod
    def from_json(cls, data: Mapping[str, object]) -> EventRecord:
        """Build a record from the store's JSON shape (``_id`` or ``id``)."""
        raw_id = data.get("id", data.get("_id"))
        if not isinstance(raw_id, str) or re.fullmatch(ENTITY_ID_PATTERN, raw_id) is None:
            raise ValueError(f"id {raw_id!r} is not a store object id")
        raw_date = data.get("date")
        raw_time = data.get("time")
        raw_period = data.get("period")
        return cls(
            id=raw_id,
            name=str(data.get("name", "")),
            owner=int(data.get("userId", data.get("owner", 0))),  # type: ignore[arg-type]
            contact=str(data.get("tg", data.get("contact", "")) or ""),
            date=date.fromisoformat(str(raw_date)[:10]) if raw_date else None,
            time=int(raw_time) if raw_time is not None else None,  # type: ignore[arg-type]
            period=Period(str(raw_period).lower()) if raw_period else None,
            finalized=bool(data.get("finalized", False)),
        )


@dataclass(frozen=True, slots=True)
class DraftUpdate:
    """Partial fields written onto a user's draft. ``None`` means untouched."""

    date: date | None = None
    time: int | None = None
    period: Period | None = None
    finalize: bool = False

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {}
        if self.date is not None:
            out["date"] = self.date.isoformat()
        if self.time is not None:
            out["time"] = self.time
        if self.period is not None:
            out["period"] = self.period.value
        if self.finalize:
            out["finalized"] = True
        return out


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    """Transport-neutral view of a text message."""

    chat_id: int
    user_id: int
    text: str
    language_code: str | None = None
    first_name: str = ""
    username: str | None = None


@dataclass(frozen=True, slots=True)
class CallbackEvent:
    """Transport-neutral view of an inline button press."""

    chat_id: int
    message_id: int
    user_id: int
    token: str
    language_code: str | None = None


__all__ = (
    "CallbackEvent",
    "DraftUpdate",
    "ENTITY_ID_PATTERN",
    "EventAction",
    "EventRecord",
    "IncomingMessage",
    "Locale",
    "MAX_ENTITY_ID_LENGTH",
    "Period",
)
