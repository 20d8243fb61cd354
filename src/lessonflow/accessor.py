"""Lesson store accessors — the only durable state the flow touches.

``EventAccessor`` is the protocol the dispatcher depends on. Two
implementations:

- ``TrpcEventAccessor`` — talks to the lesson server's tRPC HTTP endpoint.
- ``MemoryEventStore`` — in-process store for tests and local runs.

Every call is awaited; failures surface as ``AccessorError`` and a
missing draft or record as its ``RecordNotFound`` subclass.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from itertools import count
from typing import Protocol, runtime_checkable

import httpx

from lessonflow.errors import AccessorError, RecordNotFound
from lessonflow.models import DraftUpdate, EventRecord, Locale

logger = logging.getLogger(__name__)


@runtime_checkable
class EventAccessor(Protocol):
    """Remote-procedure view of the lesson store."""

    async def create_draft(self, name: str, user_id: int, contact: str) -> str: ...

    async def update_draft(self, user_id: int, update: DraftUpdate) -> EventRecord: ...

    async def get_draft(self, user_id: int) -> EventRecord | None: ...

    async def get_busy_hours(self, day: dt.date) -> list[int]: ...

    async def list_records(self, user_id: int) -> list[EventRecord]: ...

    async def get_record(self, record_id: str) -> EventRecord | None: ...

    async def delete_record(self, record_id: str) -> None: ...

    async def get_user_locale(self, user_id: int) -> Locale | None: ...

    async def set_user_locale(self, user_id: int, locale: Locale) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# In-memory store
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class MemoryEventStore:
    """EventAccessor backed by dicts.

    One draft per user; finalizing a draft moves it into ``records``. Busy
    hours are the times of finalized lessons on a given date.
    """

    records: dict[str, EventRecord] = field(default_factory=lambda: dict[str, EventRecord]())
    drafts: dict[int, EventRecord] = field(default_factory=lambda: dict[int, EventRecord]())
    locales: dict[int, Locale] = field(default_factory=lambda: dict[int, Locale]())
    _ids: count[int] = field(default_factory=lambda: count(1))

    async def create_draft(self, name: str, user_id: int, contact: str) -> str:
        draft_id = f"{next(self._ids):024x}"
        self.drafts[user_id] = EventRecord(id=draft_id, name=name, owner=user_id, contact=contact)
        return draft_id

    async def update_draft(self, user_id: int, update: DraftUpdate) -> EventRecord:
        draft = self.drafts.get(user_id)
        if draft is None:
            raise RecordNotFound(f"No draft for user {user_id}")
        draft = replace(
            draft,
            date=update.date if update.date is not None else draft.date,
            time=update.time if update.time is not None else draft.time,
            period=update.period if update.period is not None else draft.period,
        )
        if update.finalize:
            draft = replace(draft, finalized=True)
            del self.drafts[user_id]
            self.records[draft.id] = draft
        else:
            self.drafts[user_id] = draft
        return draft

    async def get_draft(self, user_id: int) -> EventRecord | None:
        return self.drafts.get(user_id)

    async def get_busy_hours(self, day: dt.date) -> list[int]:
        return sorted(
            r.time for r in self.records.values() if r.date == day and r.time is not None
        )

    async def list_records(self, user_id: int) -> list[EventRecord]:
        owned = [r for r in self.records.values() if r.owner == user_id]
        return sorted(owned, key=lambda r: (r.date or dt.date.min, r.time or 0))

    async def get_record(self, record_id: str) -> EventRecord | None:
        return self.records.get(record_id)

    async def delete_record(self, record_id: str) -> None:
        if self.records.pop(record_id, None) is None:
            raise RecordNotFound(f"No record {record_id}")

    async def get_user_locale(self, user_id: int) -> Locale | None:
        return self.locales.get(user_id)

    async def set_user_locale(self, user_id: int, locale: Locale) -> None:
        self.locales[user_id] = locale


# ═══════════════════════════════════════════════════════════════════════════════
# tRPC over HTTP
# ═══════════════════════════════════════════════════════════════════════════════


class TrpcEventAccessor:
    """EventAccessor for a tRPC lesson server.

    Queries go out as ``GET /<procedure>?input=<json>``, mutations as
    ``POST /<procedure>`` with a JSON body. Responses are unwrapped from
    ``{"result": {"data": ...}}``; a tRPC ``NOT_FOUND`` error becomes
    ``RecordNotFound``.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, procedure: str, payload: object, *, mutation: bool = False) -> object:
        try:
            if mutation:
                response = await self._client.post(f"/{procedure}", json=payload)
            else:
                response = await self._client.get(
                    f"/{procedure}", params={"input": json.dumps(payload)}
                )
        except httpx.HTTPError as exc:
            raise AccessorError(f"{procedure}: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise AccessorError(f"{procedure}: invalid JSON response ({response.status_code})") from exc
        if not isinstance(body, dict):
            raise AccessorError(f"{procedure}: unexpected response shape")

        if "error" in body:
            error = body["error"] if isinstance(body["error"], dict) else {}
            data = error.get("data") if isinstance(error.get("data"), dict) else {}
            message = error.get("message", "unknown error")
            if data.get("code") == "NOT_FOUND" or response.status_code == 404:
                raise RecordNotFound(f"{procedure}: {message}")
            raise AccessorError(f"{procedure}: {message}")
        if response.is_error:
            raise AccessorError(f"{procedure}: HTTP {response.status_code}")

        result = body.get("result", {})
        if not isinstance(result, dict):
            raise AccessorError(f"{procedure}: unexpected result shape")
        logger.debug("tRPC %s ok", procedure)
        return result.get("data")

    async def create_draft(self, name: str, user_id: int, contact: str) -> str:
        data = await self._call(
            "events.create", {"name": name, "userId": user_id, "tg": contact}, mutation=True,
        )
        if isinstance(data, dict):
            return str(data.get("id", data.get("_id")))
        return str(data)

    async def update_draft(self, user_id: int, update: DraftUpdate) -> EventRecord:
        data = await self._call(
            "events.edit", {"userId": user_id, **update.to_json()}, mutation=True,
        )
        return _record(data, "events.edit")

    async def get_draft(self, user_id: int) -> EventRecord | None:
        data = await self._call("events.getDraft", {"userId": user_id})
        return _record(data, "events.getDraft") if data else None

    async def get_busy_hours(self, day: dt.date) -> list[int]:
        data = await self._call("events.getBusyHours", day.isoformat())
        return _hours(data, "events.getBusyHours")

    async def list_records(self, user_id: int) -> list[EventRecord]:
        data = await self._call("events.list", {"userId": user_id})
        return [
            _record(item, "events.list")
            for item in _expect_sequence(data, "events.list")
        ]

    async def get_record(self, record_id: str) -> EventRecord | None:
        try:
            data = await self._call("events.get", {"id": record_id})
        except RecordNotFound:
            return None
        return _record(data, "events.get") if data else None

    async def delete_record(self, record_id: str) -> None:
        await self._call("events.delete", {"id": record_id}, mutation=True)

    async def get_user_locale(self, user_id: int) -> Locale | None:
        data = await self._call("users.getLocale", {"userId": user_id})
        if not data:
            return None
        try:
            return Locale(str(data))
        except ValueError:
            logger.warning("Store returned unsupported locale %r for user %s", data, user_id)
            return None

    async def set_user_locale(self, user_id: int, locale: Locale) -> None:
        await self._call("users.setLocale", {"userId": user_id, "locale": locale.value}, mutation=True)


def _record(data: object, procedure: str) -> EventRecord:
    try:
        return EventRecord.from_json(_expect_mapping(data, procedure))
    except (TypeError, ValueError) as exc:
        raise AccessorError(f"{procedure}: malformed record: {exc}") from exc


def _hours(data: object, procedure: str) -> list[int]:
    hours = _expect_sequence(data, procedure)
    if not all(isinstance(hour, int) and not isinstance(hour, bool) for hour in hours):
        raise AccessorError(f"{procedure}: expected integer hours, got {hours!r}")
    return [int(hour) for hour in hours]


def _expect_mapping(data: object, procedure: str) -> dict[str, object]:
    if not isinstance(data, dict):
        raise AccessorError(f"{procedure}: expected an object, got {type(data).__name__}")
    return data


def _expect_sequence(data: object, procedure: str) -> Sequence[object]:
    if not isinstance(data, list):
        raise AccessorError(f"{procedure}: expected a list, got {type(data).__name__}")
    return data


__all__ = (
    "EventAccessor",
    "MemoryEventStore",
    "TrpcEventAccessor",
)
