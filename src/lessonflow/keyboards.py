"""Keyboard builders — one pure function per flow step.

Every builder takes plain values (dates, hours, records, locale) plus the
registry used to mint tokens, and returns a ``Keyboard``. None of them
touch the transport or the lesson store, so the same inputs always yield
the same token set and a redelivered update re-renders identically.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Sequence

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
from lessonflow.i18n import format_hour, localize_date, t, weekday_name
from lessonflow.models import EventAction, EventRecord, Locale, Period
from lessonflow.registry import ActionRegistry
from lessonflow.uilib.keyboard import Button, Keyboard, build_column_grid
from lessonflow.uilib.theme import DEFAULT_THEME, UITheme

DEFAULT_DATES_WINDOW = 7


def dates_window(pivot: dt.date, size: int = DEFAULT_DATES_WINDOW) -> list[dt.date]:
    """``size`` consecutive days starting at ``pivot``."""
    return [pivot + dt.timedelta(days=offset) for offset in range(size)]


def last_pivot(size: int = DEFAULT_DATES_WINDOW) -> dt.date:
    """Latest pivot whose whole window still fits before ``date.max``."""
    return dt.date.max - dt.timedelta(days=size - 1)


def shift_pivot(pivot: dt.date, today: dt.date, forward: bool, size: int = DEFAULT_DATES_WINDOW) -> dt.date:
    """Pivot of the neighbouring window, clamped to ``[today, last_pivot(size)]``."""
    step = dt.timedelta(days=size)
    last = last_pivot(size)
    if forward:
        shifted = pivot + step if pivot <= last - step else last
    else:
        shifted = pivot - step if pivot >= dt.date.min + step else today
    return min(max(shifted, today), last)


def date_keyboard(
    registry: ActionRegistry,
    locale: Locale,
    today: dt.date,
    pivot: dt.date | None = None,
    window: int = DEFAULT_DATES_WINDOW,
    theme: UITheme = DEFAULT_THEME,
) -> Keyboard:
    """Date step: one row per day in the window, then the pagination row.

    The "previous" arrow only shows off the initial window, so the user can
    never page back past today.
    """
    start = min(pivot or today, last_pivot(window))
    items = [
        (
            f"{theme.display.calendar} {localize_date(day, locale)}",
            registry.encode(CreateDate(date=day)),
        )
        for day in dates_window(start, window)
    ]
    nav: list[Button] = []
    if start != today:
        nav.append(Button(theme.nav.prev, registry.encode(PreviousDates(date=start))))
    nav.append(Button(theme.nav.next, registry.encode(NextDates(date=start))))
    return build_column_grid(items) + Keyboard((tuple(nav),))


def available_hours(start_hour: int, end_hour: int, busy_hours: Iterable[int]) -> list[int]:
    """Hours in ``[start_hour, end_hour)`` that are not booked, ascending."""
    busy = set(busy_hours)
    return [hour for hour in range(start_hour, end_hour) if hour not in busy]


def time_keyboard(
    registry: ActionRegistry,
    start_hour: int,
    end_hour: int,
    busy_hours: Iterable[int],
    theme: UITheme = DEFAULT_THEME,
) -> Keyboard:
    """Time step: one row per free hour."""
    items = [
        (f"{theme.display.clock} {format_hour(hour)}", registry.encode(PickTime(time=hour)))
        for hour in available_hours(start_hour, end_hour, busy_hours)
    ]
    return build_column_grid(items)


def period_label(period: Period, locale: Locale) -> str:
    return t(f"period.{period.value}", locale)


def period_keyboard(
    registry: ActionRegistry,
    locale: Locale,
    periods: Sequence[Period] = tuple(Period),
) -> Keyboard:
    items = [
        (period_label(period, locale), registry.encode(PickPeriod(period=period)))
        for period in periods
    ]
    return build_column_grid(items)


def locale_keyboard(registry: ActionRegistry) -> Keyboard:
    """Locale step: each button names its locale in that locale."""
    items = [
        (t("locale.name", locale), registry.encode(SetLocale(locale=locale)))
        for locale in Locale
    ]
    return build_column_grid(items)


def event_summary(record: EventRecord, locale: Locale) -> str:
    """One-line, period-specific description of a booked lesson."""
    if record.date is None or record.time is None or record.period is None:
        return record.name
    return t(
        f"message.event_short_info_{record.period.value}",
        locale,
        period=period_label(record.period, locale),
        day=weekday_name(record.date, locale),
        date=localize_date(record.date, locale),
        time=format_hour(record.time),
    )


def events_keyboard(registry: ActionRegistry, records: Sequence[EventRecord], locale: Locale) -> Keyboard:
    """Entity list step: one row per lesson."""
    items = [
        (event_summary(record, locale), registry.encode(OpenEvent(id=record.id)))
        for record in records
    ]
    return build_column_grid(items)


def event_actions_keyboard(
    registry: ActionRegistry,
    event_id: str,
    locale: Locale,
    actions: Sequence[EventAction] = tuple(EventAction),
) -> Keyboard:
    """Entity action step: one row per action on the given lesson."""
    items = [
        (
            t(f"actions.{action.value}.title", locale),
            registry.encode(ApplyEventAction(action=action, id=event_id)),
        )
        for action in actions
    ]
    return build_column_grid(items)


__all__ = (
    "DEFAULT_DATES_WINDOW",
    "available_hours",
    "date_keyboard",
    "dates_window",
    "event_actions_keyboard",
    "event_summary",
    "events_keyboard",
    "last_pivot",
    "locale_keyboard",
    "period_keyboard",
    "period_label",
    "shift_pivot",
    "time_keyboard",
)
