"""Tests for lessonflow.keyboards — per-step keyboard builders."""

from __future__ import annotations

from datetime import date, timedelta

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
from lessonflow.keyboards import (
    available_hours,
    date_keyboard,
    dates_window,
    event_actions_keyboard,
    event_summary,
    events_keyboard,
    last_pivot,
    locale_keyboard,
    period_keyboard,
    shift_pivot,
    time_keyboard,
)
from lessonflow.models import EventAction, EventRecord, Locale, Period
from lessonflow.registry import default_registry
from lessonflow.uilib.keyboard import Keyboard, build_column_grid
from lessonflow.uilib.theme import DisplayUI, NavUI, UITheme

TODAY = date(2024, 3, 8)


# ═══════════════════════════════════════════════════════════════════════════════
# Grid primitives
# ═══════════════════════════════════════════════════════════════════════════════


class TestColumnGrid:
    def test_single_column(self) -> None:
        kb = build_column_grid([("a", "t:1"), ("b", "t:2")])
        assert len(kb) == 2
        assert kb.labels == ["a", "b"]

    def test_wraps_rows(self) -> None:
        kb = build_column_grid([("a", "1"), ("b", "2"), ("c", "3")], columns=2)
        assert [len(row) for row in kb] == [2, 1]

    def test_empty(self) -> None:
        assert len(build_column_grid([])) == 0

    def test_concat(self) -> None:
        kb = build_column_grid([("a", "1")]) + build_column_grid([("b", "2")])
        assert kb.tokens == ["1", "2"]


# ═══════════════════════════════════════════════════════════════════════════════
# Date step
# ═══════════════════════════════════════════════════════════════════════════════


class TestDateKeyboard:
    def test_window(self) -> None:
        days = dates_window(TODAY, 3)
        assert days == [date(2024, 3, 8), date(2024, 3, 9), date(2024, 3, 10)]

    def test_initial_window_has_only_next(self) -> None:
        registry = default_registry()
        kb = date_keyboard(registry, Locale.EN, TODAY)
        assert len(kb) == 8
        *day_rows, nav = kb.rows
        assert [row[0].token for row in day_rows] == [
            registry.encode(CreateDate(date=TODAY + timedelta(days=i))) for i in range(7)
        ]
        assert [b.token for b in nav] == [registry.encode(NextDates(date=TODAY))]

    def test_labels_localized(self) -> None:
        registry = default_registry()
        en = date_keyboard(registry, Locale.EN, TODAY, window=1)
        ru = date_keyboard(registry, Locale.RU, TODAY, window=1)
        assert en.labels[0] == "📅 March 8, 2024"
        assert ru.labels[0] == "📅 8 марта 2024"

    def test_later_window_has_previous(self) -> None:
        registry = default_registry()
        pivot = TODAY + timedelta(days=7)
        kb = date_keyboard(registry, Locale.EN, TODAY, pivot)
        nav = kb.rows[-1]
        assert [b.token for b in nav] == [
            registry.encode(PreviousDates(date=pivot)),
            registry.encode(NextDates(date=pivot)),
        ]
        assert kb.rows[0][0].token == registry.encode(CreateDate(date=pivot))

    def test_same_inputs_same_tokens(self) -> None:
        registry = default_registry()
        first = date_keyboard(registry, Locale.EN, TODAY)
        second = date_keyboard(default_registry(), Locale.EN, TODAY)
        assert first == second

    def test_custom_theme(self) -> None:
        theme = UITheme(nav=NavUI(prev="<", next=">"), display=DisplayUI(calendar="*"))
        kb = date_keyboard(default_registry(), Locale.EN, TODAY, TODAY + timedelta(days=7), 1, theme)
        assert kb.labels == ["* March 15, 2024", "<", ">"]

    def test_shift_pivot(self) -> None:
        assert shift_pivot(TODAY, TODAY, True, 7) == date(2024, 3, 15)
        assert shift_pivot(date(2024, 3, 15), TODAY, False, 7) == TODAY
        assert shift_pivot(date(2024, 3, 10), TODAY, False, 7) == TODAY

    def test_shift_pivot_at_calendar_bounds(self) -> None:
        assert last_pivot(7) == date(9999, 12, 25)
        assert shift_pivot(date(9999, 12, 31), TODAY, True, 7) == date(9999, 12, 25)
        assert shift_pivot(date(9999, 12, 20), TODAY, True, 7) == date(9999, 12, 25)
        assert shift_pivot(date(1, 1, 1), TODAY, False, 7) == TODAY

    def test_window_never_runs_past_last_date(self) -> None:
        registry = default_registry()
        kb = date_keyboard(registry, Locale.EN, TODAY, date(9999, 12, 31))
        *day_rows, _ = kb.rows
        assert [row[0].token for row in day_rows] == [
            registry.encode(CreateDate(date=date(9999, 12, 25 + i))) for i in range(7)
        ]


# ═══════════════════════════════════════════════════════════════════════════════
# Time step
# ═══════════════════════════════════════════════════════════════════════════════


class TestTimeKeyboard:
    def test_available_hours_excludes_busy(self) -> None:
        assert available_hours(9, 17, [9, 13]) == [10, 11, 12, 14, 15, 16]

    def test_busy_outside_range_ignored(self) -> None:
        assert available_hours(9, 12, [3, 20]) == [9, 10, 11]

    def test_tokens_match_free_hours(self) -> None:
        registry = default_registry()
        kb = time_keyboard(registry, 9, 17, [9, 13])
        assert kb.tokens == [
            registry.encode(PickTime(time=h)) for h in (10, 11, 12, 14, 15, 16)
        ]
        assert kb.labels[0] == "🕘 10:00"

    def test_all_busy(self) -> None:
        kb = time_keyboard(default_registry(), 9, 11, [9, 10])
        assert kb == Keyboard()


# ═══════════════════════════════════════════════════════════════════════════════
# Period and locale steps
# ═══════════════════════════════════════════════════════════════════════════════


class TestPeriodKeyboard:
    def test_all_periods(self) -> None:
        registry = default_registry()
        kb = period_keyboard(registry, Locale.EN)
        assert kb.labels == ["Once", "Weekly", "Monthly"]
        assert kb.tokens == [registry.encode(PickPeriod(period=p)) for p in Period]

    def test_subset(self) -> None:
        kb = period_keyboard(default_registry(), Locale.RU, [Period.WEEKLY])
        assert kb.labels == ["Каждую неделю"]


class TestLocaleKeyboard:
    def test_each_locale_in_own_language(self) -> None:
        registry = default_registry()
        kb = locale_keyboard(registry)
        assert kb.labels == ["🇬🇧 English", "🇷🇺 Русский"]
        assert kb.tokens == [registry.encode(SetLocale(locale=loc)) for loc in Locale]


# ═══════════════════════════════════════════════════════════════════════════════
# Entity steps
# ═══════════════════════════════════════════════════════════════════════════════


def _record(record_id: str, period: Period = Period.WEEKLY) -> EventRecord:
    return EventRecord(
        id=record_id,
        name="Ann",
        owner=1,
        date=date(2024, 3, 11),
        time=14,
        period=period,
        finalized=True,
    )


class TestEventKeyboards:
    def test_summary_per_period(self) -> None:
        assert event_summary(_record("a", Period.ONCE), Locale.EN) == "March 11, 2024 (Monday) at 14:00"
        assert event_summary(_record("a"), Locale.EN) == "Weekly: Mondays at 14:00, from March 11, 2024"

    def test_summary_of_incomplete_record(self) -> None:
        draft = EventRecord(id="d", name="Ann", owner=1)
        assert event_summary(draft, Locale.EN) == "Ann"

    def test_events_list(self) -> None:
        registry = default_registry()
        kb = events_keyboard(registry, [_record("a"), _record("b")], Locale.EN)
        assert kb.tokens == [
            registry.encode(OpenEvent(id="a")),
            registry.encode(OpenEvent(id="b")),
        ]

    def test_actions(self) -> None:
        registry = default_registry()
        kb = event_actions_keyboard(registry, "a", Locale.EN)
        assert kb.labels == ["❌ Cancel lesson", "🔁 Reschedule"]
        assert kb.tokens == [
            registry.encode(ApplyEventAction(action=EventAction.CANCEL, id="a")),
            registry.encode(ApplyEventAction(action=EventAction.RESCHEDULE, id="a")),
        ]
