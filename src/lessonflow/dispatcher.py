"""Flow dispatcher — turns one incoming update into one FlowResult.

No session state lives here: every step is rebuilt from the decoded token
plus what the lesson store says right now. Transitions:

    /create        -> create draft            -> date step
    next/prev      -> shift pivot             -> date step (Stay)
    create-date    -> busy hours, save date   -> time step
    time           -> busy re-check, save     -> period step
    period         -> busy re-check, finalize -> confirmation
    /events        -> list lessons            -> entity list
    entity-id      -> load lesson             -> entity actions
    entity-action  -> cancel / reschedule     -> confirmation / date step

A token that no longer matches the store re-renders the same step with
fresh data (Stay) and never mutates.

Reschedule creates the replacement draft before deleting the old lesson.
If the delete fails the user keeps the lesson plus a spare draft, which
the next /create overwrites; the reverse order could lose the lesson.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable
from dataclasses import dataclass

from kungfu import Error, Ok

from lessonflow.accessor import EventAccessor
from lessonflow.actions import (
    Action,
    ApplyEventAction,
    CreateDate,
    NextDates,
    OpenEvent,
    PickPeriod,
    PickTime,
    PreviousDates,
    SetLocale,
)
from lessonflow.errors import AccessorError, RecordNotFound, StaleStateError
from lessonflow.i18n import format_hour, localize_date, resolve_locale, t
from lessonflow.keyboards import (
    DEFAULT_DATES_WINDOW,
    available_hours,
    date_keyboard,
    event_actions_keyboard,
    events_keyboard,
    locale_keyboard,
    period_keyboard,
    period_label,
    shift_pivot,
    time_keyboard,
)
from lessonflow.models import (
    CallbackEvent,
    DraftUpdate,
    EventAction,
    EventRecord,
    IncomingMessage,
    Locale,
    Period,
)
from lessonflow.registry import ActionRegistry, default_registry
from lessonflow.uilib.keyboard import Keyboard
from lessonflow.uilib.theme import DEFAULT_THEME, UITheme

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Result algebra
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Advance:
    """Step accepted; render the next one."""

    text: str
    keyboard: Keyboard | None = None


@dataclass(frozen=True, slots=True)
class Stay:
    """Re-render the current step (pagination, stale token refresh)."""

    text: str
    keyboard: Keyboard | None = None


@dataclass(frozen=True, slots=True)
class Reject:
    """Input not usable. Nothing changed; shows a message."""

    message: str


@dataclass(frozen=True, slots=True)
class Finish:
    """Flow completed; confirmation without keyboard."""

    text: str


type FlowResult = Advance | Stay | Reject | Finish


# ═══════════════════════════════════════════════════════════════════════════════
# Dispatcher
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FlowConfig:
    """Business-hours range and date window."""

    start_hour: int = 9
    end_hour: int = 17
    dates_window: int = DEFAULT_DATES_WINDOW
    default_locale: Locale = Locale.EN


def parse_command(text: str) -> str | None:
    """``"/create@my_bot extra"`` -> ``"create"``; None for plain text."""
    if not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    return head.split("@", 1)[0].lower() or None


class FlowDispatcher:
    """Handles messages and button presses against an EventAccessor."""

    def __init__(
        self,
        accessor: EventAccessor,
        registry: ActionRegistry | None = None,
        config: FlowConfig = FlowConfig(),
        theme: UITheme = DEFAULT_THEME,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.accessor = accessor
        self.registry = registry or default_registry()
        self.config = config
        self.theme = theme
        self._today = today

    # --- entry points ---

    async def handle_message(self, message: IncomingMessage) -> FlowResult:
        fallback = resolve_locale(message.language_code, self.config.default_locale)
        try:
            locale = await self._locale_for(message.user_id, message.language_code)
            return await self._command(message, locale)
        except AccessorError:
            logger.exception("Store failure handling message from user %s", message.user_id)
            return Reject(t("message.failure", fallback))

    async def handle_callback(self, event: CallbackEvent) -> FlowResult:
        fallback = resolve_locale(event.language_code, self.config.default_locale)
        try:
            locale = await self._locale_for(event.user_id, event.language_code)
        except AccessorError:
            logger.exception("Store failure resolving locale for user %s", event.user_id)
            return Reject(t("message.failure", fallback))

        match self.registry.decode(event.token):
            case Ok(action):
                pass
            case Error(err):
                logger.warning("Rejected token from user %s: %s", event.user_id, err)
                return Reject(t("message.use_buttons", locale))

        logger.debug("User %s pressed %s", event.user_id, action)
        try:
            return await self._apply(action, event.user_id, locale)
        except (StaleStateError, RecordNotFound) as exc:
            logger.warning("Stale %s from user %s: %s", type(action).__name__, event.user_id, exc)
            return Stay(t("message.stale", locale))
        except AccessorError:
            logger.exception("Store failure applying %s for user %s", type(action).__name__, event.user_id)
            return Reject(t("message.failure", locale))

    # --- commands ---

    async def _command(self, message: IncomingMessage, locale: Locale) -> FlowResult:
        match parse_command(message.text):
            case "start":
                return Advance(t("message.start", locale))
            case "create":
                contact = f"@{message.username}" if message.username else ""
                draft_id = await self.accessor.create_draft(message.first_name, message.user_id, contact)
                logger.info("User %s started draft %s", message.user_id, draft_id)
                return self._date_step(locale)
            case "events":
                return await self._events_step(message.user_id, locale, refresh=False)
            case "locale":
                return Advance(t("message.choose_locale", locale), locale_keyboard(self.registry))
            case _:
                return Reject(t("message.use_buttons", locale))

    # --- callbacks ---

    async def _apply(self, action: Action, user_id: int, locale: Locale) -> FlowResult:
        match action:
            case NextDates(date=pivot):
                pivot = shift_pivot(pivot, self._today(), True, self.config.dates_window)
                return self._date_step(locale, pivot, stay=True)
            case PreviousDates(date=pivot):
                pivot = shift_pivot(pivot, self._today(), False, self.config.dates_window)
                return self._date_step(locale, pivot, stay=True)
            case CreateDate(date=day):
                return await self._select_date(day, user_id, locale)
            case PickTime(time=hour):
                return await self._select_time(hour, user_id, locale)
            case PickPeriod(period=period):
                return await self._select_period(period, user_id, locale)
            case SetLocale(locale=new_locale):
                await self.accessor.set_user_locale(user_id, new_locale)
                logger.info("User %s switched locale to %s", user_id, new_locale.value)
                return Finish(t("message.locale_set", new_locale, locale=t("locale.name", new_locale)))
            case OpenEvent(id=event_id):
                return await self._open_event(event_id, user_id, locale)
            case ApplyEventAction(action=event_action, id=event_id):
                return await self._apply_event_action(event_action, event_id, user_id, locale)

    async def _select_date(self, day: dt.date, user_id: int, locale: Locale) -> FlowResult:
        today = self._today()
        if day < today:
            logger.warning("User %s picked past date %s", user_id, day)
            return self._date_step(locale, stay=True)
        busy = await self.accessor.get_busy_hours(day)
        if not available_hours(self.config.start_hour, self.config.end_hour, busy):
            return Stay(
                t("message.no_free_hours", locale, date=localize_date(day, locale)),
                self._date_keyboard(locale, day),
            )
        await self.accessor.update_draft(user_id, DraftUpdate(date=day))
        logger.info("User %s set draft date %s", user_id, day)
        return Advance(t("message.choose_time", locale), self._time_keyboard(busy))

    async def _select_time(self, hour: int, user_id: int, locale: Locale) -> FlowResult:
        draft = await self._require_draft(user_id)
        if draft.date is None:
            logger.warning("User %s picked a time before a date", user_id)
            return self._date_step(locale, stay=True)
        busy = await self.accessor.get_busy_hours(draft.date)
        if hour not in available_hours(self.config.start_hour, self.config.end_hour, busy):
            logger.warning("User %s picked unavailable hour %s on %s", user_id, hour, draft.date)
            return Stay(
                t("message.slot_taken", locale, time=format_hour(hour)),
                self._time_keyboard(busy),
            )
        await self.accessor.update_draft(user_id, DraftUpdate(time=hour))
        logger.info("User %s set draft time %s", user_id, hour)
        return Advance(t("message.choose_period", locale), period_keyboard(self.registry, locale))

    async def _select_period(self, period: Period, user_id: int, locale: Locale) -> FlowResult:
        draft = await self._require_draft(user_id)
        if draft.date is None:
            logger.warning("User %s picked a period before a date", user_id)
            return self._date_step(locale, stay=True)
        busy = await self.accessor.get_busy_hours(draft.date)
        if draft.time is None:
            logger.warning("User %s picked a period before a time", user_id)
            return Stay(t("message.choose_time", locale), self._time_keyboard(busy))
        if draft.time in busy:
            logger.warning("Slot %s %s:00 taken before user %s finalized", draft.date, draft.time, user_id)
            return Stay(
                t("message.slot_taken", locale, time=format_hour(draft.time)),
                self._time_keyboard(busy),
            )
        record = await self.accessor.update_draft(user_id, DraftUpdate(period=period, finalize=True))
        logger.info("User %s booked %s", user_id, record.id)
        return Finish(self._confirmation(record, locale))

    async def _open_event(self, event_id: str, user_id: int, locale: Locale) -> FlowResult:
        record = await self._owned_record(event_id, user_id)
        if record is None:
            return await self._events_step(user_id, locale, refresh=True)
        return Advance(
            t(
                "message.event_actions",
                locale,
                date=localize_date(record.date, locale) if record.date else "",
                time=format_hour(record.time) if record.time is not None else "",
            ),
            event_actions_keyboard(self.registry, record.id, locale),
        )

    async def _apply_event_action(
        self, action: EventAction, event_id: str, user_id: int, locale: Locale,
    ) -> FlowResult:
        record = await self._owned_record(event_id, user_id)
        if record is None:
            return await self._events_step(user_id, locale, refresh=True)
        match action:
            case EventAction.CANCEL:
                await self.accessor.delete_record(record.id)
                logger.info("User %s cancelled %s", user_id, record.id)
                return Finish(t(
                    "message.event_cancelled",
                    locale,
                    date=localize_date(record.date, locale) if record.date else "",
                    time=format_hour(record.time) if record.time is not None else "",
                ))
            case EventAction.RESCHEDULE:
                draft_id = await self.accessor.create_draft(record.name, user_id, record.contact)
                await self.accessor.delete_record(record.id)
                logger.info("User %s rescheduling %s as draft %s", user_id, record.id, draft_id)
                return self._date_step(locale)

    # --- helpers ---

    async def _locale_for(self, user_id: int, language_code: str | None) -> Locale:
        stored = await self.accessor.get_user_locale(user_id)
        if stored is not None:
            return stored
        return resolve_locale(language_code, self.config.default_locale)

    async def _require_draft(self, user_id: int) -> EventRecord:
        draft = await self.accessor.get_draft(user_id)
        if draft is None:
            raise StaleStateError(f"user {user_id} has no draft")
        return draft

    async def _owned_record(self, event_id: str, user_id: int) -> EventRecord | None:
        record = await self.accessor.get_record(event_id)
        if record is None or record.owner != user_id:
            logger.warning("User %s referenced missing lesson %s", user_id, event_id)
            return None
        return record

    async def _events_step(self, user_id: int, locale: Locale, *, refresh: bool) -> FlowResult:
        records = await self.accessor.list_records(user_id)
        result = Stay if refresh else Advance
        if not records:
            return result(t("message.no_events", locale))
        text = t("message.events", locale)
        if refresh:
            text = f"{t('message.event_missing', locale)}\n\n{text}"
        return result(text, events_keyboard(self.registry, records, locale))

    def _date_keyboard(self, locale: Locale, pivot: dt.date | None = None) -> Keyboard:
        return date_keyboard(
            self.registry, locale, self._today(), pivot, self.config.dates_window, self.theme,
        )

    def _date_step(self, locale: Locale, pivot: dt.date | None = None, *, stay: bool = False) -> FlowResult:
        result = Stay if stay else Advance
        return result(t("message.choose_date", locale), self._date_keyboard(locale, pivot))

    def _time_keyboard(self, busy: list[int]) -> Keyboard:
        return time_keyboard(
            self.registry, self.config.start_hour, self.config.end_hour, busy, self.theme,
        )

    def _confirmation(self, record: EventRecord, locale: Locale) -> str:
        return t(
            "message.result",
            locale,
            name=record.name,
            date=localize_date(record.date, locale) if record.date else "",
            time=format_hour(record.time) if record.time is not None else "",
            period=period_label(record.period, locale) if record.period else "",
        )


__all__ = (
    "Advance",
    "FlowConfig",
    "FlowDispatcher",
    "FlowResult",
    "Finish",
    "Reject",
    "Stay",
    "parse_command",
)
