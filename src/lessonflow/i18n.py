"""Locale-keyed phrase lookup.

The flow never formats user-facing text itself: it hands a phrase key and
parameters to ``t`` and gets a string back::

    t("message.result", Locale.EN, name="Ann", date="March 10, 2024", time="14:00", period="Weekly")

Unknown phrases fall back to English, then to the key itself.
"""

from __future__ import annotations

import datetime as dt
import logging

from lessonflow.models import Locale

logger = logging.getLogger(__name__)

_PHRASES: dict[Locale, dict[str, str]] = {
    Locale.EN: {
        "locale.name": "🇬🇧 English",
        "message.start": "Hi! Send /create to book a lesson or /events to see your lessons.",
        "message.choose_date": "Choose a date",
        "message.choose_time": "Choose a lesson time",
        "message.choose_period": "How often do you want to study?",
        "message.choose_locale": "Choose a language",
        "message.locale_set": "Language set: {locale}",
        "message.no_free_hours": "No free time left on {date}. Choose another date",
        "message.slot_taken": "{time} is already taken. Choose another time",
        "message.result": "{name}, your lesson is booked: {date} at {time}, {period}",
        "message.use_buttons": "Please use the buttons.",
        "message.failure": "Something went wrong. Please try again.",
        "message.stale": "This booking is no longer active. Send /create to start over.",
        "message.no_events": "You have no lessons yet. Send /create to book one.",
        "message.events": "Your lessons",
        "message.event_actions": "Lesson on {date} at {time}",
        "message.event_missing": "This lesson no longer exists.",
        "message.event_cancelled": "Lesson on {date} at {time} is cancelled",
        "message.event_short_info_once": "{date} ({day}) at {time}",
        "message.event_short_info_weekly": "{period}: {day}s at {time}, from {date}",
        "message.event_short_info_monthly": "{period}: from {date} ({day}) at {time}",
        "period.once": "Once",
        "period.weekly": "Weekly",
        "period.monthly": "Monthly",
        "actions.cancel.title": "❌ Cancel lesson",
        "actions.reschedule.title": "🔁 Reschedule",
        "date.format": "{month} {day}, {year}",
    },
    Locale.RU: {
        "locale.name": "🇷🇺 Русский",
        "message.start": "Привет! Отправьте /create, чтобы записаться, или /events, чтобы посмотреть занятия.",
        "message.choose_date": "Выберите дату",
        "message.choose_time": "Выберите время занятия",
        "message.choose_period": "Как часто хотите заниматься?",
        "message.choose_locale": "Выберите язык",
        "message.locale_set": "Язык изменён: {locale}",
        "message.no_free_hours": "На {date} свободного времени нет. Выберите другую дату",
        "message.slot_taken": "Время {time} уже занято. Выберите другое",
        "message.result": "{name}, вы записаны: {date} в {time}, {period}",
        "message.use_buttons": "Пожалуйста, используйте кнопки.",
        "message.failure": "Что-то пошло не так. Попробуйте ещё раз.",
        "message.stale": "Эта запись уже неактуальна. Отправьте /create, чтобы начать заново.",
        "message.no_events": "У вас пока нет занятий. Отправьте /create, чтобы записаться.",
        "message.events": "Ваши занятия",
        "message.event_actions": "Занятие {date} в {time}",
        "message.event_missing": "Этого занятия больше нет.",
        "message.event_cancelled": "Занятие {date} в {time} отменено",
        "message.event_short_info_once": "{date} ({day}) в {time}",
        "message.event_short_info_weekly": "{period}: {day} в {time}, с {date}",
        "message.event_short_info_monthly": "{period}: с {date} ({day}) в {time}",
        "period.once": "Один раз",
        "period.weekly": "Каждую неделю",
        "period.monthly": "Каждый месяц",
        "actions.cancel.title": "❌ Отменить занятие",
        "actions.reschedule.title": "🔁 Перенести",
        "date.format": "{day} {month} {year}",
    },
}

_MONTHS: dict[Locale, tuple[str, ...]] = {
    Locale.EN: (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    Locale.RU: (
        "января", "февраля", "марта", "апреля", "мая", "июня",
        "июля", "августа", "сентября", "октября", "ноября", "декабря",
    ),
}

_WEEKDAYS: dict[Locale, tuple[str, ...]] = {
    Locale.EN: ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    Locale.RU: ("понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье"),
}


def t(phrase: str, locale: Locale, **params: object) -> str:
    """Look up ``phrase`` in ``locale`` and format it with ``params``."""
    template = _PHRASES[locale].get(phrase)
    if template is None:
        template = _PHRASES[Locale.EN].get(phrase)
        if template is None:
            logger.warning("Missing phrase %r", phrase)
            return phrase
    return template.format(**params)


def localize_date(value: dt.date, locale: Locale) -> str:
    return t(
        "date.format",
        locale,
        day=value.day,
        month=_MONTHS[locale][value.month - 1],
        year=value.year,
    )


def weekday_name(value: dt.date, locale: Locale) -> str:
    return _WEEKDAYS[locale][value.weekday()]


def format_hour(hour: int) -> str:
    return f"{hour}:00"


def resolve_locale(language_code: str | None, default: Locale) -> Locale:
    """Map a Telegram ``language_code`` ("ru", "en-US", ...) onto a supported locale."""
    if not language_code:
        return default
    primary = language_code.split("-")[0].lower()
    for locale in Locale:
        if locale.value == primary:
            return locale
    return default


__all__ = (
    "format_hour",
    "localize_date",
    "resolve_locale",
    "t",
    "weekday_name",
)
