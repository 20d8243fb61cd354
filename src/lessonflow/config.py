"""Process configuration read from the environment (and a ``.env`` file).

    TG_BOT_TOKEN=...        required
    SERVER_URL=...          tRPC endpoint, default http://localhost:$SERVER_PORT/trpc
    SERVER_PORT=3000
    START_HOUR=9            first bookable hour
    END_HOUR=17             end of business hours (exclusive)
    DATES_WINDOW=7          days per date page
    DEFAULT_LOCALE=en
    ACCESSOR_TIMEOUT=10     seconds
    LOG_LEVEL=INFO
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from lessonflow.dispatcher import FlowConfig
from lessonflow.models import Locale


class ConfigError(ValueError):
    """Missing or malformed environment setting."""


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Settings:
    bot_token: str
    server_url: str
    start_hour: int = 9
    end_hour: int = 17
    dates_window: int = 7
    default_locale: Locale = Locale.EN
    accessor_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``env`` (defaults to ``os.environ`` after loading ``.env``)."""
        if env is None:
            load_dotenv()
            env = os.environ

        token = env.get("TG_BOT_TOKEN", "").strip()
        if not token:
            raise ConfigError("TG_BOT_TOKEN is not set")

        port = _int(env, "SERVER_PORT", 3000)
        server_url = env.get("SERVER_URL") or f"http://localhost:{port}/trpc"

        start_hour = _int(env, "START_HOUR", 9)
        end_hour = _int(env, "END_HOUR", 17)
        if not 0 <= start_hour < end_hour <= 24:
            raise ConfigError(
                f"Need 0 <= START_HOUR < END_HOUR <= 24, got {start_hour}..{end_hour}"
            )

        dates_window = _int(env, "DATES_WINDOW", 7)
        if dates_window < 1:
            raise ConfigError(f"DATES_WINDOW must be positive, got {dates_window}")

        raw_locale = env.get("DEFAULT_LOCALE", Locale.EN.value).lower()
        try:
            default_locale = Locale(raw_locale)
        except ValueError:
            supported = ", ".join(locale.value for locale in Locale)
            raise ConfigError(f"DEFAULT_LOCALE must be one of {supported}, got {raw_locale!r}") from None

        return cls(
            bot_token=token,
            server_url=server_url,
            start_hour=start_hour,
            end_hour=end_hour,
            dates_window=dates_window,
            default_locale=default_locale,
            accessor_timeout=_float(env, "ACCESSOR_TIMEOUT", 10.0),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def flow(self) -> FlowConfig:
        return FlowConfig(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            dates_window=self.dates_window,
            default_locale=self.default_locale,
        )


__all__ = (
    "ConfigError",
    "Settings",
)
