"""UITheme — icons and arrows used on keyboard buttons.

Phrases live in ``lessonflow.i18n``; the theme only carries the
locale-independent glyphs, grouped in frozen dataclasses with defaults.

    from lessonflow.uilib import UITheme, NavUI

    theme = UITheme(nav=NavUI(prev="◀", next="▶"))
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class NavUI:
    """Pagination arrows."""

    prev: str = "⬅️"
    next: str = "➡️"


@dataclass(frozen=True, slots=True)
class DisplayUI:
    """Icons prefixed to step buttons."""

    calendar: str = "\U0001f4c5"
    clock: str = "\U0001f558"


@dataclass(frozen=True, slots=True)
class UITheme:
    """Top-level theme container.

    Override sub-dataclasses to customize glyphs::

        theme = UITheme(display=DisplayUI(clock="⏰"))
    """

    nav: NavUI = field(default_factory=NavUI)
    display: DisplayUI = field(default_factory=DisplayUI)


DEFAULT_THEME = UITheme()


__all__ = (
    "NavUI",
    "DisplayUI",
    "UITheme",
    "DEFAULT_THEME",
)
