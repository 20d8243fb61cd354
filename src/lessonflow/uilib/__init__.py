"""uilib — keyboard primitives and glyph theme for the scheduling steps."""

from .theme import (
    NavUI,
    DisplayUI,
    UITheme,
    DEFAULT_THEME,
)

from .keyboard import (
    Button,
    Keyboard,
    build_column_grid,
    to_inline_keyboard,
)

__all__ = (
    "NavUI",
    "DisplayUI",
    "UITheme",
    "DEFAULT_THEME",
    "Button",
    "Keyboard",
    "build_column_grid",
    "to_inline_keyboard",
)
