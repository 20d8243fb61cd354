"""Rendering-agnostic keyboards and their telegrinder conversion."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from telegrinder.tools.keyboard import InlineButton, InlineKeyboard


@dataclass(frozen=True, slots=True)
class Button:
    """One selectable action: display label + callback token."""

    label: str
    token: str


@dataclass(frozen=True, slots=True)
class Keyboard:
    """Ordered rows of buttons. Equal inputs build equal keyboards."""

    rows: tuple[tuple[Button, ...], ...] = ()

    def __iter__(self) -> Iterator[tuple[Button, ...]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __add__(self, other: Keyboard) -> Keyboard:
        return Keyboard(self.rows + other.rows)

    @property
    def buttons(self) -> list[Button]:
        return [button for row in self.rows for button in row]

    @property
    def tokens(self) -> list[str]:
        return [button.token for button in self.buttons]

    @property
    def labels(self) -> list[str]:
        return [button.label for button in self.buttons]


def build_column_grid(items: Sequence[tuple[str, str]], columns: int = 1) -> Keyboard:
    """Lay out (label, token) pairs in rows of ``columns`` buttons.

    Args:
        items: (label, token) pairs.
        columns: Buttons per row before wrapping.
    """
    rows: list[tuple[Button, ...]] = []
    row: list[Button] = []
    for label, token in items:
        row.append(Button(label=label, token=token))
        if len(row) >= columns:
            rows.append(tuple(row))
            row = []
    if row:
        rows.append(tuple(row))
    return Keyboard(tuple(rows))


def to_inline_keyboard(keyboard: Keyboard) -> InlineKeyboard:
    """Convert to a telegrinder InlineKeyboard, preserving rows."""
    kb = InlineKeyboard()
    for row in keyboard:
        for button in row:
            kb.add(InlineButton(text=button.label, callback_data=button.token))
        kb.row()
    return kb


__all__ = (
    "Button",
    "Keyboard",
    "build_column_grid",
    "to_inline_keyboard",
)
