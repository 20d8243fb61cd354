"""Action and command registry — single source of truth for callback tokens.

Keyboards mint tokens through it, the dispatcher classifies incoming tokens
through it. Discriminators are unique and never contain ``:``, so the
``<discriminator>:`` prefix partitions the token space between kinds.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from kungfu import Error, Result

from lessonflow.actions import (
    Action,
    ActionKind,
    ApplyEventAction,
    CreateDate,
    NextDates,
    OpenEvent,
    PickPeriod,
    PickTime,
    PreviousDates,
    SetLocale,
)
from lessonflow.codec import DISCRIMINATOR_SEPARATOR, CallbackCodec
from lessonflow.errors import DecodeError, MalformedToken


@dataclass(frozen=True, slots=True)
class CommandEntry:
    """Registered command with metadata for the platform command menu."""

    command: str
    description: str
    order: int = 100


@dataclass(frozen=True, slots=True)
class ActionEntry:
    """Registered action kind with its codec."""

    kind: ActionKind
    codec: CallbackCodec[Action]

    @property
    def discriminator(self) -> str:
        return self.codec.discriminator


class CallbackCollision(ValueError):
    """Raised when two action kinds claim the same discriminator or payload."""


class CommandCollision(ValueError):
    """Raised when two entries claim the same command."""


@dataclass
class ActionRegistry:
    """Registry for action kinds and bot commands.

    Mutable while being built; validates uniqueness eagerly, so a collision
    is an immediate error at startup rather than a misrouted button press.
    """

    _entries: dict[ActionKind, ActionEntry] = field(default_factory=lambda: dict[ActionKind, ActionEntry]())
    _by_discriminator: dict[str, ActionEntry] = field(default_factory=lambda: dict[str, ActionEntry]())
    _by_type: dict[type, ActionEntry] = field(default_factory=lambda: dict[type, ActionEntry]())
    _commands: dict[str, CommandEntry] = field(default_factory=lambda: dict[str, CommandEntry]())

    def register(self, kind: ActionKind, discriminator: str, payload_type: type) -> None:
        """Bind an action kind to a discriminator and payload dataclass."""
        if kind in self._entries:
            raise CallbackCollision(f"Action kind {kind.value!r} already registered")
        if discriminator in self._by_discriminator:
            existing = self._by_discriminator[discriminator]
            raise CallbackCollision(
                f"Discriminator {discriminator!r} collision: "
                f"{existing.kind.value} vs {kind.value}"
            )
        if payload_type in self._by_type:
            existing = self._by_type[payload_type]
            raise CallbackCollision(
                f"Payload {payload_type.__name__} already bound to {existing.kind.value}"
            )
        entry = ActionEntry(kind=kind, codec=CallbackCodec(discriminator, payload_type))
        self._entries[kind] = entry
        self._by_discriminator[discriminator] = entry
        self._by_type[payload_type] = entry

    def register_command(self, command: str, description: str, order: int = 100) -> None:
        """Register a /command. Raises CommandCollision on duplicate."""
        if command in self._commands:
            raise CommandCollision(f"Command /{command} already registered")
        self._commands[command] = CommandEntry(command=command, description=description, order=order)

    def encode(self, payload: Action) -> str:
        entry = self._by_type.get(type(payload))
        if entry is None:
            raise TypeError(f"No action kind registered for {type(payload).__name__}")
        return entry.codec.encode(payload)

    def classify(self, token: str) -> ActionKind | None:
        """Action kind a token belongs to, or None when the discriminator is unknown."""
        discriminator, sep, _ = token.partition(DISCRIMINATOR_SEPARATOR)
        if not sep:
            return None
        entry = self._by_discriminator.get(discriminator)
        return entry.kind if entry is not None else None

    def decode(self, token: str) -> Result[Action, DecodeError]:
        kind = self.classify(token)
        if kind is None:
            return Error(MalformedToken(token, "unknown discriminator"))
        return self._entries[kind].codec.decode(token)

    def codec(self, kind: ActionKind) -> CallbackCodec[Action]:
        return self._entries[kind].codec

    @property
    def entries(self) -> Sequence[ActionEntry]:
        return list(self._entries.values())

    @property
    def commands(self) -> Sequence[CommandEntry]:
        """All registered commands, sorted by (order, command)."""
        return sorted(self._commands.values(), key=lambda c: (c.order, c.command))


def default_registry() -> ActionRegistry:
    """Registry with every scheduling step and the bot's commands."""
    registry = ActionRegistry()
    registry.register(ActionKind.CREATE_DATE, "cd", CreateDate)
    registry.register(ActionKind.NEXT_DATES, "nd", NextDates)
    registry.register(ActionKind.PREVIOUS_DATES, "pd", PreviousDates)
    registry.register(ActionKind.TIME, "t", PickTime)
    registry.register(ActionKind.PERIOD, "p", PickPeriod)
    registry.register(ActionKind.LOCALE, "l", SetLocale)
    registry.register(ActionKind.ENTITY_ID, "e", OpenEvent)
    registry.register(ActionKind.ENTITY_ACTION, "ea", ApplyEventAction)

    registry.register_command("start", "Start the bot", order=1)
    registry.register_command("create", "Book a lesson", order=2)
    registry.register_command("events", "My lessons", order=3)
    registry.register_command("locale", "Change language", order=4)
    return registry


__all__ = (
    "ActionEntry",
    "ActionRegistry",
    "CallbackCollision",
    "CommandCollision",
    "CommandEntry",
    "default_registry",
)
