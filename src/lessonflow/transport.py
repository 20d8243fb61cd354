"""Chat transport — outbound calls and FlowResult delivery.

``Transport`` is what delivery needs from the chat platform;
``TelegrinderTransport`` implements it on top of a telegrinder ``API``.
Delivery never raises: a failed send or delete is logged and dropped so
one user's broken chat cannot take down the handler for everyone else.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from kungfu import Error, Ok

from telegrinder import API
from telegrinder.types.objects import BotCommand

from lessonflow.dispatcher import Advance, Finish, FlowResult, Reject, Stay
from lessonflow.errors import TransportError
from lessonflow.models import CallbackEvent, IncomingMessage
from lessonflow.registry import CommandEntry
from lessonflow.uilib.keyboard import Keyboard, to_inline_keyboard

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    async def send_message(self, chat_id: int, text: str, keyboard: Keyboard | None = None) -> int: ...

    async def delete_message(self, chat_id: int, message_id: int) -> None: ...

    async def set_available_commands(self, commands: Sequence[CommandEntry]) -> None: ...


class TelegrinderTransport:
    """Transport over telegrinder's API client. Raises TransportError on failure."""

    def __init__(self, api: API) -> None:
        self.api = api

    async def send_message(self, chat_id: int, text: str, keyboard: Keyboard | None = None) -> int:
        if keyboard is not None and len(keyboard):
            result = await self.api.send_message(
                chat_id=chat_id, text=text, reply_markup=to_inline_keyboard(keyboard).get_markup(),
            )
        else:
            result = await self.api.send_message(chat_id=chat_id, text=text)
        match result:
            case Ok(sent):
                return sent.message_id
            case Error(err):
                raise TransportError(f"send_message to {chat_id} failed: {err}")

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        match await self.api.delete_message(chat_id=chat_id, message_id=message_id):
            case Ok(_):
                return
            case Error(err):
                raise TransportError(f"delete_message {chat_id}/{message_id} failed: {err}")

    async def set_available_commands(self, commands: Sequence[CommandEntry]) -> None:
        bot_commands = [BotCommand(command=c.command, description=c.description) for c in commands]
        match await self.api.set_my_commands(commands=bot_commands):
            case Ok(_):
                return
            case Error(err):
                raise TransportError(f"set_my_commands failed: {err}")


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery
# ═══════════════════════════════════════════════════════════════════════════════


async def _send(transport: Transport, chat_id: int, text: str, keyboard: Keyboard | None = None) -> None:
    try:
        await transport.send_message(chat_id, text, keyboard)
    except TransportError as exc:
        logger.warning("%s", exc)


async def deliver_message_result(transport: Transport, message: IncomingMessage, result: FlowResult) -> None:
    """Reply to a text message; nothing to clean up."""
    match result:
        case Advance(text=text, keyboard=kb) | Stay(text=text, keyboard=kb):
            await _send(transport, message.chat_id, text, kb)
        case Finish(text=text):
            await _send(transport, message.chat_id, text)
        case Reject(message=text):
            await _send(transport, message.chat_id, text)


async def deliver_callback_result(transport: Transport, event: CallbackEvent, result: FlowResult) -> None:
    """Replace the pressed keyboard message with the result.

    Reject keeps the original keyboard so the user can press again.
    """
    match result:
        case Reject(message=text):
            await _send(transport, event.chat_id, text)
            return
        case Advance(text=text, keyboard=kb) | Stay(text=text, keyboard=kb):
            pass
        case Finish(text=text):
            kb = None
    try:
        await transport.delete_message(event.chat_id, event.message_id)
    except TransportError as exc:
        logger.warning("%s", exc)
    await _send(transport, event.chat_id, text, kb)


__all__ = (
    "TelegrinderTransport",
    "Transport",
    "deliver_callback_result",
    "deliver_message_result",
)
