"""Telegram entry point — telegrinder wiring around FlowDispatcher.

    TG_BOT_TOKEN=... lessonflow

One message handler and one callback-query handler. Each converts the
telegrinder cute object into a transport-neutral event, asks the
dispatcher for a FlowResult and delivers it.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from kungfu import Option, Some

from telegrinder import API, Telegrinder, Token
from telegrinder.bot.cute_types.callback_query import CallbackQueryCute
from telegrinder.bot.cute_types.message import MessageCute
from telegrinder.bot.dispatch import Dispatch

from lessonflow.accessor import TrpcEventAccessor
from lessonflow.config import Settings
from lessonflow.dispatcher import FlowDispatcher
from lessonflow.errors import TransportError
from lessonflow.models import CallbackEvent, IncomingMessage
from lessonflow.registry import ActionRegistry
from lessonflow.transport import (
    TelegrinderTransport,
    Transport,
    deliver_callback_result,
    deliver_message_result,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _value[T](opt: Option[T], default: T) -> T:
    match opt:
        case Some(value):
            return value
        case _:
            return default


# ═══════════════════════════════════════════════════════════════════════════════
# Cute type -> event
# ═══════════════════════════════════════════════════════════════════════════════


def message_event(message: MessageCute) -> IncomingMessage | None:
    """None for updates without a sender or text (service messages, photos)."""
    match message.from_user:
        case Some(user):
            pass
        case _:
            return None
    match message.text:
        case Some(text):
            pass
        case _:
            return None
    return IncomingMessage(
        chat_id=message.chat.id,
        user_id=user.id,
        text=text,
        language_code=_value(user.language_code, None),
        first_name=user.first_name,
        username=_value(user.username, None),
    )


def callback_event(callback: CallbackQueryCute) -> CallbackEvent | None:
    """None when the button press carries no data or its message is gone."""
    match callback.data:
        case Some(token):
            pass
        case _:
            return None
    match callback.message_id:
        case Some(message_id):
            pass
        case _:
            return None
    # keyboard may sit in a group; inaccessible messages still carry their chat
    match callback.message:
        case Some(msg):
            chat_id = msg.v.chat.id
        case _:
            chat_id = callback.from_user.id
    return CallbackEvent(
        chat_id=chat_id,
        message_id=message_id,
        user_id=callback.from_user.id,
        token=token,
        language_code=_value(callback.from_user.language_code, None),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════


def make_handlers(
    dispatcher: FlowDispatcher,
    transport: Transport,
) -> tuple[Callable[[MessageCute], Awaitable[None]], Callable[[CallbackQueryCute], Awaitable[None]]]:
    """Build the message and callback-query handlers."""

    async def on_message(message: MessageCute) -> None:
        event = message_event(message)
        if event is None:
            return
        result = await dispatcher.handle_message(event)
        await deliver_message_result(transport, event, result)

    async def on_callback(callback: CallbackQueryCute) -> None:
        await callback.answer()
        event = callback_event(callback)
        if event is None:
            logger.warning("Callback from user %s without data or message", callback.from_user.id)
            return
        result = await dispatcher.handle_callback(event)
        await deliver_callback_result(transport, event, result)

    return on_message, on_callback


def build_dispatch(dispatcher: FlowDispatcher, transport: Transport) -> Dispatch:
    on_message, on_callback = make_handlers(dispatcher, transport)
    dp = Dispatch()
    dp.message()(on_message)
    dp.callback_query()(on_callback)
    return dp


async def publish_commands(transport: Transport, registry: ActionRegistry) -> None:
    try:
        await transport.set_available_commands(registry.commands)
    except TransportError as exc:
        logger.warning("%s", exc)
    else:
        logger.info("Published %d commands", len(registry.commands))


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    api = API(Token(settings.bot_token))
    accessor = TrpcEventAccessor(settings.server_url, timeout=settings.accessor_timeout)
    dispatcher = FlowDispatcher(accessor, config=settings.flow)
    transport = TelegrinderTransport(api)

    bot = Telegrinder(api, dispatch=build_dispatch(dispatcher, transport))
    bot.loop_wrapper.add_task(publish_commands(transport, dispatcher.registry))
    logger.info("Bot is running")
    bot.run_forever()


__all__ = (
    "build_dispatch",
    "callback_event",
    "main",
    "make_handlers",
    "message_event",
    "publish_commands",
)


if __name__ == "__main__":
    main()
