"""Telegram entry point: python-telegram-bot application around the dispatcher."""

from __future__ import annotations

import logging
import sys

from telegram import Update
from telegram.error import Conflict
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from lookupbot.config import Settings, get_settings
from lookupbot.dispatcher import Invocation
from lookupbot.membership import telegram_membership_check
from lookupbot.services import Services, build_services
from lookupbot.tools.menu import IMMEDIATE_TOOLS
from lookupbot.transport import TelegramNotifier, TelegramResponder

logger = logging.getLogger(__name__)

# Callback prefixes routed to dispatcher commands of the same name
CALLBACK_COMMANDS = ("verify", "approve", "reject")


def parse_command(text: str) -> tuple[str, str | None]:
    """Split ``/name@bot rest of text`` into ``("name", "rest of text")``."""
    head, _, rest = text.strip().partition(" ")
    if "\n" in head:
        head, _, extra = head.partition("\n")
        rest = f"{extra} {rest}".strip() if rest else extra
    name = head.lstrip("/").split("@", 1)[0].lower()
    return name, rest.strip() or None


def parse_callback(data: str) -> tuple[str, str | None] | None:
    """Map button data to a dispatcher command and argument. None for unknown data.

    ``approve_123`` becomes ``("approve", "123")``, ``menu_lookup`` becomes
    ``("menu", "lookup")``. ``tool_<name>`` runs ``name`` directly when it takes
    no input, and otherwise asks for input through ``("tool", name)``.
    """
    prefix, sep, rest = data.partition("_")
    if not sep or not rest:
        return None
    if prefix in CALLBACK_COMMANDS:
        return prefix, rest
    if prefix == "menu":
        return "menu", rest
    if prefix == "tool":
        if rest in IMMEDIATE_TOOLS:
            return rest, None
        return "tool", rest
    return None


def _services(context: ContextTypes.DEFAULT_TYPE) -> Services:
    return context.application.bot_data["services"]


async def on_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None or not message.text:
        return
    name, argument = parse_command(message.text)
    await _services(context).dispatcher.execute(
        Invocation(
            actor_id=str(user.id),
            command=name,
            argument=argument,
            responder=TelegramResponder(update),
            display_name=user.first_name,
            handle=user.username,
        )
    )


async def on_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    if query is None or query.from_user is None:
        return
    await query.answer()
    parsed = parse_callback(query.data or "")
    if parsed is None:
        logger.debug("Ignoring callback %r.", query.data)
        return
    name, argument = parsed
    await _services(context).dispatcher.execute(
        Invocation(
            actor_id=str(query.from_user.id),
            command=name,
            argument=argument,
            responder=TelegramResponder(update),
            display_name=query.from_user.first_name,
            handle=query.from_user.username,
            is_callback=True,
        )
    )


async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Feed a plain-text message to the tool picked from the menu, if any."""
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None or not message.text:
        return
    services = _services(context)
    tool = services.pending.pop(str(user.id))
    if tool is None:
        return
    await services.dispatcher.execute(
        Invocation(
            actor_id=str(user.id),
            command=tool,
            argument=message.text,
            responder=TelegramResponder(update),
            display_name=user.first_name,
            handle=user.username,
        )
    )


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    err = context.error
    if isinstance(err, Conflict):
        logger.critical("Another instance is polling with this bot token; shutting down.")
        context.application.bot_data["conflict"] = True
        context.application.stop_running()
        return
    logger.error("Unhandled error while processing update %r", update, exc_info=err)


async def post_shutdown(application: Application) -> None:
    services: Services | None = application.bot_data.get("services")
    if services is not None:
        await services.api.close()


def build_application(settings: Settings) -> Application:
    application = (
        Application.builder()
        .token(settings.bot_token)
        .post_shutdown(post_shutdown)
        .build()
    )
    membership_check = None
    if settings.channel_id is not None:
        membership_check = telegram_membership_check(application.bot, settings.channel_id)
    services = build_services(settings, TelegramNotifier(application.bot), membership_check)
    application.bot_data["services"] = services

    application.add_handler(CommandHandler(services.dispatcher.command_names, on_command))
    application.add_handler(MessageHandler(filters.COMMAND, on_command))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))
    application.add_handler(CallbackQueryHandler(on_callback))
    application.add_error_handler(on_error)
    return application


def main() -> None:
    """Main entry point for the bot."""
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Error: Failed to load settings: {e}", file=sys.stderr)
        print("Please ensure BOT_TOKEN and ADMIN_USER_ID are set in environment or .env file", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Request URLs carry the bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)

    application = build_application(settings)
    logger.info("Starting polling.")
    application.run_polling(allowed_updates=Update.ALL_TYPES)
    if application.bot_data.get("conflict"):
        sys.exit(1)


if __name__ == "__main__":
    main()
