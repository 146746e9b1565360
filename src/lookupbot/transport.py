"""Outbound messaging: transport-neutral interfaces and the Telegram adapter.

The core only sees ``Responder`` (replies within one invocation) and
``Notifier`` (out-of-band messages to any identity). Formatting failures fall
back to a plain-text send of the same content. Replies longer than one
Telegram message go out as a text file instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import MessageLimit, ParseMode
from telegram.error import BadRequest, TelegramError

from lookupbot.utils.formatters import strip_markdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Button:
    """An inline button: either a link (``url``) or a callback (``callback_data``)."""

    text: str
    url: str | None = None
    callback_data: str | None = None


Buttons = list[list[Button]]


class Responder(Protocol):
    """Replies bound to the invocation currently being handled."""

    async def reply(self, text: str, buttons: Buttons | None = None) -> None: ...

    async def edit(self, text: str, buttons: Buttons | None = None) -> None: ...

    async def answer(self, text: str | None = None) -> None: ...

    async def send_video(self, url: str, caption: str) -> None: ...

    async def send_document(self, filename: str, content: bytes, caption: str) -> None: ...


class Notifier(Protocol):
    """Best-effort delivery to an arbitrary identity. Never raises."""

    async def notify(self, identity: str, text: str, buttons: Buttons | None = None) -> bool: ...


def to_markup(buttons: Buttons | None) -> InlineKeyboardMarkup | None:
    """Convert neutral button rows into a Telegram inline keyboard."""
    if not buttons:
        return None
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(b.text, url=b.url)
                if b.url
                else InlineKeyboardButton(b.text, callback_data=b.callback_data)
                for b in row
            ]
            for row in buttons
        ]
    )


def _is_parse_error(exc: BadRequest) -> bool:
    return "parse" in str(exc).lower()


def _too_long(text: str) -> bool:
    return len(text) > MessageLimit.MAX_TEXT_LENGTH


def _document_caption(text: str) -> str:
    lines = strip_markdown(text).strip().splitlines()
    return lines[0][: MessageLimit.CAPTION_LENGTH] if lines else ""


class TelegramResponder:
    """Responder over a python-telegram-bot ``Update``."""

    def __init__(self, update: Update) -> None:
        self.update = update

    async def reply(self, text: str, buttons: Buttons | None = None) -> None:
        message = self.update.effective_message
        if message is None:
            logger.warning("Update %s has no message to reply to.", self.update.update_id)
            return
        markup = to_markup(buttons)
        if _too_long(text):
            logger.info("Reply of %d characters exceeds the message limit; sending as a file.", len(text))
            await message.reply_document(
                strip_markdown(text).encode("utf-8"),
                filename="result.txt",
                caption=_document_caption(text),
                reply_markup=markup,
            )
            return
        try:
            await message.reply_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=markup)
        except BadRequest as e:
            if not _is_parse_error(e):
                raise
            logger.debug("Markdown rejected (%s); resending as plain text.", e)
            await message.reply_text(strip_markdown(text), reply_markup=markup)

    async def edit(self, text: str, buttons: Buttons | None = None) -> None:
        query = self.update.callback_query
        if query is None or _too_long(text):
            await self.reply(text, buttons)
            return
        markup = to_markup(buttons)
        try:
            await query.edit_message_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=markup)
        except BadRequest as e:
            if not _is_parse_error(e):
                raise
            await query.edit_message_text(strip_markdown(text), reply_markup=markup)

    async def answer(self, text: str | None = None) -> None:
        query = self.update.callback_query
        if query is not None:
            await query.answer(text)

    async def send_video(self, url: str, caption: str) -> None:
        message = self.update.effective_message
        if message is None:
            return
        await message.reply_video(url, caption=caption, supports_streaming=True)

    async def send_document(self, filename: str, content: bytes, caption: str) -> None:
        message = self.update.effective_message
        if message is None:
            return
        await message.reply_document(content, filename=filename, caption=caption)


class TelegramNotifier:
    """Notifier over a python-telegram-bot ``Bot``."""

    def __init__(self, bot) -> None:
        self.bot = bot

    async def notify(self, identity: str, text: str, buttons: Buttons | None = None) -> bool:
        markup = to_markup(buttons)
        if _too_long(text):
            text = text[: MessageLimit.MAX_TEXT_LENGTH - 1] + "…"
        try:
            try:
                await self.bot.send_message(
                    chat_id=identity, text=text, parse_mode=ParseMode.MARKDOWN, reply_markup=markup,
                )
            except BadRequest as e:
                if not _is_parse_error(e):
                    raise
                await self.bot.send_message(
                    chat_id=identity, text=strip_markdown(text), reply_markup=markup,
                )
            return True
        except TelegramError as e:
            logger.warning("Failed to notify %s: %s", identity, e)
            return False
