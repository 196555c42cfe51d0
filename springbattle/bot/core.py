"""
springbattle.bot.core — Bot Instance & Handler Loader
======================================================

Defines :class:`SpringBattleBot`, which:

1. Stores the shared config (``bot.cfg``), runtime settings
   (``bot.runtime``) and DB engine (``bot.engine``) so every handler
   module can reach them.
2. Builds the python-telegram-bot :class:`Application` and loads every
   handler module listed in :data:`EXTENSIONS`.  Each module exposes
   ``setup(bot)`` which registers its handlers and jobs.
3. Runs in long-poll mode in development and webhook mode in production.

The small reply helpers at the bottom are shared by all handler modules.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatType
from telegram.error import BadRequest
from telegram.ext import Application, BaseHandler, ContextTypes

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from springbattle.config import BattleConfig, RuntimeSettings
    from springbattle.engine.logging_flow import Button, Transition

logger = logging.getLogger(__name__)

# Handler modules to load on startup.
EXTENSIONS: list[str] = [
    "springbattle.bot.handlers.registration",
    "springbattle.bot.handlers.submissions",
    "springbattle.bot.handlers.stats",
    "springbattle.bot.handlers.admin",
    "springbattle.bot.handlers.tasks",
]


class SpringBattleBot:
    """Carries project-wide state for the Telegram handlers.

    Parameters
    ----------
    cfg:
        Parsed :class:`BattleConfig` from ``config.yaml``.
    runtime:
        :class:`RuntimeSettings` read from the environment.
    engine:
        A SQLAlchemy :class:`Engine`.
    """

    def __init__(self, cfg: BattleConfig, runtime: RuntimeSettings, engine: Engine) -> None:
        self.cfg = cfg
        self.runtime = runtime
        self.engine = engine
        self.application: Application | None = None

    # -----------------------------------------------------------------------
    # Wiring
    # -----------------------------------------------------------------------
    def build_application(self) -> Application:
        """Create the Application and load all handler modules.

        A module that fails to load is logged and skipped; one broken
        command shouldn't take the whole bot down.
        """
        self.application = Application.builder().token(self.runtime.bot_token).build()

        for ext in EXTENSIONS:
            try:
                importlib.import_module(ext).setup(self)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

        self.application.add_error_handler(self.on_error)
        return self.application

    def add_handler(self, handler: BaseHandler) -> None:
        assert self.application is not None, "build_application() first"
        self.application.add_handler(handler)

    def run(self) -> None:
        """Start the bot (blocking)."""
        app = self.application or self.build_application()
        if self.runtime.use_webhook:
            logger.info("Running webhook on %s:%d", self.runtime.domain, self.cfg.webhook_port)
            app.run_webhook(
                listen="0.0.0.0",
                port=self.cfg.webhook_port,
                webhook_url=f"https://{self.runtime.domain}",
            )
        else:
            logger.info("Running in long poll mode")
            app.run_polling(allowed_updates=Update.ALL_TYPES)

    # -----------------------------------------------------------------------
    # Error handler
    # -----------------------------------------------------------------------
    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Last-resort logging for exceptions that escaped a handler."""
        logger.error("Unhandled error while processing %r", update, exc_info=context.error)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def keyboard_markup(buttons: Sequence[Button]) -> InlineKeyboardMarkup | None:
    """One-row inline keyboard, or None when there are no buttons."""
    if not buttons:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(b.label, callback_data=b.data) for b in buttons]]
    )


def is_private(update: Update) -> bool:
    chat = update.effective_chat
    return chat is not None and chat.type == ChatType.PRIVATE


def display_name(update: Update) -> str:
    """``"First Last"``, or just the first name."""
    user = update.effective_user
    return user.full_name if user else ""


async def reply(
    update: Update,
    text: str,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> None:
    """Send *text* to the chat the update came from (messages and callbacks)."""
    await update.effective_chat.send_message(text, reply_markup=reply_markup)


async def reply_transition(update: Update, transition: Transition) -> None:
    """Send a transition's replies; the keyboard rides on the last one."""
    replies = transition.replies
    for index, text in enumerate(replies):
        is_last = index == len(replies) - 1
        markup = keyboard_markup(transition.keyboard) if is_last else None
        await reply(update, text, reply_markup=markup)


async def acknowledge(update: Update) -> str:
    """Answer a callback query, drop its keyboard, and return its data."""
    query = update.callback_query
    await query.answer()
    try:
        await query.edit_message_reply_markup(reply_markup=None)
    except BadRequest as exc:
        # Already edited, or the message is too old to edit.
        logger.debug("Could not remove keyboard: %s", exc)
    return query.data or ""
