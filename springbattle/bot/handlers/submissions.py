"""
springbattle.bot.handlers.submissions — Distance Logging Conversation
======================================================================

Telegram side of the logging state machine.  Each handler turns an update
into a :mod:`springbattle.engine.logging_flow` event, runs it through
:func:`springbattle.services.log_service.process_event` on a worker thread,
and sends back whatever the transition says.

- photo (optional caption) — start or restart a submission
- sport button             — pick the sport
- free text                — the distance / step count
- "Record as …" button     — answer to the >1000 km question
- /cancel                  — drop the pending submission
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from telegram import Update
from telegram.ext import (
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from springbattle.bot.core import acknowledge, reply, reply_transition
from springbattle.database.engine import run_db
from springbattle.database.models import Sport
from springbattle.engine.captions import DistanceValidationError, parse_distance
from springbattle.engine.logging_flow import (
    Cancelled,
    DistanceEntered,
    Event,
    PhotoSubmitted,
    SportChosen,
    SportFixChosen,
)
from springbattle.services.log_service import process_event
from springbattle.services.user_service import UnregisteredUserError, require_guild

if TYPE_CHECKING:
    from springbattle.bot.core import SpringBattleBot

logger = logging.getLogger(__name__)

NOT_ACCEPTING_TEXT = "Sorry, I am not currently accepting submissions."
REGISTER_FIRST_TEXT = "Please register with /start before recording kilometers."
STORE_ERROR_TEXT = "Encountered an error with logging data please contact {contact}"
BAD_BUTTON_TEXT = "Something went wrong please try again."


class Submissions:
    """Photo submissions and the follow-up questions."""

    def __init__(self, bot: SpringBattleBot) -> None:
        self.bot = bot

    async def _store_error(self, update: Update) -> None:
        await reply(update, STORE_ERROR_TEXT.format(contact=self.bot.cfg.support_contact))

    async def _run(self, update: Update, event: Event) -> None:
        user_id = update.effective_user.id
        try:
            transition = await run_db(process_event, self.bot.engine, user_id, event)
        except UnregisteredUserError:
            await reply(update, REGISTER_FIRST_TEXT)
            return
        except SQLAlchemyError:
            logger.exception("Store error while logging for user %d", user_id)
            await self._store_error(update)
            return
        await reply_transition(update, transition)

    # -------------------------------------------------------------------
    # Photo
    # -------------------------------------------------------------------
    async def on_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self.bot.runtime.accepting_submissions:
            await reply(update, NOT_ACCEPTING_TEXT)
            return

        user_id = update.effective_user.id
        try:
            await run_db(require_guild, self.bot.engine, user_id)
        except UnregisteredUserError:
            logger.info("Submission from unregistered user %d", user_id)
            await reply(update, REGISTER_FIRST_TEXT)
            return
        except SQLAlchemyError:
            logger.exception("Store error while checking guild for user %d", user_id)
            await self._store_error(update)
            return

        await self._run(update, PhotoSubmitted(caption=update.effective_message.caption))

    # -------------------------------------------------------------------
    # Free text
    # -------------------------------------------------------------------
    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._run(update, DistanceEntered(text=update.effective_message.text or ""))

    # -------------------------------------------------------------------
    # Buttons
    # -------------------------------------------------------------------
    async def on_sport(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        data = await acknowledge(update)
        try:
            sport = Sport(data.split(" ", 1)[1])
        except (IndexError, ValueError):
            logger.warning("Malformed sport callback: %r", data)
            await reply(update, BAD_BUTTON_TEXT)
            return
        await self._run(update, SportChosen(sport=sport))

    async def on_sport_fix(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        data = await acknowledge(update)
        try:
            _, raw_sport, raw_value = data.split(" ")
            event = SportFixChosen(sport=Sport(raw_sport), value=parse_distance(raw_value))
        except (DistanceValidationError, ValueError):
            logger.warning("Malformed sportFix callback: %r", data)
            await reply(update, BAD_BUTTON_TEXT)
            return
        await self._run(update, event)

    # -------------------------------------------------------------------
    # /cancel
    # -------------------------------------------------------------------
    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._run(update, Cancelled())


def setup(bot: SpringBattleBot) -> None:
    handlers = Submissions(bot)
    private = filters.ChatType.PRIVATE
    bot.add_handler(CommandHandler("cancel", handlers.cancel, filters=private))
    bot.add_handler(MessageHandler(filters.PHOTO & private, handlers.on_photo))
    bot.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND & private, handlers.on_text)
    )
    bot.add_handler(CallbackQueryHandler(handlers.on_sport, pattern=r"^sport "))
    bot.add_handler(CallbackQueryHandler(handlers.on_sport_fix, pattern=r"^sportFix "))
