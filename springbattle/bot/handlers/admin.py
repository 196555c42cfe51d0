"""
springbattle.bot.handlers.admin — Admin Report Commands
========================================================

- /daily — pick Today / Yesterday, get the daily digest
- /all   — all-time summary

Both require the caller's Telegram id to be in the ``ADMINS`` allowlist.
Everyone else gets a polite refusal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram import Update
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes

from springbattle.bot.core import acknowledge, keyboard_markup, reply
from springbattle.database.engine import run_db
from springbattle.engine.logging_flow import Button
from springbattle.services.report_service import build_all_report, build_daily_report

if TYPE_CHECKING:
    from springbattle.bot.core import SpringBattleBot

logger = logging.getLogger(__name__)

REFUSAL_TEXT = "I'm sorry, {name}. I'm afraid I can't do that."

DAY_CHOICES = (
    Button("Today", "daily 0"),
    Button("Yesterday", "daily -1"),
)


class Admin:
    """Organizer-only reports."""

    def __init__(self, bot: SpringBattleBot) -> None:
        self.bot = bot

    async def _ensure_admin(self, update: Update) -> bool:
        user = update.effective_user
        if user is not None and self.bot.runtime.is_admin(user.id):
            return True
        name = user.first_name if user else "there"
        logger.info("Refused admin command for user %s", user.id if user else None)
        await reply(update, REFUSAL_TEXT.format(name=name))
        return False

    def _daily_report(self, day_offset: int) -> str:
        return build_daily_report(
            self.bot.engine,
            day_offset,
            daily_top=self.bot.cfg.daily_top_size,
            all_time_top=self.bot.cfg.all_time_top_size,
        )

    # -------------------------------------------------------------------
    # /daily
    # -------------------------------------------------------------------
    async def daily(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not await self._ensure_admin(update):
            return
        await reply(update, "Please choose the day:", reply_markup=keyboard_markup(DAY_CHOICES))

    async def on_day_chosen(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        data = await acknowledge(update)
        if not await self._ensure_admin(update):
            return
        try:
            day_offset = int(data.split(" ")[1])
        except (IndexError, ValueError):
            logger.warning("Malformed daily callback: %r", data)
            return
        text = await run_db(self._daily_report, day_offset)
        await reply(update, text)

    # -------------------------------------------------------------------
    # /all
    # -------------------------------------------------------------------
    async def all_time(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not await self._ensure_admin(update):
            return
        text = await run_db(
            build_all_report, self.bot.engine, top_size=self.bot.cfg.summary_top_size
        )
        await reply(update, text)


def setup(bot: SpringBattleBot) -> None:
    handlers = Admin(bot)
    bot.add_handler(CommandHandler("daily", handlers.daily))
    bot.add_handler(CommandHandler("all", handlers.all_time))
    bot.add_handler(CallbackQueryHandler(handlers.on_day_chosen, pattern=r"^daily "))
