"""
springbattle.bot.handlers.stats — Status & Personal Stats
==========================================================

- /status   — guild comparison with per-sport trophies
- /personal — your all-time per-sport sums
- /mydaily  — your sums for today (reporting timezone)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from telegram import Update
from telegram.ext import CommandHandler, ContextTypes, filters

from springbattle.bot.core import is_private, reply
from springbattle.database.engine import run_db
from springbattle.engine.windows import day_window
from springbattle.services.report_service import build_personal_report, build_status_report
from springbattle.services.stats_service import guild_sport_totals, user_sport_totals

if TYPE_CHECKING:
    from springbattle.bot.core import SpringBattleBot

PRIVATE_ONLY_TEXT = "I'm sorry, \"status\" only works in private now"


class Stats:
    def __init__(self, bot: SpringBattleBot) -> None:
        self.bot = bot

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not is_private(update):
            await reply(update, PRIVATE_ONLY_TEXT)
            return
        totals = await run_db(guild_sport_totals, self.bot.engine)
        await reply(update, build_status_report(totals))

    async def personal(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        rows = await run_db(user_sport_totals, self.bot.engine, update.effective_user.id)
        await reply(update, build_personal_report(rows))

    async def my_daily(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        start, limit = day_window(0)
        rows = await run_db(
            user_sport_totals, self.bot.engine, update.effective_user.id, start, limit
        )
        await reply(update, build_personal_report(rows, today=True))


def setup(bot: SpringBattleBot) -> None:
    handlers = Stats(bot)
    private = filters.ChatType.PRIVATE
    bot.add_handler(CommandHandler("status", handlers.status))
    bot.add_handler(CommandHandler("personal", handlers.personal, filters=private))
    bot.add_handler(CommandHandler("mydaily", handlers.my_daily, filters=private))
