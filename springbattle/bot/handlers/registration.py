"""
springbattle.bot.handlers.registration — Onboarding & Identity
===============================================================

- /start — welcome text; new users get the guild keyboard
- /update_name — refresh the stored display name from Telegram
- /reset_guild — switch guild (rewrites the guild on past logs)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from telegram import Update
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes, filters

from springbattle.bot.core import acknowledge, display_name, keyboard_markup, reply
from springbattle.database.engine import run_db
from springbattle.database.models import Guild
from springbattle.engine.logging_flow import Button
from springbattle.services.user_service import (
    get_user,
    register_user,
    reset_guild,
    set_guild,
    update_name,
)

if TYPE_CHECKING:
    from springbattle.bot.core import SpringBattleBot

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Hello there, welcome to the {battle}!\n\n"
    "To record kilometers for your guild send me a picture of your achievement, "
    "this can be for example a screenshot of your daily steps or a Strava log "
    "showing the exercise amount and route. After this I'll ask a few questions "
    "regarding the exercise.\n\n"
    "You can also give the photo a caption in the format \"SPORT, DISTANCE\", "
    "and I will try to get the information from that. For Running/Walking either "
    "one is sufficient, and for Biking \"Cycling\" is also accepted. Just the first "
    "letter is also accepted. Letter case does not matter.\n"
    "For example: \"running, 5.5\"\n\n"
    "You can check how many kilometers you have contributed with /personal. "
    "Additionally you can check the current status of the battle with /status.\n\n"
    "If you have any questions about the battle you can ask in the main group and "
    "the organizers will answer you! If some technical problems appear with me, "
    "you can contact {contact}."
)


def guild_keyboard(prefix: str):
    return keyboard_markup([Button(g.value, f"{prefix} {g.value}") for g in Guild])


class Registration:
    """Guild registration, name updates, guild resets."""

    def __init__(self, bot: SpringBattleBot) -> None:
        self.bot = bot

    def _welcome(self) -> str:
        return WELCOME_TEXT.format(
            battle=self.bot.cfg.battle_name, contact=self.bot.cfg.support_contact
        )

    # -------------------------------------------------------------------
    # /start
    # -------------------------------------------------------------------
    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user_id = update.effective_user.id
        user = await run_db(get_user, self.bot.engine, user_id)

        if user is not None and user.guild is not None:
            await reply(update, self._welcome() + f"\n\nYou are competing with {user.guild.value}.")
            return

        await run_db(register_user, self.bot.engine, user_id, display_name(update))
        await reply(
            update,
            self._welcome()
            + "\n\nTo register choose the guild you are going to represent, "
            "after this just send me a picture to log your kilometers!",
            reply_markup=guild_keyboard("guild"),
        )

    async def on_guild_chosen(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        data = await acknowledge(update)
        guild = Guild(data.split(" ")[1])
        user_id = update.effective_user.id

        user = await run_db(get_user, self.bot.engine, user_id)
        if user is None:
            await run_db(register_user, self.bot.engine, user_id, display_name(update))
        elif user.guild is not None:
            await reply(
                update,
                f"You are already competing with {user.guild.value}. "
                "Use /reset_guild to change it.",
            )
            return

        await run_db(set_guild, self.bot.engine, user_id, guild)
        await reply(
            update,
            f"Thanks! You chose {guild.value} as your guild.\n\n"
            "To start logging kilometers just send me a picture of your accomplishment!",
        )

    # -------------------------------------------------------------------
    # /reset_guild
    # -------------------------------------------------------------------
    async def reset_guild(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await reply(update, "Choose guild", reply_markup=guild_keyboard("reset_guild"))

    async def on_reset_chosen(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        data = await acknowledge(update)
        guild = Guild(data.split(" ")[1])
        user_id = update.effective_user.id

        user = await run_db(get_user, self.bot.engine, user_id)
        if user is None:
            await reply(update, "Please register with /start first.")
            return

        await run_db(reset_guild, self.bot.engine, user_id, guild)
        await reply(update, f"Your guild is now set to {guild.value}.")

    # -------------------------------------------------------------------
    # /update_name
    # -------------------------------------------------------------------
    async def update_name(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user_id = update.effective_user.id if update.effective_user else None
        name = display_name(update)
        if not user_id or not name:
            await reply(update, "Your id or name could not be determined.")
            return

        try:
            updated = await run_db(update_name, self.bot.engine, user_id, name)
        except SQLAlchemyError:
            logger.exception("Name update failed for user %d", user_id)
            updated = False

        if updated:
            await reply(update, f"Your name was successfully updated to {name}.")
        else:
            await reply(update, "Something went wrong while updating your name.")


def setup(bot: SpringBattleBot) -> None:
    handlers = Registration(bot)
    private = filters.ChatType.PRIVATE
    bot.add_handler(CommandHandler("start", handlers.start, filters=private))
    bot.add_handler(CommandHandler("reset_guild", handlers.reset_guild, filters=private))
    bot.add_handler(CommandHandler("update_name", handlers.update_name, filters=private))
    bot.add_handler(CallbackQueryHandler(handlers.on_guild_chosen, pattern=r"^guild "))
    bot.add_handler(CallbackQueryHandler(handlers.on_reset_chosen, pattern=r"^reset_guild "))
