"""
springbattle.bot.handlers.tasks — Scheduled Daily Digest
=========================================================

Posts yesterday's digest to the broadcast chat (``CRON_GROUP_ID``) on the
python-telegram-bot ``JobQueue``:

- production: once a day at ``digest_time`` in ``scheduler_timezone``
- development: every minute, so the output can be eyeballed quickly

The job only reads aggregates; it never touches pending log events.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from telegram.ext import ContextTypes

from springbattle.database.engine import run_db
from springbattle.services.report_service import build_daily_report

if TYPE_CHECKING:
    from springbattle.bot.core import SpringBattleBot

logger = logging.getLogger(__name__)

DIGEST_JOB_NAME = "daily-digest"


class DigestTask:
    def __init__(self, bot: SpringBattleBot) -> None:
        self.bot = bot

    async def send_digest(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Render yesterday's digest and send it to the broadcast chat."""
        chat_id = self.bot.runtime.broadcast_chat_id
        try:
            text = await run_db(
                build_daily_report,
                self.bot.engine,
                -1,
                daily_top=self.bot.cfg.daily_top_size,
                all_time_top=self.bot.cfg.all_time_top_size,
            )
            await context.bot.send_message(chat_id=chat_id, text=text)
            logger.info("Daily digest sent to %s", chat_id)
        except Exception:
            logger.exception("Daily digest failed", extra={"task": DIGEST_JOB_NAME})


def setup(bot: SpringBattleBot) -> None:
    if bot.runtime.broadcast_chat_id is None:
        logger.info("CRON_GROUP_ID not set, daily digest disabled")
        return

    job_queue = bot.application.job_queue
    if job_queue is None:
        raise RuntimeError(
            "JobQueue unavailable; install python-telegram-bot[job-queue]"
        )

    task = DigestTask(bot)
    if bot.runtime.production:
        at = bot.cfg.digest_time.replace(tzinfo=ZoneInfo(bot.cfg.scheduler_timezone))
        job_queue.run_daily(task.send_digest, time=at, name=DIGEST_JOB_NAME)
        logger.info("Daily digest scheduled at %s", at)
    else:
        job_queue.run_repeating(
            task.send_digest,
            interval=timedelta(minutes=1),
            first=timedelta(minutes=1),
            name=DIGEST_JOB_NAME,
        )
        logger.info("Daily digest scheduled every minute (development)")
