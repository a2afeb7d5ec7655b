# file: scripts/reminder_scheduler.py

import asyncio
import logging
import os
import sys
from datetime import datetime

# Run as a standalone script, so the project root is not on the path yet
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from gifttracker import config
from gifttracker.services.reminder_generator import run_reminder_job

logger = logging.getLogger("reminder_scheduler")


async def main_scheduler_loop():
    """Local stand-in for the scheduled Lambda: one reminder scan per interval."""
    while True:
        logger.info(f"--- [{datetime.now()}] STARTING NEW REMINDER CYCLE ---")
        try:
            count = await run_reminder_job()
            logger.info(f"Created {count} event reminders.")
        except Exception as e:
            logger.error(f"An error occurred in the reminder cycle: {e}", exc_info=True)

        logger.info(f"--- Reminder cycle finished. Waiting for {config.REMINDER_INTERVAL_SECONDS} seconds. ---")
        await asyncio.sleep(config.REMINDER_INTERVAL_SECONDS)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting reminder scheduler...")
    asyncio.run(main_scheduler_loop())
