"""
Lambda Handlers - Entry points for AWS Lambda functions.

1. api_handler - HTTP requests from API Gateway, served by the FastAPI app
   through Mangum
2. scheduled_event_reminders - EventBridge timer that writes reminder
   notifications for upcoming events
"""

import asyncio
import logging

from mangum import Mangum

from main import app
from gifttracker.services.reminder_generator import run_reminder_job

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

api_handler = Mangum(app, lifespan="off")


def scheduled_event_reminders(event, context):
    """
    EventBridge scheduled handler: write reminders for events in the next
    REMINDER_DAYS days.

    There is no lock, so overlapping runs both write their reminders.
    """
    logger.info("Running scheduled event reminders")
    count = asyncio.run(run_reminder_job())

    return {
        'statusCode': 200,
        'body': f"Created {count} event reminders.",
    }
