# file: services/reminder_generator.py

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker import config
from gifttracker.database.connection import engine, get_db_session
from gifttracker.database.models import Event, Notification

logger = logging.getLogger(__name__)


def parse_event_date(value) -> Optional[datetime]:
    """
    Parses an event date into an aware UTC datetime.

    Date-only strings land on midnight UTC and naive date-times are read as
    UTC. Anything unparsable returns None so the caller can drop the event.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_upcoming(event_date: datetime, now: datetime, window_end: datetime) -> bool:
    return now <= event_date <= window_end


def select_upcoming_events(events: Iterable[Event], now: datetime, lookahead_days: int) -> List[Event]:
    """Keeps the events dated within [now, now + lookahead_days], bounds inclusive."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    window_end = now + timedelta(days=lookahead_days)

    upcoming = []
    for event in events:
        event_date = parse_event_date(event.date)
        if event_date is None:
            logger.warning(f"Skipping event {event.event_id}: unparsable date {event.date!r}")
            continue
        if is_upcoming(event_date, now, window_end):
            upcoming.append(event)
    return upcoming


def build_notification(event: Event, contact_id: str, now: datetime) -> Notification:
    return Notification(
        notification_id=str(uuid.uuid4()),
        user_id=event.user_id,
        event_id=event.event_id,
        contact_id=contact_id,
        message=f"Reminder: {event.name} is coming up on {event.date}",
        date=event.date,
        created_at=now,
        read=False,
    )


async def generate_reminders(db: AsyncSession, now: Optional[datetime] = None,
                             lookahead_days: Optional[int] = None) -> int:
    """
    Scans every event, writes one notification per (event, contact) pair for
    the events inside the lookahead window and returns how many events matched.

    Each notification is committed on its own and nothing is checked before
    writing, so a rerun over the same window writes the same reminders again.
    A failed write propagates; the ones already committed stay.
    """
    now = now or datetime.now(timezone.utc)
    if lookahead_days is None:
        lookahead_days = config.REMINDER_DAYS

    # Full table scan, no pagination
    result = await db.execute(select(Event))
    events = result.scalars().all()

    upcoming_events = select_upcoming_events(events, now, lookahead_days)
    if not upcoming_events:
        logger.info(f"No events in the next {lookahead_days} days.")
        return 0

    logger.info(f"Found {len(upcoming_events)} of {len(events)} events in the next {lookahead_days} days.")
    written = 0
    for event in upcoming_events:
        for contact_id in event.contact_ids or []:
            db.add(build_notification(event, contact_id, now))
            await db.commit()
            written += 1

    logger.info(f"Wrote {written} notifications for {len(upcoming_events)} events.")
    return len(upcoming_events)


async def run_reminder_job(now: Optional[datetime] = None, lookahead_days: Optional[int] = None) -> int:
    """
    Runs one reminder pass in its own session.

    Pooled connections are bound to the event loop that opened them and every
    scheduled invocation runs on a fresh loop, so the pool is emptied on exit.
    """
    try:
        async with get_db_session() as db:
            return await generate_reminders(db, now=now, lookahead_days=lookahead_days)
    finally:
        await engine.dispose()
