import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import Event as EventModel
from gifttracker.models.event import Event as EventResponse, EventCreate, EventUpdate
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name": "name",
    "date": "date",
    "type": "type",
    "contactIds": "contact_ids",
    "notes": "notes",
    "description": "description",
    "reminder": "reminder",
}


def convert_to_pydantic(db_event: EventModel) -> EventResponse:
    return EventResponse(
        eventId=db_event.event_id,
        userId=db_event.user_id,
        name=db_event.name,
        date=db_event.date,
        type=db_event.type,
        contactIds=db_event.contact_ids or [],
        notes=db_event.notes,
        description=db_event.description,
        reminder=db_event.reminder,
        createdAt=db_event.created_at,
        updatedAt=db_event.updated_at,
    )


async def _get_owned_event(db: AsyncSession, user_id: str, event_id: str):
    stmt = select(EventModel).where(EventModel.event_id == event_id, EventModel.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


@router.get("", response_model=List[EventResponse])
async def list_events(
        startDate: Optional[str] = None,
        endDate: Optional[str] = None,
        user_id: str = Depends(get_current_user_id),
        db: AsyncSession = Depends(get_db),
):
    """
    Lists the caller's events, soonest first. startDate/endDate are ISO
    strings compared against the stored date string, bounds inclusive.
    endDate is matched on the leading characters of the stored value, so
    endDate=2024-01-05 keeps an event dated 2024-01-05T10:00:00.
    """
    stmt = select(EventModel).where(EventModel.user_id == user_id)
    if startDate:
        stmt = stmt.where(EventModel.date >= startDate)
    if endDate:
        stmt = stmt.where(func.substr(EventModel.date, 1, len(endDate)) <= endDate)
    try:
        result = await db.execute(stmt.order_by(EventModel.date))
        return [convert_to_pydantic(e) for e in result.scalars().all()]
    except Exception as e:
        logger.error(f"Failed to list events for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    db_event = await _get_owned_event(db, user_id, event_id)
    if not db_event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return convert_to_pydantic(db_event)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(event: EventCreate, user_id: str = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db)):
    db_event = EventModel(
        event_id=str(uuid.uuid4()),
        user_id=user_id,
        name=event.name,
        date=event.date,
        type=event.type,
        contact_ids=event.contactIds,
        notes=event.notes,
        description=event.description,
        reminder=event.reminder.model_dump() if event.reminder else None,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(db_event)
        await db.commit()
        await db.refresh(db_event)
        return convert_to_pydantic(db_event)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create event: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(event_id: str, event_update: EventUpdate, user_id: str = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db)):
    db_event = await _get_owned_event(db, user_id, event_id)
    if not db_event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    for field, value in event_update.model_dump(exclude_unset=True).items():
        setattr(db_event, UPDATABLE_FIELDS[field], value)
    db_event.updated_at = datetime.now(timezone.utc)

    try:
        await db.commit()
        await db.refresh(db_event)
        return convert_to_pydantic(db_event)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: str, user_id: str = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db)):
    db_event = await _get_owned_event(db, user_id, event_id)
    if not db_event:
        return
    try:
        await db.delete(db_event)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
    return
