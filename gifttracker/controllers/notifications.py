# file: controllers/notifications.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import Notification as NotificationModel
from gifttracker.models.notification import NotificationResponse
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)


def convert_to_pydantic(db_notification: NotificationModel) -> NotificationResponse:
    return NotificationResponse(
        notificationId=db_notification.notification_id,
        eventId=db_notification.event_id,
        contactId=db_notification.contact_id,
        message=db_notification.message,
        date=db_notification.date,
        createdAt=db_notification.created_at,
        read=db_notification.read,
    )


async def _get_owned_notification(db: AsyncSession, user_id: str, notification_id: str):
    db_notification = await db.get(NotificationModel, notification_id)
    if not db_notification or db_notification.user_id != user_id:
        return None
    return db_notification


@router.get("", response_model=List[NotificationResponse])
async def get_user_notifications(user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    """
    Retrieves the caller's notifications, most recent first.

    The table has no owner index, so this reads every row and filters here.
    """
    try:
        result = await db.execute(select(NotificationModel))
        notifications = [n for n in result.scalars().all() if n.user_id == user_id]
    except Exception as e:
        logger.error(f"Failed to scan notifications: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    notifications.sort(key=lambda n: n.created_at, reverse=True)
    return [convert_to_pydantic(n) for n in notifications]


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_as_read(notification_id: str, user_id: str = Depends(get_current_user_id),
                                    db: AsyncSession = Depends(get_db)):
    db_notification = await _get_owned_notification(db, user_id, notification_id)
    if not db_notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    db_notification.read = True
    await db.commit()
    await db.refresh(db_notification)
    return convert_to_pydantic(db_notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, user_id: str = Depends(get_current_user_id),
                              db: AsyncSession = Depends(get_db)):
    db_notification = await _get_owned_notification(db, user_id, notification_id)
    if not db_notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    await db.delete(db_notification)
    await db.commit()
    return
