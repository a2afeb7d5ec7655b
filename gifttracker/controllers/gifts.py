# file: controllers/gifts.py

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import Gift as GiftModel
from gifttracker.models.gift import Gift as GiftResponse, GiftCreate, GiftType, GiftUpdate
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)

# JSON field -> column for the fields a PUT may change
UPDATABLE_FIELDS = {
    "name": "name",
    "description": "description",
    "type": "type",
    "date": "date",
    "contactId": "contact_id",
    "eventId": "event_id",
    "imageUrl": "image_url",
    "tags": "tags",
    "notes": "notes",
    "cost": "cost",
    "thanked": "thanked",
}


def convert_to_pydantic(db_gift: GiftModel) -> GiftResponse:
    return GiftResponse(
        giftId=db_gift.gift_id,
        userId=db_gift.user_id,
        name=db_gift.name,
        description=db_gift.description,
        type=db_gift.type,
        date=db_gift.date,
        contactId=db_gift.contact_id,
        eventId=db_gift.event_id,
        imageUrl=db_gift.image_url,
        tags=db_gift.tags or [],
        notes=db_gift.notes,
        cost=db_gift.cost,
        thanked=db_gift.thanked,
        createdAt=db_gift.created_at,
        updatedAt=db_gift.updated_at,
    )


async def _get_owned_gift(db: AsyncSession, user_id: str, gift_id: str) -> Optional[GiftModel]:
    stmt = select(GiftModel).where(GiftModel.gift_id == gift_id, GiftModel.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


@router.get("", response_model=List[GiftResponse])
async def list_gifts(
        type: Optional[GiftType] = None,
        contactId: Optional[str] = None,
        eventId: Optional[str] = None,
        user_id: str = Depends(get_current_user_id),
        db: AsyncSession = Depends(get_db),
):
    stmt = select(GiftModel).where(GiftModel.user_id == user_id)
    if type:
        stmt = stmt.where(GiftModel.type == type)
    if contactId:
        stmt = stmt.where(GiftModel.contact_id == contactId)
    if eventId:
        stmt = stmt.where(GiftModel.event_id == eventId)
    try:
        result = await db.execute(stmt.order_by(GiftModel.created_at.desc()))
        return [convert_to_pydantic(g) for g in result.scalars().all()]
    except Exception as e:
        logger.error(f"Failed to list gifts for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("/{gift_id}", response_model=GiftResponse)
async def get_gift(gift_id: str, user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    db_gift = await _get_owned_gift(db, user_id, gift_id)
    if not db_gift:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gift not found")
    return convert_to_pydantic(db_gift)


@router.post("", response_model=GiftResponse, status_code=status.HTTP_201_CREATED)
async def create_gift(gift: GiftCreate, user_id: str = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db)):
    db_gift = GiftModel(
        gift_id=str(uuid.uuid4()),
        user_id=user_id,
        name=gift.name,
        description=gift.description,
        type=gift.type,
        date=gift.date,
        contact_id=gift.contactId,
        event_id=gift.eventId,
        image_url=gift.imageUrl,
        tags=gift.tags,
        notes=gift.notes,
        cost=gift.cost,
        thanked=gift.thanked,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(db_gift)
        await db.commit()
        await db.refresh(db_gift)
        return convert_to_pydantic(db_gift)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create gift: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.put("/{gift_id}", response_model=GiftResponse)
async def update_gift(gift_id: str, gift_update: GiftUpdate, user_id: str = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db)):
    db_gift = await _get_owned_gift(db, user_id, gift_id)
    if not db_gift:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gift not found")

    for field, value in gift_update.model_dump(exclude_unset=True).items():
        setattr(db_gift, UPDATABLE_FIELDS[field], value)
    # cost only applies to given gifts, thanked only to received ones
    if db_gift.type == "received":
        db_gift.cost = None
    else:
        db_gift.thanked = False
    db_gift.updated_at = datetime.now(timezone.utc)

    try:
        await db.commit()
        await db.refresh(db_gift)
        return convert_to_pydantic(db_gift)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update gift {gift_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete("/{gift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gift(gift_id: str, user_id: str = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db)):
    # Deleting a missing gift still answers 204
    db_gift = await _get_owned_gift(db, user_id, gift_id)
    if not db_gift:
        return
    try:
        await db.delete(db_gift)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete gift {gift_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
    return
