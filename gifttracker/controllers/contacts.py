import logging
import uuid
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import Contact as ContactModel
from gifttracker.models.contact import Contact as ContactResponse, ContactCreate, ContactUpdate
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "relationship": "relationship",
    "interests": "interests",
    "important_dates": "important_dates",
    "notes": "notes",
}


def convert_to_pydantic(db_contact: ContactModel) -> ContactResponse:
    return ContactResponse(
        contactId=db_contact.contact_id,
        userId=db_contact.user_id,
        name=db_contact.name,
        email=db_contact.email,
        phone=db_contact.phone,
        relationship=db_contact.relationship,
        interests=db_contact.interests or [],
        important_dates=db_contact.important_dates or [],
        notes=db_contact.notes,
        createdAt=db_contact.created_at,
        updatedAt=db_contact.updated_at,
    )


async def _get_owned_contact(db: AsyncSession, user_id: str, contact_id: str):
    stmt = select(ContactModel).where(ContactModel.contact_id == contact_id, ContactModel.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


@router.get("", response_model=List[ContactResponse])
async def list_contacts(user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    try:
        stmt = select(ContactModel).where(ContactModel.user_id == user_id).order_by(ContactModel.name)
        result = await db.execute(stmt)
        return [convert_to_pydantic(c) for c in result.scalars().all()]
    except Exception as e:
        logger.error(f"Failed to list contacts for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: str, user_id: str = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db)):
    db_contact = await _get_owned_contact(db, user_id, contact_id)
    if not db_contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return convert_to_pydantic(db_contact)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(contact: ContactCreate, user_id: str = Depends(get_current_user_id),
                         db: AsyncSession = Depends(get_db)):
    db_contact = ContactModel(
        contact_id=str(uuid.uuid4()),
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
        **contact.model_dump(),
    )
    try:
        db.add(db_contact)
        await db.commit()
        await db.refresh(db_contact)
        return convert_to_pydantic(db_contact)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create contact: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(contact_id: str, contact_update: ContactUpdate,
                         user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    db_contact = await _get_owned_contact(db, user_id, contact_id)
    if not db_contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")

    for field, value in contact_update.model_dump(exclude_unset=True).items():
        setattr(db_contact, UPDATABLE_FIELDS[field], value)
    db_contact.updated_at = datetime.now(timezone.utc)

    try:
        await db.commit()
        await db.refresh(db_contact)
        return convert_to_pydantic(db_contact)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update contact {contact_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(contact_id: str, user_id: str = Depends(get_current_user_id),
                         db: AsyncSession = Depends(get_db)):
    db_contact = await _get_owned_contact(db, user_id, contact_id)
    if not db_contact:
        return
    try:
        await db.delete(db_contact)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete contact {contact_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
    return
