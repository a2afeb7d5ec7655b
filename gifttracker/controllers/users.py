import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import User
from gifttracker.models.user import UserPreferences, UserResponse, UserUpdate
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)


def convert_to_pydantic(db_user: User) -> UserResponse:
    return UserResponse(
        userId=db_user.user_id,
        name=db_user.name,
        email=db_user.email,
        preferences=UserPreferences(**(db_user.preferences or {})),
    )


@router.get("")
async def get_user(user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    """Returns the caller's profile, or an empty object when none was saved yet."""
    db_user = await db.get(User, user_id)
    if not db_user:
        return {}
    return convert_to_pydantic(db_user)


@router.put("", response_model=UserResponse)
async def update_user(user_update: UserUpdate, user_id: str = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db)):
    db_user = await db.get(User, user_id)
    if not db_user:
        db_user = User(user_id=user_id)
        db.add(db_user)

    db_user.name = user_update.name
    db_user.email = user_update.email
    db_user.preferences = (user_update.preferences or UserPreferences()).model_dump()

    try:
        await db.commit()
        await db.refresh(db_user)
        return convert_to_pydantic(db_user)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
