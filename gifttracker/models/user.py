from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Literal, Optional


class UserPreferences(BaseModel):
    notifications: bool = True
    theme: Literal["light", "dark", "system"] = "light"


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    preferences: Optional[UserPreferences] = None


class UserResponse(BaseModel):
    userId: str
    name: Optional[str] = None
    email: Optional[str] = None
    preferences: UserPreferences = UserPreferences()

    model_config = ConfigDict(from_attributes=True)
