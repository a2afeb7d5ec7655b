from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime


class ImportantDate(BaseModel):
    date: str
    occasion: str


class ContactBase(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None
    interests: List[str] = []
    important_dates: List[ImportantDate] = []
    notes: Optional[str] = None

    @field_validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Contact name cannot be empty')
        return v.strip()


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None
    interests: Optional[List[str]] = None
    important_dates: Optional[List[ImportantDate]] = None
    notes: Optional[str] = None

    @field_validator('name')
    def validate_name(cls, v):
        if v is None or not v.strip():
            raise ValueError('Contact name cannot be empty')
        return v.strip()


class Contact(ContactBase):
    contactId: str
    userId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
