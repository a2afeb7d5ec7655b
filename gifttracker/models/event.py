from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime


class ReminderPolicy(BaseModel):
    enabled: bool = True
    daysBeforeEvent: int = 7


class EventBase(BaseModel):
    name: str
    # Kept as a string; see services.reminder_generator.parse_event_date
    date: str
    type: Optional[str] = None
    contactIds: List[str] = []
    notes: Optional[str] = None
    description: Optional[str] = None
    reminder: Optional[ReminderPolicy] = None


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[str] = None
    type: Optional[str] = None
    contactIds: Optional[List[str]] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    reminder: Optional[ReminderPolicy] = None

    @field_validator('name', 'date')
    def reject_null(cls, v, info):
        if v is None or not v.strip():
            raise ValueError(f'Event {info.field_name} cannot be empty')
        return v


class Event(EventBase):
    eventId: str
    userId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
