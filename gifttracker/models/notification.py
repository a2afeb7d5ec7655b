# file: models/notification.py

from pydantic import BaseModel, ConfigDict
from datetime import datetime


class NotificationResponse(BaseModel):
    notificationId: str
    eventId: str
    contactId: str
    message: str
    date: str
    createdAt: datetime
    read: bool

    model_config = ConfigDict(from_attributes=True)
