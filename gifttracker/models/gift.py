from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import datetime

GiftType = Literal["given", "received"]


def clean_name(v: str) -> str:
    if not v.strip():
        raise ValueError('Gift name cannot be empty')
    return v.strip()


class GiftBase(BaseModel):
    name: str
    description: Optional[str] = None
    type: GiftType
    date: Optional[str] = None
    contactId: Optional[str] = None
    eventId: Optional[str] = None
    imageUrl: Optional[str] = None
    tags: List[str] = []
    notes: Optional[str] = None
    cost: Optional[float] = None
    thanked: bool = False

    @field_validator('name')
    def validate_name(cls, v):
        return clean_name(v)

    @model_validator(mode='after')
    def drop_fields_for_other_direction(self):
        # cost only applies to given gifts, thanked only to received ones
        if self.type == "received":
            self.cost = None
        else:
            self.thanked = False
        return self


class GiftCreate(GiftBase):
    pass


class GiftUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[GiftType] = None
    date: Optional[str] = None
    contactId: Optional[str] = None
    eventId: Optional[str] = None
    imageUrl: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    cost: Optional[float] = None
    thanked: Optional[bool] = None

    @field_validator('name', 'type', 'thanked')
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        if info.field_name == 'name':
            return clean_name(v)
        return v


class Gift(GiftBase):
    giftId: str
    userId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
