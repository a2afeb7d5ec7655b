from sqlalchemy import Column, String, Text, Boolean, JSON, Float, DateTime

from gifttracker import config
from gifttracker.database.connection import Base


class User(Base):
    __tablename__ = config.USERS_TABLE
    user_id = Column(String(128), primary_key=True)
    name = Column(String(255), nullable=True)
    email = Column(Text, nullable=True)
    preferences = Column(JSON, nullable=True)


class Contact(Base):
    __tablename__ = config.CONTACTS_TABLE
    contact_id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    relationship = Column(String(100), nullable=True)
    interests = Column(JSON, nullable=True)
    important_dates = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Event(Base):
    __tablename__ = config.EVENTS_TABLE
    event_id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # Stored as the client sent it; the reminder scan tolerates malformed values
    date = Column(String(64), nullable=False)
    type = Column(String(100), nullable=True)
    contact_ids = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    reminder = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Gift(Base):
    __tablename__ = config.GIFTS_TABLE
    gift_id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)
    date = Column(String(64), nullable=True)
    contact_id = Column(String(36), nullable=True, index=True)
    event_id = Column(String(36), nullable=True, index=True)
    image_url = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    cost = Column(Float, nullable=True)
    thanked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Notification(Base):
    # No index on user_id: listing scans the table and filters by owner
    __tablename__ = config.NOTIFICATIONS_TABLE
    notification_id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=True)
    event_id = Column(String(36), nullable=False)
    contact_id = Column(String(36), nullable=False)
    message = Column(Text, nullable=False)
    date = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    read = Column(Boolean, default=False, nullable=False)
