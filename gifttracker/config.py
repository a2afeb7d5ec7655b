# file: config.py

import os
from dotenv import load_dotenv

load_dotenv()

TESTING = os.getenv("TESTING", "False").lower() == "true"

AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

# --- Tables ---
USERS_TABLE = os.getenv("USERS_TABLE", "GiftTracker-Users")
CONTACTS_TABLE = os.getenv("CONTACTS_TABLE", "GiftTracker-Contacts")
EVENTS_TABLE = os.getenv("EVENTS_TABLE", "GiftTracker-Events")
GIFTS_TABLE = os.getenv("GIFTS_TABLE", "GiftTracker-Gifts")
NOTIFICATIONS_TABLE = os.getenv("NOTIFICATIONS_TABLE", "GiftTracker-Notifications")

# --- Reminders ---
REMINDER_DAYS = int(os.getenv("REMINDER_DAYS", "7"))
REMINDER_INTERVAL_SECONDS = int(os.getenv("REMINDER_INTERVAL_SECONDS", "86400"))

# --- Images ---
IMAGES_BUCKET = os.getenv("IMAGES_BUCKET", "gift-tracker-images")
UPLOAD_URL_EXPIRES = int(os.getenv("UPLOAD_URL_EXPIRES", "300"))

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "serviceAccountKey.json")


def get_database_url() -> str:
    """DATABASE_URL wins; otherwise build the asyncpg URL from the DB_* parts."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if TESTING:
        return "sqlite+aiosqlite:///:memory:"

    db_user = os.getenv("DB_USER")
    db_password = os.getenv("DB_PASSWORD")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "gifttracker")

    if not db_password:
        raise ValueError("DB_PASSWORD environment variable is required")

    return f"postgresql+asyncpg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
