"""
Per-user local copy of gifts, contacts and events.

Every mutation lands in memory first and then the whole blob is written back
through a KeyValueStore. Large embedded images are stripped from the written
copy rather than failing the write; the in-memory copy keeps them.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from gifttracker.client.errors import StorageQuotaExceeded
from gifttracker.models.contact import Contact
from gifttracker.models.event import Event
from gifttracker.models.gift import Gift
from gifttracker.services.monitoring import ErrorType, Monitor

logger = logging.getLogger(__name__)

# Embedded images above these sizes are not written to the store
BULK_IMAGE_LIMIT = 250 * 1024
CAPTURE_IMAGE_LIMIT = 1024 * 1024

STORAGE_WARNING = "Storage is full. Your latest changes are kept for this session only."

GIFT_LIST_KEYS = {"received": "receivedGifts", "given": "givenGifts"}


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, user_id: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, user_id: str, blob: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Dict-backed store with an optional quota over all users' blobs."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get(self, user_id: str) -> Optional[str]:
        return self._data.get(user_id)

    def set(self, user_id: str, blob: str) -> None:
        if self.quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != user_id)
            if others + len(blob.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceeded(f"Quota of {self.quota_bytes} bytes exceeded")
        self._data[user_id] = blob


class JsonFileStore(KeyValueStore):
    """One <user_id>.json file per user under a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        return self.directory / f"{user_id}.json"

    def get(self, user_id: str) -> Optional[str]:
        path = self._path(user_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, user_id: str, blob: str) -> None:
        self._path(user_id).write_text(blob, encoding="utf-8")


@dataclass(frozen=True)
class GiftCountChanged:
    direction: str
    count: int


def is_embedded_image(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def empty_flags() -> Dict[str, Any]:
    return {
        "visitedPages": [],
        "loginCount": 0,
        "seenFeatures": [],
        "showFeatures": True,
        "helpSeen": [],
    }


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class LocalStoreSync:
    def __init__(self, user_id: str, store: KeyValueStore, monitor: Optional[Monitor] = None):
        self.user_id = user_id
        self.store = store
        self.monitor = monitor or Monitor()
        self.gifts: Dict[str, List[Gift]] = {"received": [], "given": []}
        self.contacts: List[Contact] = []
        self.events: List[Event] = []
        self.flags: Dict[str, Any] = empty_flags()
        self.warnings: List[str] = []
        self._listeners: List[Callable[[GiftCountChanged], None]] = []

    # --- Loading ---

    def load(self) -> bool:
        """Hydrates from the stored blob. Returns False when nothing was stored yet."""
        blob = self.store.get(self.user_id)
        self.gifts = {"received": [], "given": []}
        self.contacts = []
        self.events = []
        self.flags = empty_flags()
        if blob is None:
            logger.info(f"No stored data for {self.user_id}; starting empty.")
            return False

        data = json.loads(blob)
        for direction, key in GIFT_LIST_KEYS.items():
            self.gifts[direction] = [Gift.model_validate(g) for g in data.get(key, [])]
        self.contacts = [Contact.model_validate(c) for c in data.get("contacts", [])]
        self.events = [Event.model_validate(e) for e in data.get("events", [])]
        for flag in self.flags:
            if flag in data:
                self.flags[flag] = data[flag]
        return True

    @property
    def received_gifts(self) -> List[Gift]:
        return self.gifts["received"]

    @property
    def given_gifts(self) -> List[Gift]:
        return self.gifts["given"]

    def gift_count(self, direction: str) -> int:
        return len(self.gifts[direction])

    # --- Broadcast ---

    def subscribe(self, listener: Callable[[GiftCountChanged], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _broadcast(self, direction: str):
        event = GiftCountChanged(direction=direction, count=self.gift_count(direction))
        for listener in list(self._listeners):
            listener(event)

    # --- Persistence ---

    def _dump_gift(self, gift: Gift, strip_all: bool, captured_gift_id: Optional[str]) -> Dict[str, Any]:
        data = gift.model_dump(mode="json")
        image = data.get("imageUrl")
        if image is None:
            return data
        if strip_all:
            data["imageUrl"] = None
        elif is_embedded_image(image):
            limit = CAPTURE_IMAGE_LIMIT if gift.giftId == captured_gift_id else BULK_IMAGE_LIMIT
            size = len(image.encode("utf-8"))
            if size > limit:
                logger.warning(f"Dropping {size} byte embedded image of gift {gift.giftId} from stored copy")
                data["imageUrl"] = None
        return data

    def serialize(self, strip_all: bool = False, captured_gift_id: Optional[str] = None) -> str:
        blob = {
            key: [self._dump_gift(g, strip_all, captured_gift_id) for g in self.gifts[direction]]
            for direction, key in GIFT_LIST_KEYS.items()
        }
        blob["contacts"] = [c.model_dump(mode="json") for c in self.contacts]
        blob["events"] = [e.model_dump(mode="json") for e in self.events]
        blob.update(self.flags)
        return json.dumps(blob)

    def persist(self, captured_gift_id: Optional[str] = None) -> bool:
        """
        Writes the whole blob. On failure, retries once with every image
        stripped; if that fails too, records a warning and leaves memory as
        the only copy.
        """
        try:
            self.store.set(self.user_id, self.serialize(captured_gift_id=captured_gift_id))
            return True
        except Exception as e:
            logger.warning(f"Write for {self.user_id} failed ({e}); retrying without images")

        try:
            self.store.set(self.user_id, self.serialize(strip_all=True))
            return True
        except Exception as e:
            self.warnings.append(STORAGE_WARNING)
            self.monitor.log_error(ErrorType.STORAGE, str(e), {"operation": "persist"}, user_id=self.user_id)
            return False

    # --- Gifts ---

    def _find_gift(self, gift_id: str):
        for direction, gifts in self.gifts.items():
            for index, gift in enumerate(gifts):
                if gift.giftId == gift_id:
                    return direction, index
        raise KeyError(f"Gift {gift_id} not found")

    def add_gift(self, gift: Union[BaseModel, Dict[str, Any]]) -> Gift:
        data = _as_dict(gift)
        data.setdefault("giftId", str(uuid.uuid4()))
        data.setdefault("createdAt", datetime.now(timezone.utc))
        data["userId"] = self.user_id
        record = Gift.model_validate(data)

        self.gifts[record.type].append(record)
        self.persist(captured_gift_id=record.giftId)
        self._broadcast(record.type)
        return record

    def edit_gift(self, gift_id: str, changes: Union[BaseModel, Dict[str, Any]]) -> Gift:
        direction, index = self._find_gift(gift_id)
        changes = _as_dict(changes)
        existing = self.gifts[direction][index]
        updated = Gift.model_validate({
            **existing.model_dump(),
            **changes,
            "giftId": gift_id,
            "updatedAt": datetime.now(timezone.utc),
        })

        if updated.type == direction:
            self.gifts[direction][index] = updated
        else:
            del self.gifts[direction][index]
            self.gifts[updated.type].append(updated)

        # A freshly attached image goes through the capture limit
        self.persist(captured_gift_id=gift_id if "imageUrl" in changes else None)
        if updated.type != direction:
            self._broadcast(direction)
            self._broadcast(updated.type)
        return updated

    def delete_gift(self, gift_id: str) -> bool:
        try:
            direction, index = self._find_gift(gift_id)
        except KeyError:
            return False
        del self.gifts[direction][index]
        self.persist()
        self._broadcast(direction)
        return True

    # --- Contacts ---

    def _contact_index(self, contact_id: str) -> int:
        for index, contact in enumerate(self.contacts):
            if contact.contactId == contact_id:
                return index
        raise KeyError(f"Contact {contact_id} not found")

    def add_contact(self, contact: Union[BaseModel, Dict[str, Any]]) -> Contact:
        data = _as_dict(contact)
        data.setdefault("contactId", str(uuid.uuid4()))
        data.setdefault("createdAt", datetime.now(timezone.utc))
        data["userId"] = self.user_id
        record = Contact.model_validate(data)
        self.contacts.append(record)
        self.persist()
        return record

    def edit_contact(self, contact_id: str, changes: Union[BaseModel, Dict[str, Any]]) -> Contact:
        index = self._contact_index(contact_id)
        updated = Contact.model_validate({
            **self.contacts[index].model_dump(),
            **_as_dict(changes),
            "contactId": contact_id,
            "updatedAt": datetime.now(timezone.utc),
        })
        self.contacts[index] = updated
        self.persist()
        return updated

    def delete_contact(self, contact_id: str) -> bool:
        try:
            index = self._contact_index(contact_id)
        except KeyError:
            return False
        del self.contacts[index]
        self.persist()
        return True

    # --- Events ---

    def _event_index(self, event_id: str) -> int:
        for index, event in enumerate(self.events):
            if event.eventId == event_id:
                return index
        raise KeyError(f"Event {event_id} not found")

    def add_event(self, event: Union[BaseModel, Dict[str, Any]]) -> Event:
        data = _as_dict(event)
        data.setdefault("eventId", str(uuid.uuid4()))
        data.setdefault("createdAt", datetime.now(timezone.utc))
        data["userId"] = self.user_id
        record = Event.model_validate(data)
        self.events.append(record)
        self.persist()
        return record

    def edit_event(self, event_id: str, changes: Union[BaseModel, Dict[str, Any]]) -> Event:
        index = self._event_index(event_id)
        updated = Event.model_validate({
            **self.events[index].model_dump(),
            **_as_dict(changes),
            "eventId": event_id,
            "updatedAt": datetime.now(timezone.utc),
        })
        self.events[index] = updated
        self.persist()
        return updated

    def delete_event(self, event_id: str) -> bool:
        try:
            index = self._event_index(event_id)
        except KeyError:
            return False
        del self.events[index]
        self.persist()
        return True

    # --- Bookkeeping flags ---

    def mark_page_visited(self, page: str) -> bool:
        """Returns True on the first visit to a page."""
        if page in self.flags["visitedPages"]:
            return False
        self.flags["visitedPages"] = [*self.flags["visitedPages"], page]
        self.persist()
        return True

    def record_login(self) -> int:
        self.flags["loginCount"] += 1
        self.persist()
        return self.flags["loginCount"]

    def mark_feature_seen(self, feature_id: str):
        if feature_id not in self.flags["seenFeatures"]:
            self.flags["seenFeatures"] = [*self.flags["seenFeatures"], feature_id]
            self.persist()

    def set_show_features(self, show: bool):
        self.flags["showFeatures"] = show
        self.persist()

    def has_seen_help(self, help_key: str) -> bool:
        return help_key in self.flags["helpSeen"]

    def mark_help_seen(self, help_key: str):
        if help_key not in self.flags["helpSeen"]:
            self.flags["helpSeen"] = [*self.flags["helpSeen"], help_key]
            self.persist()
