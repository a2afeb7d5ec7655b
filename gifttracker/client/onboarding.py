import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from gifttracker.client.local_store import LocalStoreSync

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feature:
    id: str
    title: str
    description: str
    route: str


FEATURES: Tuple[Feature, ...] = (
    Feature("gifts_received", "Track received gifts",
            "Keep a record of gifts you receive and who they came from.", "/gifts/received"),
    Feature("contacts", "Manage contacts",
            "Save interests and important dates for the people you buy for.", "/contacts"),
    Feature("events", "Plan events",
            "Add birthdays and holidays so you never miss one.", "/events"),
    Feature("notifications", "Get reminders",
            "Reminders show up here a week before each event.", "/notifications"),
)

# Login count on which each feature in FEATURES is offered
LOGIN_THRESHOLDS = (1, 3, 5, 7)


def next_feature_to_show(sync: LocalStoreSync) -> Optional[Feature]:
    """
    Records a login and returns the feature to introduce on it, if any.

    The feature is chosen from the count before this login is added, and is
    marked seen so it is only offered once.
    """
    previous_logins = sync.flags["loginCount"]
    sync.record_login()

    if not sync.flags["showFeatures"]:
        return None

    for feature, threshold in zip(FEATURES, LOGIN_THRESHOLDS):
        if previous_logins == threshold and feature.id not in sync.flags["seenFeatures"]:
            sync.mark_feature_seen(feature.id)
            logger.info(f"Introducing feature {feature.id} to {sync.user_id}")
            return feature
    return None
