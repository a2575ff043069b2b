"""Preference Store - Durable per-user preferences in Firestore.

Only two scalars are kept: the weight goal and the sex used by the body fat
formula. Keys are namespaced per user so several accounts can share a store.
"""

import logging
from dataclasses import dataclass
from typing import Any

from google.cloud import firestore

from ..core.models import Sex


logger = logging.getLogger(__name__)

WEIGHT_GOAL_KEY = "weightGoal"
SEX_KEY = "gender"


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def user_key(key: str, user_id: str | None) -> str:
    """Namespace a preference key, e.g. weightGoal_user_42."""
    return f"{key}_user_{user_id}" if user_id else key


class PreferenceStore:
    """Key-value preference storage.

    Document structure:
        preferences/{key}_user_{user_id}: { value: ... }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize preference store.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _ref(self, key: str, user_id: str | None) -> firestore.DocumentReference:
        return self.client.collection("preferences").document(user_key(key, user_id))

    def get_item(self, key: str, user_id: str | None) -> Any:
        """Read a raw preference value, or None if unset."""
        try:
            doc = self._ref(key, user_id).get()
            if not doc.exists:
                return None
            return (doc.to_dict() or {}).get("value")
        except Exception as e:
            logger.error("Failed to read preference %s: %s", key, str(e))
            return None

    def set_item(self, key: str, user_id: str | None, value: Any) -> bool:
        """Write a preference value.

        Returns:
            True if successful
        """
        logger.info("Saving preference %s for user: %s", key, (user_id or "-")[:8])
        try:
            self._ref(key, user_id).set({"value": value})
            return True
        except Exception as e:
            logger.error("Failed to save preference %s: %s", key, str(e))
            return False

    # ==================== Typed Accessors ====================

    def get_weight_goal(self, user_id: str | None) -> float | None:
        """Weight goal in kilograms."""
        value = self.get_item(WEIGHT_GOAL_KEY, user_id)
        try:
            goal = float(value)
        except (TypeError, ValueError):
            return None
        return goal if goal > 0 else None

    def set_weight_goal(self, user_id: str | None, goal_kg: float) -> bool:
        if goal_kg <= 0:
            logger.warning("Rejected non-positive weight goal")
            return False
        return self.set_item(WEIGHT_GOAL_KEY, user_id, str(goal_kg))

    def get_sex(self, user_id: str | None) -> Sex | None:
        value = self.get_item(SEX_KEY, user_id)
        try:
            return Sex(value)
        except ValueError:
            return None

    def set_sex(self, user_id: str | None, sex: Sex) -> bool:
        return self.set_item(SEX_KEY, user_id, Sex(sex).value)
