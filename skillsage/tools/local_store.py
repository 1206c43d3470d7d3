"""Local persistence: named string slots on disk, plans envelope and schedule."""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from skillsage.models.plan import LearningPlan, StoredPlansContainer
from skillsage.models.session import UserSchedule
from skillsage.tools.migrations import CURRENT_VERSION, normalize

logger = logging.getLogger(__name__)

PLANS_STORAGE_KEY = "skillSagePlans"
SCHEDULE_STORAGE_KEY = "skillSageSchedule"


class LocalSlots:
    """Key-value store of strings, one file per key under `root`."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Write atomically (write temp then replace)."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(value, encoding="utf-8")
        temp_path.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class LocalPlanStore:
    """Versioned plans envelope in the `skillSagePlans` slot."""

    def __init__(self, slots: LocalSlots, key: str = PLANS_STORAGE_KEY):
        self.slots = slots
        self.key = key

    def has_data(self) -> bool:
        return self.slots.get_item(self.key) is not None

    def load(self) -> list[LearningPlan]:
        """Load and migrate stored plans. Missing or corrupt data loads as []."""
        try:
            stored = self.slots.get_item(self.key)
            if not stored:
                return []
            return normalize(json.loads(stored))
        except (OSError, ValueError) as e:
            logger.error(f"Error loading plans from local storage: {e}")
            return []

    def save(self, plans: list[LearningPlan]) -> None:
        """Always write the envelope stamped with the current version."""
        container = StoredPlansContainer(version=CURRENT_VERSION, plans=plans)
        self.slots.set_item(self.key, json.dumps(container.to_json_dict()))

    def clear(self) -> None:
        self.slots.remove_item(self.key)


class ScheduleStore:
    """Flat, unversioned schedule record in the `skillSageSchedule` slot."""

    def __init__(self, slots: LocalSlots, key: str = SCHEDULE_STORAGE_KEY):
        self.slots = slots
        self.key = key

    def load(self) -> Optional[UserSchedule]:
        try:
            stored = self.slots.get_item(self.key)
            if not stored:
                return None
            return UserSchedule.model_validate_json(stored)
        except (OSError, ValidationError) as e:
            logger.error(f"Error loading schedule from local storage: {e}")
            return None

    def save(self, schedule: UserSchedule) -> None:
        self.slots.set_item(self.key, json.dumps(schedule.to_json_dict()))

    def clear(self) -> None:
        self.slots.remove_item(self.key)
