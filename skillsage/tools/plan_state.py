"""In-memory authoritative plan collection.

Readers get immutable projections and may subscribe to changes; only
`PlanSync` writes (through `replace`).
"""
import logging
from typing import Callable, Optional

from skillsage.models.plan import LearningPlan
from skillsage.models.session import UserSchedule

logger = logging.getLogger(__name__)

PlansObserver = Callable[[tuple[LearningPlan, ...]], None]


class PlanState:
    def __init__(self) -> None:
        self._plans: tuple[LearningPlan, ...] = ()
        self._schedule: Optional[UserSchedule] = None
        self._observers: list[PlansObserver] = []

    @property
    def plans(self) -> tuple[LearningPlan, ...]:
        return self._plans

    @property
    def schedule(self) -> Optional[UserSchedule]:
        return self._schedule

    def get(self, plan_id: str) -> Optional[LearningPlan]:
        return next((p for p in self._plans if p.id == plan_id), None)

    def subscribe(self, observer: PlansObserver) -> None:
        self._observers.append(observer)

    def replace(self, plans: list[LearningPlan]) -> None:
        self._plans = tuple(plans)
        for observer in self._observers:
            observer(self._plans)

    def set_schedule(self, schedule: Optional[UserSchedule]) -> None:
        self._schedule = schedule
