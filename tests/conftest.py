"""Shared fixtures: plan factories, fake Gemini backend, in-memory Drive."""
from types import SimpleNamespace
from typing import Optional

import pytest

from skillsage.models.plan import (
    DailyTaskGroup,
    LearningModule,
    LearningPlan,
    LearningTask,
)


def _plan(
    plan_id: str,
    skill: str = "Python",
    tasks: int = 2,
    completed: int = 0,
    **fields,
) -> LearningPlan:
    """Plan with one module, one day and `tasks` tasks, the first `completed` done."""
    group = DailyTaskGroup(
        day=1,
        tasks=[
            LearningTask(title=f"Task {i}", description="", completed=i < completed)
            for i in range(tasks)
        ],
    )
    return LearningPlan(
        id=plan_id,
        creation_date=plan_id,
        skill=skill,
        modules=[LearningModule(week=1, title="Week 1: Basics", daily_tasks=[group])],
        daily_logs=[],
        **fields,
    )


@pytest.fixture
def make_plan():
    return _plan


class FakeModels:
    """Stands in for `client.aio.models`; replies are consumed in order."""

    def __init__(self, replies: list):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def generate_content(self, model: str, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if not self.replies:
            raise RuntimeError("no fake reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return SimpleNamespace(text=reply, candidates=[])
        return reply


class FakeGenAIBackend:
    def __init__(self, replies: Optional[list] = None):
        self.models = FakeModels(replies or [])
        self.aio = SimpleNamespace(models=self.models)


@pytest.fixture
def fake_backend():
    return FakeGenAIBackend


class InMemoryDrive:
    """Duck-typed DriveStore for orchestrator tests."""

    def __init__(self, plans: Optional[list[LearningPlan]] = None):
        self.plans = list(plans or [])
        self.saves: list[list[LearningPlan]] = []
        self.fail_list: Optional[Exception] = None
        self.fail_save: Optional[Exception] = None

    async def list_plans(self) -> list[LearningPlan]:
        if self.fail_list:
            raise self.fail_list
        return list(self.plans)

    async def save_plans(self, plans: list[LearningPlan]) -> None:
        if self.fail_save:
            raise self.fail_save
        self.saves.append(list(plans))
        self.plans = list(plans)


@pytest.fixture
def drive_factory():
    return InMemoryDrive
