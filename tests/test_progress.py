"""Tests for skillsage.tools.progress."""
import pytest

from skillsage.models.plan import DailyTaskGroup, LearningModule, LearningPlan, LearningTask
from skillsage.tools.progress import module_progress, plan_progress, portfolio_summary


def test_three_of_ten_is_thirty(make_plan) -> None:
    assert plan_progress(make_plan("p", tasks=10, completed=3)) == 30


def test_plan_without_tasks_is_zero() -> None:
    assert plan_progress(LearningPlan(id="p", skill="Go", modules=[])) == 0


@pytest.mark.parametrize(
    "tasks, completed, expected",
    [(3, 1, 33), (3, 2, 67), (8, 1, 13), (6, 5, 83), (4, 4, 100)],
)
def test_rounds_half_up(make_plan, tasks, completed, expected) -> None:
    assert plan_progress(make_plan("p", tasks=tasks, completed=completed)) == expected


def test_module_progress_counts_every_day() -> None:
    module = LearningModule(
        week=1,
        title="Week 1",
        daily_tasks=[
            DailyTaskGroup(day=1, tasks=[LearningTask(title="a", completed=True)]),
            DailyTaskGroup(day=2, tasks=[LearningTask(title="b"), LearningTask(title="c")]),
        ],
    )
    assert module_progress(module) == 33


def test_portfolio_summary(make_plan) -> None:
    plan = make_plan("p", skill="Chess", tasks=4, completed=1, assessment_summary="Beginner")
    (entry,) = portfolio_summary([plan])

    assert entry == {
        "skill": "Chess",
        "level": "Beginner",
        "progress": "25% complete",
        "depth": "Standard",
    }


def test_long_plans_are_in_depth(make_plan) -> None:
    plan = make_plan("p")
    plan.modules = plan.modules * 9
    assert portfolio_summary([plan])[0]["depth"] == "In-depth"
