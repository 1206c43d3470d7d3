"""Completion percentages for plans and modules."""
import math

from skillsage.models.plan import LearningModule, LearningPlan, LearningTask


def _percent(tasks: list[LearningTask]) -> int:
    """Completed share as a whole percent, rounded half up. 0 when empty."""
    if not tasks:
        return 0
    completed = sum(1 for t in tasks if t.completed)
    return math.floor(completed * 100 / len(tasks) + 0.5)


def plan_progress(plan: LearningPlan) -> int:
    return _percent(plan.all_tasks())


def module_progress(module: LearningModule) -> int:
    return _percent([task for group in module.daily_tasks for task in group.tasks])


def portfolio_summary(plans: list[LearningPlan]) -> list[dict]:
    """Per-plan profile used for holistic skill suggestions."""
    return [
        {
            "skill": plan.skill,
            "level": plan.assessment_summary,
            "progress": f"{plan_progress(plan)}% complete",
            "depth": "In-depth" if len(plan.modules) > 8 else "Standard",
        }
        for plan in plans
    ]
