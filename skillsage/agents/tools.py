"""ADK tool wrappers over the plan collection.

Tools read the live `PlanState` bound by `build_services`. Run standalone,
the first tool call opens a session of its own.
"""
import logging
from typing import Optional

from skillsage.config import Settings
from skillsage.models.plan import LearningPlan
from skillsage.tools.plan_state import PlanState
from skillsage.tools.progress import module_progress, plan_progress, portfolio_summary

logger = logging.getLogger(__name__)

_bound_state: Optional[PlanState] = None


def bind_state(state: Optional[PlanState]) -> None:
    """Point the tools at a live plan collection (None to unbind)."""
    global _bound_state
    _bound_state = state


async def _plans() -> list[LearningPlan]:
    if _bound_state is None:
        await _start_session()
    return list(_bound_state.plans)


async def _start_session() -> None:
    """Open a session for a standalone agent (adk run / adk web).

    With GOOGLE_ACCESS_TOKEN set this signs in and syncs with Drive; otherwise
    the plans come from local storage. `build_services` binds the new state.
    """
    from skillsage.services import build_services

    settings = Settings.from_env()
    services = build_services(settings)
    await services.identity.initialize()
    if settings.google_access_token and not await services.identity.sign_in():
        logger.warning(f"Agent sign-in failed ({services.identity.error_message}); using local plans")


async def list_plans() -> dict:
    """
    List the user's learning plans with overall progress.

    Returns:
        dict with:
        - status: "success"
        - plans: list of {plan_id, skill, framework, modules, progress_percent, created}
        - total_plans: count
    """
    plans = await _plans()
    summaries = [
        {
            "plan_id": plan.id,
            "skill": plan.skill,
            "framework": plan.framework,
            "modules": len(plan.modules),
            "progress_percent": plan_progress(plan),
            "created": plan.creation_date,
        }
        for plan in plans
    ]
    message = f"Found {len(summaries)} plan(s)." if summaries else "The user has no learning plans yet."
    return {"status": "success", "plans": summaries, "total_plans": len(summaries), "message": message}


async def get_plan_progress(plan_id: str) -> dict:
    """
    Detailed progress for one plan, per module.

    Args:
        plan_id: id from list_plans

    Returns:
        dict with status, skill, progress_percent, modules (title + progress_percent),
        journal_entries, or status "error" with a message
    """
    plans = await _plans()
    plan = next((p for p in plans if p.id == plan_id), None)
    if plan is None:
        return {"status": "error", "message": f"No plan with id {plan_id}"}

    return {
        "status": "success",
        "skill": plan.skill,
        "assessment": plan.assessment_summary,
        "progress_percent": plan_progress(plan),
        "modules": [
            {"week": m.week, "title": m.title, "progress_percent": module_progress(m)}
            for m in plan.modules
        ],
        "journal_entries": len(plan.daily_logs or []),
    }


async def get_portfolio_summary() -> dict:
    """
    Skill, level, progress and depth for every plan; use it to suggest next skills.

    Returns:
        dict with status and portfolio (list of per-plan summaries)
    """
    portfolio = portfolio_summary(await _plans())
    return {"status": "success", "portfolio": portfolio, "total_plans": len(portfolio)}
