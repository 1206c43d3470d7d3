"""Home sage: ADK advisor agent over the user's learning plans."""
import os

from google.adk.agents.llm_agent import Agent

from skillsage.agents.tools import get_plan_progress, get_portfolio_summary, list_plans
from skillsage.config import DEFAULT_CHAT_MODEL

root_agent = Agent(
    model=os.getenv("CHAT_MODEL", DEFAULT_CHAT_MODEL),
    name="skill_sage",
    description="Learning advisor that knows the user's plans and progress.",
    instruction=(
        "You are Skill Sage, a master learning advisor. Use list_plans, get_plan_progress and "
        "get_portfolio_summary to ground your answers in the user's actual plans. Suggest "
        "complementary skills, celebrate progress, and point out learning patterns. Be "
        "encouraging and never mention tool names or raw JSON."
    ),
    tools=[list_plans, get_plan_progress, get_portfolio_summary],
)
