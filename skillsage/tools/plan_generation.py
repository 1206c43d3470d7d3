"""Generate, regenerate and convert learning plans with Gemini."""
import json
import logging
from typing import Optional

from google.genai import types
from pydantic import ValidationError

from skillsage.models.plan import GeneratedPlan, LearningFramework, LearningPlan
from skillsage.models.session import PlanConfig
from skillsage.tools.genai_client import GenAIClient, json_config
from skillsage.tools.json_repair import parse_model_json, unwrap_plan_payload

logger = logging.getLogger(__name__)

STANDARD_GOALS = ("3 Months", "6 Months", "Lifelong")
LONG_TERM_KEYWORDS = ("6 months", "lifelong", "year", "years", "long-term", "long term")
LOW_FREQUENCY_COMMITMENTS = ("1 day", "2 days", "3 days")

MAX_OUTPUT_TOKENS = 16384
THINKING_BUDGET = 2048

GENERATION_FAILED = "Failed to generate the learning plan due to an invalid format from the AI. Please try again."
REGENERATION_FAILED = "Failed to regenerate the learning plan due to an invalid format from the AI. Please try again."

DISSS_INSTRUCTIONS = """
Structure this plan with the DiSSS (Deconstruction, Selection, Sequencing, Stakes)
and CaFE (Compression, Frequency, Encoding) frameworks: break the skill into its
smallest parts, pick the 20% that yields 80% of results, order them logically,
suggest a small commitment, add weekly cheatsheets, and design daily tasks around
recall and practical application.
"""


def is_long_term_goal(goal: Optional[str]) -> bool:
    if not goal:
        return False
    goal = goal.lower()
    return any(keyword in goal for keyword in LONG_TERM_KEYWORDS)


def detailed_week_count(time_commitment: str) -> int:
    """Weeks planned day-by-day before a long-term plan switches to milestones."""
    return 8 if any(d in time_commitment for d in LOW_FREQUENCY_COMMITMENTS) else 4


def goal_for_week_count(weeks: int) -> str:
    if weeks <= 13:
        return "3 Months"
    if weeks <= 26:
        return "6 Months"
    return "Lifelong"


def plan_schema(skill: str) -> types.Schema:
    """Response schema for a plan body (skill + modules)."""
    resource = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "uri": types.Schema(type=types.Type.STRING),
        },
    )
    task = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "description": types.Schema(type=types.Type.STRING),
            "completed": types.Schema(type=types.Type.BOOLEAN),
            "resources": types.Schema(type=types.Type.ARRAY, items=resource),
        },
    )
    day = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "day": types.Schema(type=types.Type.INTEGER),
            "tasks": types.Schema(type=types.Type.ARRAY, items=task),
        },
    )
    module = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "week": types.Schema(type=types.Type.INTEGER),
            "title": types.Schema(type=types.Type.STRING),
            "dailyTasks": types.Schema(type=types.Type.ARRAY, items=day),
        },
    )
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "skill": types.Schema(
                type=types.Type.STRING,
                description=f'The name of the skill. This MUST be exactly: "{skill}".',
            ),
            "modules": types.Schema(type=types.Type.ARRAY, items=module),
        },
    )


def parse_generated_plan(raw_text: str) -> GeneratedPlan:
    """Repair, unwrap and validate model output.

    Raises ValueError (json.JSONDecodeError or ValidationError) when the text
    does not contain a plan with a `modules` array.
    """
    data = unwrap_plan_payload(parse_model_json(raw_text))
    if not isinstance(data, dict) or not isinstance(data.get("modules"), list):
        raise ValueError("Response has no 'modules' array")
    return GeneratedPlan.model_validate(data)


def _structure_instructions(config: PlanConfig, long_term: bool) -> str:
    if not long_term:
        return (
            "- Break the plan into weekly modules.\n"
            "- Break each week into daily tasks for exactly the number of days the user "
            "committed to; each day's tasks should fill their session time."
        )
    weeks = detailed_week_count(config.time_commitment)
    return (
        f"This is a long-term plan. Create detailed weekly modules with daily tasks only "
        f"for the first {weeks} weeks (week 1..{weeks}, titled like 'Week 1: Foundations'). "
        f"After that, create milestone modules whose titles name a broader timeframe "
        f"(e.g. 'Months 3-4: Core Concepts'), continuing the 'week' numbering from {weeks + 1}, "
        f"each with a single day holding a checklist of major goals."
    )


class PlanGenerator:
    """Plan-shaped generation calls. Errors are returned, never raised."""

    def __init__(self, genai_client: GenAIClient):
        self.genai = genai_client

    def build_generation_prompt(self, config: PlanConfig, assessment: str) -> str:
        long_term = is_long_term_goal(config.goal) or config.plan_type == "purpose"

        sections = [
            f"You are an expert curriculum designer. A user wants to learn '{config.skill}'.",
            f'Assessment of their current level: "{assessment}".',
            f"They can commit '{config.time_commitment}'.",
        ]
        if config.plan_type == "time" and config.goal:
            sections.append(
                f"Their goal is to learn this over '{config.goal}'. If that timeframe is "
                "unrealistic you may adjust the length, and say so in the first module title."
            )
        elif config.plan_type == "purpose" and config.purpose:
            sections.append(
                f'Their purpose is: "{config.purpose}". Optimize the plan and its duration for it.'
            )
        if config.framework == "disss":
            sections.append(DISSS_INSTRUCTIONS.strip())
        if config.custom_resources:
            sections.append(
                "Prioritize this user-provided resource where relevant, integrating its key "
                f"concepts rather than summarizing it:\n---\n{config.custom_resources}\n---"
            )
        if long_term:
            sections.append("Be very concise: one short sentence per task description.")
        sections.append(_structure_instructions(config, long_term))
        sections.append(
            "Each task needs a title and a short, actionable description. For about half "
            "the tasks include 1-2 reputable online resources with a title and valid URI.\n"
            f"The \"skill\" property must be exactly '{config.skill}'. "
            "Respond with JSON matching the provided schema."
        )
        return "\n\n".join(sections)

    async def generate_learning_plan(
        self, config: PlanConfig, assessment: str
    ) -> tuple[Optional[GeneratedPlan], Optional[str]]:
        """Generate a new plan body. Returns (plan, None) or (None, error)."""
        if not self.genai.ready():
            return None, self.genai.error
        self.genai.clear_error()

        prompt = self.build_generation_prompt(config, assessment)
        return await self._generate_plan(prompt, config.skill, GENERATION_FAILED)

    async def regenerate_plan(
        self,
        plan: LearningPlan,
        instruction: str,
        custom_resources: Optional[str] = None,
    ) -> tuple[Optional[GeneratedPlan], Optional[str]]:
        """Rewrite a plan's modules following the user's instruction."""
        if not self.genai.ready():
            return None, self.genai.error
        self.genai.clear_error()

        modules_json = json.dumps([m.to_json_dict() for m in plan.modules])
        prompt = (
            f"You are an expert curriculum designer. The user has a learning plan for "
            f"'{plan.skill}' and wants to change it.\n\n"
            f"CURRENT MODULES (JSON):\n{modules_json}\n\n"
            f'USER INSTRUCTIONS:\n"{instruction}"\n\n'
        )
        if custom_resources:
            prompt += f"Prioritize this user-provided resource:\n---\n{custom_resources}\n---\n\n"
        prompt += (
            "Regenerate the entire 'modules' array, keeping the weekly/daily structure. "
            "The number of weeks may change if needed. Keep each task description to one "
            f"short sentence. The \"skill\" property must be exactly '{plan.skill}'."
        )
        return await self._generate_plan(prompt, plan.skill, REGENERATION_FAILED)

    async def convert_plan_to_framework(
        self, plan: LearningPlan, framework: LearningFramework
    ) -> tuple[Optional[LearningPlan], Optional[str]]:
        """Regenerate a plan under another framework, keeping its identity and logs."""
        config = PlanConfig(
            skill=plan.skill,
            time_commitment="about the same as before",
            goal=goal_for_week_count(len(plan.modules)),
            plan_type="time",
            framework=framework,
        )
        generated, error = await self.generate_learning_plan(config, plan.assessment_summary)
        if generated is None:
            return None, error
        converted = plan.model_copy(
            deep=True, update={"modules": generated.modules, "framework": framework}
        )
        return converted, None

    async def _generate_plan(
        self, prompt: str, skill: str, failure_message: str
    ) -> tuple[Optional[GeneratedPlan], Optional[str]]:
        raw_text = ""
        try:
            raw_text = await self.genai.generate_text(
                prompt,
                json_config(
                    schema=plan_schema(skill),
                    max_output_tokens=MAX_OUTPUT_TOKENS,
                    thinking_budget=THINKING_BUDGET,
                ),
            )
            generated = parse_generated_plan(raw_text)
        except (ValueError, ValidationError) as e:
            logger.error(f"Error parsing generated plan: {e}")
            if raw_text:
                logger.error(f"Raw AI response that failed parsing: {raw_text}")
            self.genai.error = failure_message
            return None, failure_message
        except Exception as e:
            logger.error(f"Plan generation call failed: {e}")
            self.genai.error = failure_message
            return None, failure_message

        logger.info(f"Generated plan for '{skill}' with {len(generated.modules)} module(s)")
        return generated, None
