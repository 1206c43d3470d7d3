"""User-level plan operations built on PlanSync and the Gemini adapters."""
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from skillsage.models.plan import Attachment, DailyLog, LearningPlan
from skillsage.models.session import PlanConfig, QuizQuestion
from skillsage.tools.plan_generation import PlanGenerator
from skillsage.tools.plan_sync import PlanSync
from skillsage.tools.sage_chat import SageChat

logger = logging.getLogger(__name__)

LogGrouping = Literal["year", "month", "week", "day"]


class PlanGenerationError(Exception):
    """A generation or regeneration produced nothing usable."""


class PlanNotFoundError(KeyError):
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def split_marker(response: str, marker: str) -> tuple[str, bool]:
    """Strip a completion marker such as [[ASSESSMENT_COMPLETE]] from a reply."""
    if marker in response:
        return response.replace(marker, "").strip(), True
    return response, False


def is_long_term_plan(plan: LearningPlan) -> bool:
    """More than 12 modules, or milestone titles after the first four weeks."""
    if len(plan.modules) > 12:
        return True
    return any(not m.title.lower().startswith("week") for m in plan.modules[4:])


def score_quiz(questions: list[QuizQuestion], answers: dict[int, str]) -> float:
    """Percentage of questions answered correctly."""
    if not questions:
        return 0.0
    correct = sum(1 for i, q in enumerate(questions) if answers.get(i) == q.correct_answer)
    return correct / len(questions) * 100


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _group_key(date: datetime, grouping: LogGrouping) -> str:
    if grouping == "year":
        return f"{date.year}"
    if grouping == "month":
        return date.strftime("%B %Y")
    if grouping == "week":
        # Weeks start on Sunday
        start = date - timedelta(days=(date.weekday() + 1) % 7)
        return f"Week of {start.date().isoformat()}"
    return date.strftime("%A, %B %d, %Y")


def group_logs(logs: list[DailyLog], grouping: LogGrouping = "day") -> "OrderedDict[str, list[DailyLog]]":
    """Group journal entries by period, newest first."""
    grouped: OrderedDict[str, list[DailyLog]] = OrderedDict()
    for log in sorted(logs, key=lambda entry: _parse_date(entry.date), reverse=True):
        grouped.setdefault(_group_key(_parse_date(log.date), grouping), []).append(log)
    return grouped


class PlanActions:
    """Operations behind the dashboard; every write goes through PlanSync."""

    def __init__(self, sync: PlanSync, generator: PlanGenerator, chat: SageChat):
        self.sync = sync
        self.generator = generator
        self.chat = chat

    def _require(self, plan_id: str) -> LearningPlan:
        plan = self.sync.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        # Work on a copy; the shared collection is only replaced through PlanSync
        return plan.model_copy(deep=True)

    async def create_plan(self, config: PlanConfig, assessment_summary: str) -> LearningPlan:
        """Generate a plan and save it once the model answers.

        The config is captured up front, so callers may move on while this runs;
        the result is still persisted when it resolves.
        """
        config = config.model_copy(deep=True)
        generated, error = await self.generator.generate_learning_plan(config, assessment_summary)
        if generated is None:
            raise PlanGenerationError(error or "Could not generate a plan.")

        suggestions = await self.chat.get_skill_suggestions(config.skill)
        plan_id = _now_iso()
        plan = LearningPlan(
            id=plan_id,
            creation_date=plan_id,
            # The model may embellish the skill name; keep the user's
            skill=config.skill,
            modules=generated.modules,
            suggested_skills=suggestions,
            framework=config.framework,
            assessment_summary=assessment_summary,
            daily_logs=[],
        )
        self.sync.save_plan(plan)
        logger.info(f"Created plan {plan.id} for '{plan.skill}'")
        return plan

    def delete_plan(self, plan_id: str) -> None:
        self.sync.delete_plan(plan_id)

    def toggle_task(self, plan_id: str, module_index: int, day_index: int, task_index: int) -> LearningPlan:
        plan = self._require(plan_id)
        try:
            if min(module_index, day_index, task_index) < 0:
                raise IndexError
            task = plan.modules[module_index].daily_tasks[day_index].tasks[task_index]
        except IndexError:
            raise IndexError(
                f"No task at module {module_index}, day {day_index}, task {task_index}"
            ) from None
        task.completed = not task.completed
        self.sync.save_plan(plan)
        return plan

    def add_log(self, plan_id: str, notes: str, attachment: Optional[Attachment] = None) -> Optional[LearningPlan]:
        """Prepend a journal entry. Returns None when there is nothing to log."""
        notes = notes.strip()
        if not notes and attachment is None:
            return None

        plan = self._require(plan_id)
        entry = DailyLog(
            id=f"{_now_iso()}-{uuid.uuid4().hex[:8]}",
            date=_now_iso(),
            notes=notes,
            attachment=attachment,
        )
        plan.daily_logs = [entry] + (plan.daily_logs or [])
        self.sync.save_plan(plan)
        return plan

    async def regenerate(
        self, plan_id: str, instruction: str, custom_resources: Optional[str] = None
    ) -> LearningPlan:
        instruction = instruction.strip()
        if not instruction:
            raise ValueError("A regeneration instruction is required")

        plan = self._require(plan_id)
        generated, error = await self.generator.regenerate_plan(plan, instruction, custom_resources)
        if generated is None:
            raise PlanGenerationError(error or "There was an error regenerating your plan.")

        # Re-read: the plan may have changed while the model was working
        current = self._require(plan_id)
        current.modules = generated.modules
        self.sync.save_plan(current)
        return current

    async def convert_framework(self, plan_id: str) -> LearningPlan:
        """Convert a standard plan to DiSSS. No-op for plans already on DiSSS."""
        plan = self._require(plan_id)
        if plan.framework == "disss":
            return plan
        converted, error = await self.generator.convert_plan_to_framework(plan, "disss")
        if converted is None:
            raise PlanGenerationError(error or "Could not convert the plan.")

        # Re-read: keep toggles and journal entries made while the model was working
        current = self._require(plan_id)
        current.modules = converted.modules
        current.framework = converted.framework
        self.sync.save_plan(current)
        return current
