"""Tests for skillsage.tools.plan_actions."""
import json
from pathlib import Path

import pytest

from skillsage.models.plan import Attachment, DailyLog
from skillsage.models.session import PlanConfig, QuizQuestion
from skillsage.tools.genai_client import GenAIClient
from skillsage.tools.local_store import LocalPlanStore, LocalSlots
from skillsage.tools.plan_actions import (
    PlanActions,
    PlanGenerationError,
    PlanNotFoundError,
    group_logs,
    is_long_term_plan,
    score_quiz,
    split_marker,
)
from skillsage.tools.plan_generation import PlanGenerator
from skillsage.tools.plan_state import PlanState
from skillsage.tools.plan_sync import PlanSync
from skillsage.tools.sage_chat import ASSESSMENT_COMPLETE, SageChat

GENERATED = {
    "skill": "Golang for experts",
    "modules": [{"week": 1, "title": "Week 1", "dailyTasks": [{"day": 1, "tasks": [{"title": "t"}]}]}],
}


def _actions(tmp_path: Path, fake_backend, drive_factory, replies=()) -> PlanActions:
    genai = GenAIClient(client=fake_backend(list(replies)))
    sync = PlanSync(PlanState(), LocalPlanStore(LocalSlots(tmp_path)), drive_factory())
    return PlanActions(sync, PlanGenerator(genai), SageChat(genai))


@pytest.mark.asyncio
async def test_create_plan_stamps_identity(tmp_path: Path, fake_backend, drive_factory) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory, [json.dumps(GENERATED), '["Rust", "C"]'])
    config = PlanConfig(skill="Go", time_commitment="5 days a week", framework="disss")

    plan = await actions.create_plan(config, "Knows Python")

    assert plan.skill == "Go"
    assert plan.id == plan.creation_date
    assert plan.id.endswith("Z")
    assert plan.framework == "disss"
    assert plan.daily_logs == []
    assert plan.suggested_skills == ["Rust", "C"]
    assert actions.sync.get_plan(plan.id) is not None
    assert [p.id for p in actions.sync.local.load()] == [plan.id]


@pytest.mark.asyncio
async def test_create_plan_failure_raises(tmp_path: Path, fake_backend, drive_factory) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory, ["nonsense"])
    with pytest.raises(PlanGenerationError):
        await actions.create_plan(PlanConfig(skill="Go", time_commitment="1 day"), "")
    assert actions.sync.state.plans == ()


def test_toggle_task(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p", tasks=2))

    plan = actions.toggle_task("p", 0, 0, 1)
    assert plan.modules[0].daily_tasks[0].tasks[1].completed
    assert actions.sync.get_plan("p").modules[0].daily_tasks[0].tasks[1].completed

    actions.toggle_task("p", 0, 0, 1)
    assert not actions.sync.get_plan("p").modules[0].daily_tasks[0].tasks[1].completed


def test_toggle_bad_index_and_missing_plan(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p", tasks=1))

    with pytest.raises(IndexError):
        actions.toggle_task("p", 0, 0, 5)
    with pytest.raises(PlanNotFoundError):
        actions.toggle_task("missing", 0, 0, 0)


def test_add_log_prepends(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p"))

    actions.add_log("p", "first")
    plan = actions.add_log("p", "  second  ")

    assert [log.notes for log in plan.daily_logs] == ["second", "first"]
    assert plan.daily_logs[0].id != plan.daily_logs[1].id


def test_add_log_with_only_attachment(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p"))

    assert actions.add_log("p", "   ") is None
    photo = Attachment(mime_type="image/png", data="aGk=", name="photo.png")
    plan = actions.add_log("p", "", attachment=photo)
    assert plan.daily_logs[0].attachment.name == "photo.png"


@pytest.mark.asyncio
async def test_regenerate_requires_instruction(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p"))
    with pytest.raises(ValueError):
        await actions.regenerate("p", "   ")


@pytest.mark.asyncio
async def test_regenerate_replaces_modules(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory, [json.dumps(GENERATED)])
    actions.sync.save_plan(make_plan("p", skill="Go"))

    plan = await actions.regenerate("p", "Shorter please")
    assert plan.skill == "Go"
    assert actions.sync.get_plan("p").modules[0].title == "Week 1"


@pytest.mark.asyncio
async def test_convert_framework(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory, [json.dumps(GENERATED)])
    actions.sync.save_plan(make_plan("p"))

    plan = await actions.convert_framework("p")
    assert plan.framework == "disss"

    # Already converted: no second model call
    again = await actions.convert_framework("p")
    assert again.framework == "disss"


def test_split_marker() -> None:
    assert split_marker(f"You are a beginner. {ASSESSMENT_COMPLETE}", ASSESSMENT_COMPLETE) == (
        "You are a beginner.",
        True,
    )
    assert split_marker("What have you built?", ASSESSMENT_COMPLETE) == ("What have you built?", False)


def test_score_quiz() -> None:
    questions = [
        QuizQuestion(question="q1", options=["a", "b"], correct_answer="a"),
        QuizQuestion(question="q2", options=["a", "b"], correct_answer="b"),
    ]
    assert score_quiz(questions, {0: "a", 1: "a"}) == 50.0
    assert score_quiz(questions, {0: "a", 1: "b"}) == 100.0
    assert score_quiz([], {}) == 0.0


def test_is_long_term_plan(make_plan) -> None:
    plan = make_plan("p")
    assert not is_long_term_plan(plan)

    milestone = plan.modules[0].model_copy(update={"title": "Months 3-4: Core"})
    plan.modules = plan.modules * 4 + [milestone]
    assert is_long_term_plan(plan)


def _log(date: str) -> DailyLog:
    return DailyLog(id=date, date=date, notes=date)


def test_group_logs_by_day_newest_first() -> None:
    logs = [_log("2024-03-01T09:00:00Z"), _log("2024-03-02T10:00:00Z"), _log("2024-03-01T18:00:00Z")]
    grouped = group_logs(logs, "day")

    assert list(grouped) == ["Saturday, March 02, 2024", "Friday, March 01, 2024"]
    assert [log.id for log in grouped["Friday, March 01, 2024"]] == [
        "2024-03-01T18:00:00Z",
        "2024-03-01T09:00:00Z",
    ]


def test_group_logs_by_week_month_year() -> None:
    logs = [_log("2024-03-02T10:00:00Z"), _log("2024-03-03T10:00:00Z"), _log("2023-12-31T10:00:00Z")]

    assert list(group_logs(logs, "week")) == [
        "Week of 2024-03-03",
        "Week of 2024-02-25",
        "Week of 2023-12-31",
    ]
    assert list(group_logs(logs, "month")) == ["March 2024", "December 2023"]
    assert list(group_logs(logs, "year")) == ["2024", "2023"]


def test_toggle_rejects_negative_indices(tmp_path: Path, fake_backend, drive_factory, make_plan) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p", tasks=2))

    with pytest.raises(IndexError):
        actions.toggle_task("p", 0, 0, -1)
    assert not any(t.completed for t in actions.sync.get_plan("p").all_tasks())


@pytest.mark.asyncio
async def test_convert_keeps_changes_made_during_the_call(
    tmp_path: Path, fake_backend, drive_factory, make_plan
) -> None:
    actions = _actions(tmp_path, fake_backend, drive_factory)
    actions.sync.save_plan(make_plan("p", tasks=2))
    original = actions.generator.convert_plan_to_framework

    async def convert_while_user_works(plan, framework):
        actions.add_log("p", "studied while waiting")
        return await original(plan, framework)

    actions.generator.convert_plan_to_framework = convert_while_user_works
    actions.generator.genai = GenAIClient(client=fake_backend([json.dumps(GENERATED)]))

    plan = await actions.convert_framework("p")

    assert plan.framework == "disss"
    assert plan.modules[0].title == "Week 1"
    assert [log.notes for log in plan.daily_logs] == ["studied while waiting"]
    assert actions.sync.get_plan("p").daily_logs[0].notes == "studied while waiting"
