"""Tests for the ADK tool wrappers in skillsage.agents.tools."""
import json
from pathlib import Path

import httpx
import pytest

from skillsage.agents import tools
from skillsage.config import Settings
from skillsage.services import build_services, static_token_requester
from skillsage.tools.local_store import LocalPlanStore, LocalSlots
from skillsage.tools.plan_state import PlanState


@pytest.fixture(autouse=True)
def unbind():
    yield
    tools.bind_state(None)


@pytest.fixture
def bound_state(make_plan):
    state = PlanState()
    state.replace([make_plan("a", skill="Go", tasks=4, completed=2), make_plan("b", skill="Chess")])
    tools.bind_state(state)
    return state


def _google(drive_plans: list[dict]):
    """userinfo plus a Drive holding one plans file."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/oauth2/v3/userinfo":
            return httpx.Response(200, json={"sub": "u1", "email": "ada@example.com"})
        if path == "/drive/v3/files":
            return httpx.Response(200, json={"files": [{"id": "f1"}]})
        if path == "/drive/v3/files/f1":
            return httpx.Response(200, text=json.dumps(drive_plans))
        if path == "/upload/drive/v3/files/f1":
            return httpx.Response(200, json={"id": "f1"})
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_plans(bound_state) -> None:
    result = await tools.list_plans()
    assert result["status"] == "success"
    assert result["total_plans"] == 2
    assert result["plans"][0] == {
        "plan_id": "a",
        "skill": "Go",
        "framework": "standard",
        "modules": 1,
        "progress_percent": 50,
        "created": "a",
    }


@pytest.mark.asyncio
async def test_get_plan_progress(bound_state) -> None:
    result = await tools.get_plan_progress("a")
    assert result["status"] == "success"
    assert result["modules"] == [{"week": 1, "title": "Week 1: Basics", "progress_percent": 50}]
    assert result["journal_entries"] == 0


@pytest.mark.asyncio
async def test_unknown_plan_is_an_error(bound_state) -> None:
    result = await tools.get_plan_progress("zzz")
    assert result["status"] == "error"
    assert "zzz" in result["message"]


@pytest.mark.asyncio
async def test_portfolio_summary(bound_state) -> None:
    result = await tools.get_portfolio_summary()
    assert [entry["skill"] for entry in result["portfolio"]] == ["Go", "Chess"]


@pytest.mark.asyncio
async def test_tools_see_drive_plans_of_a_signed_in_session(tmp_path: Path, make_plan, fake_backend) -> None:
    drive_plans = [make_plan("d1", skill="Drive skill").to_json_dict()]
    services = build_services(
        Settings(google_client_id="cid", state_dir=tmp_path),
        token_requester=static_token_requester("tok"),
        http_client=_google(drive_plans),
        genai_backend=fake_backend(),
    )
    await services.identity.initialize()
    assert await services.identity.sign_in()

    result = await tools.list_plans()
    assert [p["plan_id"] for p in result["plans"]] == ["d1"]

    services.sync.save_plan(make_plan("d2"))
    assert (await tools.list_plans())["total_plans"] == 2
    await services.aclose()


@pytest.mark.asyncio
async def test_standalone_tools_read_local_storage(tmp_path: Path, monkeypatch, make_plan) -> None:
    monkeypatch.setenv("SKILLSAGE_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("GOOGLE_ACCESS_TOKEN", raising=False)
    LocalPlanStore(LocalSlots(tmp_path)).save([make_plan("x")])

    result = await tools.list_plans()
    assert [p["plan_id"] for p in result["plans"]] == ["x"]


@pytest.mark.asyncio
async def test_no_plans_message(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SKILLSAGE_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("GOOGLE_ACCESS_TOKEN", raising=False)
    result = await tools.list_plans()
    assert result["total_plans"] == 0
    assert result["message"] == "The user has no learning plans yet."
