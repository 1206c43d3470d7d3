"""Tests for skillsage.tools.sage_chat."""
from types import SimpleNamespace

import pytest

from skillsage.models.plan import Attachment
from skillsage.models.session import ChatMessage, PlanConfig, UserSchedule
from skillsage.tools.genai_client import GenAIClient
from skillsage.tools.sage_chat import ASSESSMENT_COMPLETE, SageChat


def _chat(fake_backend, replies) -> tuple[SageChat, object]:
    backend = fake_backend(replies)
    return SageChat(GenAIClient(client=backend)), backend


@pytest.mark.asyncio
async def test_assess_skill_with_custom_goal(fake_backend) -> None:
    chat, backend = _chat(fake_backend, ["What have you built so far?"])
    config = PlanConfig(skill="Go", time_commitment="1 hour", goal="2 weeks")
    conversation = [
        ChatMessage(role="model", text="Tell me about your experience."),
        ChatMessage(role="user", text="I wrote some scripts."),
    ]

    reply = await chat.assess_skill(config, conversation)

    assert reply == "What have you built so far?"
    (part,) = backend.models.calls[0]["contents"]
    assert "2 weeks" in part.text
    assert "I wrote some scripts." in part.text


@pytest.mark.asyncio
async def test_assess_skill_attachment_is_inline(fake_backend) -> None:
    chat, backend = _chat(fake_backend, ["Nice photo."])
    message = ChatMessage(
        role="user",
        text="Here is my work",
        attachment=Attachment(mime_type="image/png", data="aGVsbG8=", name="w.png"),
    )
    await chat.assess_skill(PlanConfig(skill="Drawing", time_commitment="1 hour"), [message])

    contents = backend.models.calls[0]["contents"]
    assert len(contents) == 3
    assert contents[2].inline_data.data == b"hello"


@pytest.mark.asyncio
async def test_assess_skill_failure_completes_assessment(fake_backend) -> None:
    chat, _ = _chat(fake_backend, [RuntimeError("boom")])
    reply = await chat.assess_skill(
        PlanConfig(skill="Go", time_commitment="1 hour"), [ChatMessage(role="user", text="hi")]
    )
    assert reply.endswith(ASSESSMENT_COMPLETE)
    assert chat.genai.error


@pytest.mark.asyncio
async def test_quiz_parses_and_tolerates_garbage(fake_backend) -> None:
    quiz_json = '[{"question": "2+2?", "options": ["3", "4"], "correctAnswer": "4"}]'
    chat, _ = _chat(fake_backend, [quiz_json, "not a quiz"])

    (question,) = await chat.generate_quiz("Math", "Week 1")
    assert question.correct_answer == "4"
    assert await chat.generate_quiz("Math", "Week 2") == []


@pytest.mark.asyncio
async def test_holistic_suggestions_need_plans(fake_backend, make_plan) -> None:
    chat, backend = _chat(fake_backend, ['["Rust", 3, "SQL"]'])
    assert await chat.get_holistic_suggestions([]) == []
    assert backend.models.calls == []

    suggestions = await chat.get_holistic_suggestions([make_plan("p", skill="Go")], interests="data")
    assert suggestions == ["Rust", "SQL"]
    assert "data" in backend.models.calls[0]["contents"]


@pytest.mark.asyncio
async def test_find_resources_reads_grounding_chunks(fake_backend) -> None:
    def chunk(title, uri):
        return SimpleNamespace(web=SimpleNamespace(title=title, uri=uri))

    response = SimpleNamespace(
        text="",
        candidates=[
            SimpleNamespace(
                grounding_metadata=SimpleNamespace(
                    grounding_chunks=[chunk("Tour of Go", "https://go.dev/tour"), chunk("", "https://x")]
                )
            )
        ],
    )
    chat, _ = _chat(fake_backend, [response])

    (resource,) = await chat.find_resources("Go")
    assert resource.title == "Tour of Go"
    assert resource.uri == "https://go.dev/tour"


@pytest.mark.asyncio
async def test_system_coach_uses_known_schedule(fake_backend) -> None:
    chat, backend = _chat(fake_backend, ["After coffee, read 5 pages. [[SYSTEM_GENERATED]]"])
    reply = await chat.generate_system_response(
        [ChatMessage(role="user", text="Help me read more")],
        UserSchedule(wake_up_time="06:00"),
    )

    assert "[[SYSTEM_GENERATED]]" in reply
    instruction = backend.models.calls[0]["config"].system_instruction
    assert "06:00" in instruction
    assert "Not specified" in instruction


@pytest.mark.asyncio
async def test_missing_key_fallbacks(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    chat = SageChat(GenAIClient())

    assert await chat.get_skill_suggestions("Go") == []
    assert await chat.find_resources("Go") == []
    assert "API Key missing" in await chat.get_sage_response(
        [], ChatMessage(role="user", text="hi"), "Go"
    )
