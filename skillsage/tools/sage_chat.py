"""Conversational and suggestion calls: assessment, coaches, quizzes, resources."""
import json
import logging
from typing import Optional

from google.genai import types
from pydantic import ValidationError

from skillsage.models.plan import LearningPlan, Resource
from skillsage.models.session import ChatMessage, PlanConfig, QuizQuestion, UserSchedule
from skillsage.tools.genai_client import GenAIClient, attachment_part, json_config, text_part
from skillsage.tools.json_repair import parse_model_json
from skillsage.tools.plan_generation import STANDARD_GOALS
from skillsage.tools.progress import portfolio_summary

logger = logging.getLogger(__name__)

ASSESSMENT_COMPLETE = "[[ASSESSMENT_COMPLETE]]"
SYSTEM_GENERATED = "[[SYSTEM_GENERATED]]"

STRING_LIST_SCHEMA = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))
QUIZ_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "question": types.Schema(type=types.Type.STRING),
            "options": STRING_LIST_SCHEMA,
            "correctAnswer": types.Schema(type=types.Type.STRING),
        },
    ),
)

HABIT_COACH_INSTRUCTION = """You are an AI coach who builds personal systems using the principles of "Atomic Habits".
Ask about the user's current routine (wake and sleep times, work or school schedule, existing habits) and insist on
specifics when answers are vague. After at least 2-3 replies, propose a small, achievable system using habit
stacking ("After [CURRENT HABIT], I will [NEW HABIT]") with a sensible frequency. When presenting the final system,
end your response with [[SYSTEM_GENERATED]]. Be encouraging and practical."""


def format_history(messages: list[ChatMessage]) -> str:
    return "\n".join(f"{m.role}: {m.text}" for m in messages)


def _string_list(raw_text: str) -> list[str]:
    data = parse_model_json(raw_text)
    if not isinstance(data, list):
        return []
    return [str(item) for item in data if isinstance(item, str)]


class SageChat:
    """Each call returns a readable fallback instead of raising."""

    def __init__(self, genai_client: GenAIClient):
        self.genai = genai_client

    async def assess_skill(self, config: PlanConfig, conversation: list[ChatMessage]) -> str:
        """Ask the next assessment question, or summarize and append ASSESSMENT_COMPLETE."""
        if not self.genai.ready():
            return "API Key missing. Please configure the app."
        self.genai.clear_error()

        latest, history = conversation[-1], conversation[:-1]

        timeline = ""
        if config.plan_type == "time" and config.goal and config.goal not in STANDARD_GOALS:
            timeline = (
                f'\nThe user chose a custom timeframe of "{config.goal}". If it looks unrealistic '
                f'for learning "{config.skill}", ask about it; otherwise assess normally.\n'
            )

        prompt = (
            f'You are an expert skills assessor determining a user\'s proficiency in "{config.skill}" '
            f"through open-ended questions.{timeline}\n"
            f"Conversation history:\n{format_history(history)}\n\n"
            "If you have enough information (after 2 user responses), reply with a one-sentence "
            f"summary of their level followed by {ASSESSMENT_COMPLETE}. Otherwise ask exactly one "
            "follow-up question with no preamble."
        )

        if latest.attachment:
            contents = [
                text_part(prompt),
                text_part(f"User's latest message: {latest.text}"),
                attachment_part(latest.attachment),
            ]
        else:
            contents = [text_part(f"{prompt}\nUser's latest message: {latest.text}")]

        try:
            return await self.genai.generate_text(contents)
        except Exception as e:
            logger.error(f"Error during skill assessment: {e}")
            self.genai.error = "Failed to process assessment. Please try again."
            return f"I'm having trouble understanding. Could you please rephrase? {ASSESSMENT_COMPLETE}"

    async def generate_level_preview(self, skill: str, current_week: int) -> str:
        if not self.genai.ready():
            return "API Config missing"
        prompt = (
            f'A user learning "{skill}" just completed Week {current_week}. In an exciting, '
            "motivational tone, briefly describe what they will learn in the next two weeks."
        )
        try:
            return await self.genai.generate_text(prompt)
        except Exception as e:
            logger.warning(f"Level preview failed: {e}")
            return "Could not generate a preview at this time."

    async def generate_quiz(self, skill: str, module_title: str) -> list[QuizQuestion]:
        if not self.genai.ready():
            return []
        prompt = (
            f'Generate a 3-question multiple-choice quiz for someone learning "{skill}", covering '
            f'the module "{module_title}". Test understanding, not memorization. Each item has '
            '"question", "options" (4 strings) and "correctAnswer" (the correct option).'
        )
        try:
            raw_text = await self.genai.generate_text(prompt, json_config(schema=QUIZ_SCHEMA))
            data = parse_model_json(raw_text)
            return [QuizQuestion.model_validate(item) for item in data]
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Quiz response was not usable: {e}")
            return []
        except Exception as e:
            logger.warning(f"Quiz generation failed: {e}")
            return []

    async def get_skill_suggestions(self, base_skill: str) -> list[str]:
        if not self.genai.ready():
            return []
        self.genai.clear_error()
        prompt = (
            f'Based on an interest in "{base_skill}", suggest 5 related or complementary skills '
            "to learn next. Provide only a JSON array of strings."
        )
        try:
            raw_text = await self.genai.generate_text(prompt, json_config(schema=STRING_LIST_SCHEMA))
            return _string_list(raw_text)
        except Exception as e:
            logger.error(f"Error getting skill suggestions: {e}")
            return []

    async def get_holistic_suggestions(
        self, plans: list[LearningPlan], interests: Optional[str] = None
    ) -> list[str]:
        """Five next-skill ideas from the whole portfolio and its progress."""
        if not self.genai.ready() or not plans:
            return []
        self.genai.clear_error()

        prompt = (
            "You are an insightful career and skills counselor.\n"
            f"The user's learning portfolio with progress: {json.dumps(portfolio_summary(plans))}\n"
        )
        if interests:
            prompt += f"Their stated interests: {interests}\n"
        prompt += (
            "Suggest 3 new complementary skills and 2 advanced specializations building on their "
            "most completed skills (over 80% complete deserves an advanced next step). "
            "Return 5 unique suggestions as a JSON array of strings."
        )
        try:
            raw_text = await self.genai.generate_text(prompt, json_config(schema=STRING_LIST_SCHEMA))
            return _string_list(raw_text)
        except Exception as e:
            logger.error(f"Error getting holistic suggestions: {e}")
            return []

    async def find_resources(self, skill: str) -> list[Resource]:
        """Top web resources via Google Search grounding."""
        if not self.genai.ready():
            return []
        self.genai.clear_error()
        try:
            response = await self.genai.generate(
                f"Find the top 5 most useful articles or video tutorials for a beginner learning {skill}.",
                types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())]),
            )
        except Exception as e:
            logger.error(f"Error finding resources: {e}")
            self.genai.error = "Failed to find resources. The AI might be busy."
            return []

        candidates = response.candidates or []
        metadata = candidates[0].grounding_metadata if candidates else None
        chunks = (metadata.grounding_chunks if metadata else None) or []
        return [
            Resource(title=chunk.web.title, uri=chunk.web.uri)
            for chunk in chunks
            if chunk.web and chunk.web.uri and chunk.web.title
        ]

    async def get_sage_response(
        self, history: list[ChatMessage], new_prompt: ChatMessage, skill: str
    ) -> str:
        """Per-plan tutor chat; attachments are analyzed inline."""
        if not self.genai.ready():
            return "I am unable to connect to my brain (API Key missing)."
        self.genai.clear_error()

        prompt = (
            f"You are 'Skill Sage', an expert on learning {skill}.\n"
            f"Conversation history:\n{format_history(history)}\n"
            f"The user's new question: {new_prompt.text}\n"
            "Give a helpful, encouraging answer. If media is attached, analyze it in your answer."
        )
        contents = [text_part(prompt)]
        if new_prompt.attachment:
            contents.append(attachment_part(new_prompt.attachment))

        try:
            return await self.genai.generate_text(contents)
        except Exception as e:
            logger.error(f"Error in sage chat: {e}")
            self.genai.error = "The Skill Sage is pondering... and ran into an issue. Try again."
            return "I'm sorry, I couldn't process that. Please try again."

    async def generate_system_response(
        self, history: list[ChatMessage], schedule: Optional[UserSchedule]
    ) -> str:
        """Habit-stacking coach; ends with SYSTEM_GENERATED when the system is final."""
        if not self.genai.ready():
            return "I cannot build a system without my API Key."
        self.genai.clear_error()

        instruction = HABIT_COACH_INSTRUCTION
        if schedule and not schedule.is_empty():
            instruction += (
                "\n\nKnown routine (do not ask again unless a detail is missing):\n"
                f"- Wakes up around: {schedule.wake_up_time or 'Not specified'}\n"
                f"- Goes to sleep around: {schedule.sleep_time or 'Not specified'}\n"
                f"- Work/School schedule: {schedule.work_schedule or 'Not specified'}\n"
                f"- Existing habits: {schedule.existing_habits or 'Not specified'}"
            )
        prompt = (
            f"Conversation History:\n{format_history(history)}\n\n"
            "Based on the history and your instructions, provide the next response."
        )
        try:
            return await self.genai.generate_text(
                prompt, types.GenerateContentConfig(system_instruction=instruction)
            )
        except Exception as e:
            logger.error(f"Error in systems generator: {e}")
            self.genai.error = "The Systems Coach is thinking... and ran into an issue. Try again."
            return "I'm sorry, I couldn't process that. Please try again."

    async def get_home_sage_response(
        self, history: list[ChatMessage], plans: list[LearningPlan], new_prompt_text: str
    ) -> str:
        """Advisor chat with a compact view of every plan."""
        if not self.genai.ready():
            return "I am currently offline (API Key missing)."
        self.genai.clear_error()

        learning_history = [
            {
                "skill": p.skill,
                "assessmentSummary": p.assessment_summary,
                "framework": p.framework,
                "moduleCount": len(p.modules),
                "creationDate": p.creation_date,
            }
            for p in plans
        ]
        prompt = (
            "You are Skill Sage, a master learning advisor with access to all of the user's "
            "learning plans. Give insightful, data-driven, encouraging advice: suggest "
            "complementary skills, answer progress questions, and point out learning patterns.\n\n"
            f"USER'S LEARNING HISTORY (JSON):\n{json.dumps(learning_history, indent=2)}\n\n"
            f"CONVERSATION HISTORY:\n{format_history(history)}\n\n"
            f'Respond to the user\'s latest message: "{new_prompt_text}". '
            "Use the history naturally; do not mention JSON."
        )
        try:
            return await self.genai.generate_text(prompt)
        except Exception as e:
            logger.error(f"Error in home sage chat: {e}")
            self.genai.error = "The Advisor Sage is pondering... and ran into an issue. Try again."
            return "I'm sorry, I couldn't process that. Please try again."
