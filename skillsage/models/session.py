"""Session, profile, schedule and plan-setup models."""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from skillsage.models.plan import Attachment, CamelModel, LearningFramework


class UserProfile(BaseModel):
    """Minimal profile from the userinfo endpoint (keys as Google sends them)."""
    id: str
    name: str = ""
    given_name: str = ""
    family_name: str = ""
    picture: str = ""
    email: str = ""


class SessionState(BaseModel):
    """Snapshot handed to identity subscribers."""
    model_config = {"frozen": True}

    initialized: bool = False
    logged_in: bool = False
    access_token: Optional[str] = None


class UserSchedule(CamelModel):
    """Daily routine used by the systems coach. Stored without versioning."""
    wake_up_time: str = ""
    sleep_time: str = ""
    work_schedule: str = ""
    existing_habits: str = ""

    def is_empty(self) -> bool:
        return not any(
            (self.wake_up_time, self.sleep_time, self.work_schedule, self.existing_habits)
        )


class PlanConfig(CamelModel):
    """Choices made before generating a plan."""
    skill: str
    time_commitment: str
    plan_type: Literal["time", "purpose"] = "time"
    goal: Optional[str] = None  # e.g. "3 Months", "6 Months", "Lifelong" or free text
    purpose: Optional[str] = None
    framework: LearningFramework = "standard"
    custom_resources: Optional[str] = None


class ChatMessage(CamelModel):
    role: Literal["user", "model"]
    text: str
    attachment: Optional[Attachment] = None


class QuizQuestion(CamelModel):
    question: str
    options: list[str] = Field(default_factory=list)
    correct_answer: str
