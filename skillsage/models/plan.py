"""Learning plan models (stored locally and on Drive)."""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LearningFramework = Literal["standard", "disss"]


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump to the camelCase dict written to storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Resource(CamelModel):
    """External link attached to a task."""
    title: str
    uri: str


class LearningTask(CamelModel):
    title: str
    description: str = ""
    completed: bool = False
    resources: Optional[list[Resource]] = None


class DailyTaskGroup(CamelModel):
    day: int
    tasks: list[LearningTask] = Field(default_factory=list)


class LearningModule(CamelModel):
    """One week (or, for long-term plans, one milestone phase)."""
    week: int
    title: str
    daily_tasks: list[DailyTaskGroup] = Field(default_factory=list)


class Attachment(CamelModel):
    """Inline media; `data` is base64 without the data-URL prefix."""
    mime_type: str
    data: str
    name: str


class DailyLog(CamelModel):
    """Journal entry on a plan."""
    id: str
    date: str  # ISO timestamp
    notes: str = ""
    attachment: Optional[Attachment] = None


class LearningPlan(CamelModel):
    """Unit of synchronization. `id` doubles as the creation timestamp."""
    id: str
    creation_date: Optional[str] = None  # backfilled from id by migrations
    skill: str
    modules: list[LearningModule] = Field(default_factory=list)
    suggested_skills: list[str] = Field(default_factory=list)
    framework: LearningFramework = "standard"
    assessment_summary: str = ""
    daily_logs: Optional[list[DailyLog]] = None  # absent on legacy records

    def all_tasks(self) -> list[LearningTask]:
        """Flatten modules -> days -> tasks in display order."""
        return [
            task
            for module in self.modules
            for group in module.daily_tasks
            for task in group.tasks
        ]


class StoredPlansContainer(CamelModel):
    """Local storage envelope. The remote store keeps a bare array."""
    version: int
    plans: list[LearningPlan] = Field(default_factory=list)


class GeneratedPlan(CamelModel):
    """Plan body as returned by the model (no id, no metadata)."""
    skill: str = ""
    modules: list[LearningModule]
