from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.interview import InterviewStatus
from app.schemas.ai import CamelModel


class InterviewQuestion(CamelModel):
    question: str = "Untitled Question"
    answer: str = ""
    score: float = Field(0, ge=0, le=10)
    question_id: Any = None
    time_taken: float | None = None


class InterviewCreate(CamelModel):
    title: str | None = None
    date: str | None = None
    status: InterviewStatus | None = None
    duration: int | None = None
    questions: list[InterviewQuestion] | None = None
    feedback: str | None = None


class InterviewUpdate(InterviewCreate):
    """Partial update. questionId (+ question/answer/score/timeTaken) upserts one question."""
    question_id: Any = None
    question: str | None = None
    answer: str | None = None
    score: float | None = Field(None, ge=0, le=10)
    time_taken: float | None = None


class InterviewResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    title: str
    date: datetime
    status: str
    duration: int
    questions: list[dict[str, Any]]
    feedback: str
    job_id: str | None = None
    created_at: datetime
    updated_at: datetime


class InterviewEnvelope(CamelModel):
    success: bool = True
    data: InterviewResponse


class InterviewListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[InterviewResponse]
