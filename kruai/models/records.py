"""
Typed shapes of the persisted records as the API returns them.
"""
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SummaryStyle = Literal["SHORT", "DETAILED"]


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nickname: str
    grade: str
    summary_style: SummaryStyle = "SHORT"
    created_at: Optional[datetime] = None


class SummaryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    title: str
    content: Any
    created_at: Optional[datetime] = None


class QuizDetails(BaseModel):
    """``quiz_history.details``. Older rows carry only a topic, or nothing."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    topic: Optional[str] = None
    questions: Optional[List[dict]] = None
    user_answers: Optional[List[Optional[int]]] = Field(default=None, alias="userAnswers")


class QuizRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    score: int
    total_questions: int
    details: Optional[QuizDetails] = None
    timestamp: Optional[datetime] = None
