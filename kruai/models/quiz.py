"""
Quiz domain values: questions, the in-progress session and the completion snapshot.

All of them are frozen pydantic models. Transitions never mutate a session,
they return a new one (see ``kruai.services.quiz_engine``).
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_COUNT = 4
MAX_ATTEMPTS = 3


class Question(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(alias="question", min_length=1)
    options: List[str]
    correct_index: int = Field(alias="correctAnswerIndex", ge=0, le=OPTION_COUNT - 1)
    explanation: str = ""
    hint: Optional[str] = None

    @field_validator("options")
    @classmethod
    def four_options(cls, v: List[str]) -> List[str]:
        if len(v) != OPTION_COUNT:
            raise ValueError(f"a question needs exactly {OPTION_COUNT} options, got {len(v)}")
        return v

    @field_validator("hint")
    @classmethod
    def blank_hint_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None


class QuestionState(str, Enum):
    UNANSWERED = "unanswered"
    RETRYING = "retrying"
    COMPLETED = "completed"


class QuizSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str = ""
    questions: List[Question]
    current_index: int = Field(default=0, ge=0)
    score: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)
    selected_option: Optional[int] = None
    completed: bool = False
    finished: bool = False
    user_answers: List[Optional[int]] = Field(default_factory=list)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1)

    @model_validator(mode="before")
    @classmethod
    def default_answers(cls, data):
        if isinstance(data, dict) and not data.get("user_answers"):
            data = dict(data, user_answers=[None] * len(data.get("questions") or []))
        return data

    @model_validator(mode="after")
    def check_alignment(self) -> "QuizSession":
        n = len(self.questions)
        if n == 0:
            raise ValueError("a quiz session needs at least one question")
        if len(self.user_answers) != n:
            raise ValueError(f"user_answers has {len(self.user_answers)} entries for {n} questions")
        if self.current_index >= n:
            raise ValueError(f"current_index {self.current_index} out of range for {n} questions")
        if self.score > n:
            raise ValueError("score cannot exceed the number of questions")
        return self

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index == self.total - 1

    @property
    def state(self) -> QuestionState:
        if self.completed:
            return QuestionState.COMPLETED
        if self.attempts > 0:
            return QuestionState.RETRYING
        return QuestionState.UNANSWERED

    @property
    def hint(self) -> Optional[str]:
        """Hint for the current question, disclosed only while retrying."""
        if self.state is QuestionState.RETRYING:
            return self.current_question.hint
        return None

    @property
    def explanation(self) -> Optional[str]:
        if self.completed:
            return self.current_question.explanation
        return None


class QuizSnapshot(BaseModel):
    """Immutable copy of a finished quiz, handed to persistence."""

    model_config = ConfigDict(frozen=True)

    topic: str
    score: int
    total_questions: int
    questions: List[Question]
    user_answers: List[Optional[int]]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def details(self) -> dict:
        """JSON shape stored in ``quiz_history.details``."""
        return {
            "topic": self.topic,
            "questions": [q.model_dump(by_alias=True) for q in self.questions],
            "userAnswers": list(self.user_answers),
        }


class ActiveQuiz(BaseModel):
    """What the session store keeps per quiz id."""

    quiz_id: str
    user_id: Optional[int] = None
    session: QuizSession
