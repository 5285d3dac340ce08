"""
Read-only replay of a finished quiz from its stored snapshot.
"""
import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, ValidationError

from kruai.core.errors import MissingDataError
from kruai.models.quiz import Question
from kruai.models.records import QuizRecord

logger = logging.getLogger(__name__)

NO_ANSWER_KEY = "no answer-key data"

OptionMark = Literal["correct", "wrong_pick", "plain"]


class ReviewOption(BaseModel):
    index: int
    text: str
    mark: OptionMark


class ReviewItem(BaseModel):
    index: int
    question: str
    options: List[ReviewOption]
    correct_index: int
    user_answer: Optional[int] = None
    is_correct: bool
    explanation: str = ""


class QuizReview(BaseModel):
    record_id: int
    topic: Optional[str] = None
    score: int
    total_questions: int
    available: bool = True
    message: Optional[str] = None
    items: List[ReviewItem] = []


def review_items(record: QuizRecord) -> List[ReviewItem]:
    """Build review rows; raises ``MissingDataError`` for records without a usable snapshot."""
    details = record.details
    if details is None or details.questions is None or details.user_answers is None:
        raise MissingDataError(NO_ANSWER_KEY)
    if len(details.questions) != len(details.user_answers):
        raise MissingDataError(NO_ANSWER_KEY)
    try:
        questions = [Question.model_validate(q) for q in details.questions]
    except ValidationError as e:
        raise MissingDataError(NO_ANSWER_KEY) from e

    items = []
    for i, (question, answer) in enumerate(zip(questions, details.user_answers)):
        is_correct = answer == question.correct_index
        options = []
        for j, text in enumerate(question.options):
            if j == question.correct_index:
                mark = "correct"
            elif j == answer:
                mark = "wrong_pick"
            else:
                mark = "plain"
            options.append(ReviewOption(index=j, text=text, mark=mark))
        items.append(ReviewItem(
            index=i,
            question=question.text,
            options=options,
            correct_index=question.correct_index,
            user_answer=answer,
            is_correct=is_correct,
            explanation=question.explanation,
        ))
    return items


def render_review(record: QuizRecord) -> QuizReview:
    review = QuizReview(
        record_id=record.id,
        topic=record.details.topic if record.details else None,
        score=record.score,
        total_questions=record.total_questions,
    )
    try:
        items = review_items(record)
    except MissingDataError as e:
        logger.warning("Quiz record %s has no answer-key data", record.id)
        return review.model_copy(update={"available": False, "message": e.message})
    return review.model_copy(update={"items": items})
