import logging
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from kruai.core.cache import get_session_store
from kruai.core.config import settings
from kruai.core.database import get_db
from kruai.core.errors import GenerationError, PersistenceError, QuizNotFoundError
from kruai.models.quiz import OPTION_COUNT, ActiveQuiz, QuestionState, QuizSession
from kruai.services import quiz_engine, records
from kruai.services.generation import ContentGenerator, SummaryData, get_generator
from kruai.services.results import QuizResult, result_for

logger = logging.getLogger(__name__)

router = APIRouter()


class QuizCreate(BaseModel):
    summary: SummaryData
    user_id: Optional[int] = None


class AnswerSubmit(BaseModel):
    option_index: int = Field(ge=0, le=OPTION_COUNT - 1)


class QuizView(BaseModel):
    quiz_id: str
    topic: str
    current_index: int
    total: int
    score: int
    question: str
    options: List[str]
    state: QuestionState
    attempts: int
    attempts_left: int
    selected_option: Optional[int] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    correct_index: Optional[int] = None
    is_last: bool
    user_answers: List[Optional[int]]


class AdvanceResponse(BaseModel):
    finished: bool
    quiz: Optional[QuizView] = None
    result: Optional[QuizResult] = None
    saved: bool = False
    record_id: Optional[int] = None
    warning: Optional[str] = None


def _view(quiz_id: str, s: QuizSession) -> QuizView:
    q = s.current_question
    return QuizView(
        quiz_id=quiz_id,
        topic=s.topic,
        current_index=s.current_index,
        total=s.total,
        score=s.score,
        question=q.text,
        options=q.options,
        state=s.state,
        attempts=s.attempts,
        attempts_left=max(s.max_attempts - s.attempts, 0),
        selected_option=s.selected_option,
        hint=s.hint,
        explanation=s.explanation,
        correct_index=q.correct_index if s.completed else None,
        is_last=s.is_last,
        user_answers=s.user_answers,
    )


def _load(quiz_id: str) -> ActiveQuiz:
    quiz = get_session_store().get(quiz_id)
    if quiz is None:
        raise QuizNotFoundError("Quiz not found or expired")
    return quiz


@router.post("", response_model=QuizView, status_code=201)
def create_quiz(payload: QuizCreate, gen: ContentGenerator = Depends(get_generator), db: Session = Depends(get_db)):
    if payload.user_id is not None:
        records.get_user(db, payload.user_id)
    questions = gen.generate_quiz(payload.summary)
    if not questions:
        raise GenerationError("Could not create the quiz")
    session = quiz_engine.new_session(questions, topic=payload.summary.original_topic, max_attempts=settings.MAX_ATTEMPTS)
    quiz = ActiveQuiz(quiz_id=uuid4().hex, user_id=payload.user_id, session=session)
    get_session_store().put(quiz)
    logger.info("Quiz %s created: %d questions on %r", quiz.quiz_id, session.total, session.topic)
    return _view(quiz.quiz_id, session)


@router.get("/{quiz_id}", response_model=QuizView)
def get_quiz(quiz_id: str):
    quiz = _load(quiz_id)
    return _view(quiz_id, quiz.session)


@router.post("/{quiz_id}/answers", response_model=QuizView)
def submit_answer(quiz_id: str, payload: AnswerSubmit):
    quiz = _load(quiz_id)
    session = quiz_engine.submit_answer(quiz.session, payload.option_index)
    if session is not quiz.session:
        get_session_store().put(quiz.model_copy(update={"session": session}))
    return _view(quiz_id, session)


@router.post("/{quiz_id}/advance", response_model=AdvanceResponse)
def advance(quiz_id: str, db: Session = Depends(get_db)):
    quiz = _load(quiz_id)
    if quiz.session.finished:
        return AdvanceResponse(finished=True, result=result_for(quiz.session))
    session, snapshot = quiz_engine.advance(quiz.session)
    if session is not quiz.session:
        # finished quizzes stay until their TTL so "try again" can restart them
        get_session_store().put(quiz.model_copy(update={"session": session}))
    if snapshot is None:
        return AdvanceResponse(finished=False, quiz=_view(quiz_id, session))

    response = AdvanceResponse(finished=True, result=result_for(session))
    if quiz.user_id is None:
        return response
    try:
        record = records.save_snapshot(db, quiz.user_id, snapshot)
    except PersistenceError as e:
        # the quiz is over either way; the result is just not recorded
        logger.warning("Quiz %s finished but was not saved: %s", quiz_id, e.message)
        response.warning = "Your result could not be saved"
        return response
    response.saved = True
    response.record_id = record.id
    return response


@router.post("/{quiz_id}/restart", response_model=QuizView)
def restart(quiz_id: str):
    quiz = _load(quiz_id)
    session = quiz_engine.restart(quiz.session)
    get_session_store().put(quiz.model_copy(update={"session": session}))
    return _view(quiz_id, session)


@router.delete("/{quiz_id}", status_code=204)
def discard(quiz_id: str):
    _load(quiz_id)
    get_session_store().delete(quiz_id)
