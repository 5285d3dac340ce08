"""
CRUD for users, saved summaries and quiz history.

Database failures surface as ``PersistenceError``; the session is rolled back
first so the request's connection stays usable.
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kruai.core.errors import PersistenceError, RecordNotFoundError
from kruai.models import records
from kruai.models.orm import QuizHistory, Summary, User
from kruai.models.quiz import QuizSnapshot

logger = logging.getLogger(__name__)


@contextmanager
def _guard(db: Session, action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Failed to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}") from e


# ---------- Users ----------

def create_user(db: Session, nickname: str, grade: str, summary_style: Optional[str] = None) -> records.User:
    with _guard(db, "create user"):
        user = User(nickname=nickname, grade=grade, summary_style=summary_style or "SHORT")
        db.add(user)
        db.commit()
        db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.grade)
    return records.User.model_validate(user)


def get_users(db: Session) -> List[records.User]:
    with _guard(db, "fetch users"):
        rows = db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
    return [records.User.model_validate(r) for r in rows]


def get_user(db: Session, user_id: int) -> records.User:
    with _guard(db, "fetch user"):
        user = db.get(User, user_id)
    if user is None:
        raise RecordNotFoundError("User not found")
    return records.User.model_validate(user)


def update_user(db: Session, user_id: int, summary_style: str) -> records.User:
    with _guard(db, "update user"):
        user = db.get(User, user_id)
        if user is None:
            raise RecordNotFoundError("User not found")
        user.summary_style = summary_style
        db.commit()
        db.refresh(user)
    return records.User.model_validate(user)


# ---------- Summaries ----------

def save_summary(db: Session, user_id: Optional[int], title: str, content: Any) -> records.SummaryRecord:
    with _guard(db, "save summary"):
        row = Summary(user_id=user_id, title=title, content=content)
        db.add(row)
        db.commit()
        db.refresh(row)
    return records.SummaryRecord.model_validate(row)


def get_summaries(db: Session, user_id: int) -> List[records.SummaryRecord]:
    with _guard(db, "fetch summaries"):
        rows = db.scalars(
            select(Summary).where(Summary.user_id == user_id).order_by(Summary.created_at.desc(), Summary.id.desc())
        ).all()
    return [records.SummaryRecord.model_validate(r) for r in rows]


# ---------- Quiz history ----------

def save_quiz_result(
    db: Session, user_id: Optional[int], score: int, total: int, details: Optional[dict] = None
) -> records.QuizRecord:
    with _guard(db, "save result"):
        row = QuizHistory(user_id=user_id, score=score, total_questions=total, details=details)
        db.add(row)
        db.commit()
        db.refresh(row)
    logger.info("Saved quiz result %s for user %s: %s/%s", row.id, user_id, score, total)
    return _to_quiz_record(row)


def save_snapshot(db: Session, user_id: Optional[int], snapshot: QuizSnapshot) -> records.QuizRecord:
    return save_quiz_result(db, user_id, snapshot.score, snapshot.total_questions, snapshot.details())


def get_quiz_history(db: Session, user_id: int) -> List[records.QuizRecord]:
    with _guard(db, "fetch history"):
        rows = db.scalars(
            select(QuizHistory)
            .where(QuizHistory.user_id == user_id)
            .order_by(QuizHistory.timestamp.desc(), QuizHistory.id.desc())
        ).all()
    return [_to_quiz_record(r) for r in rows]


def get_quiz_record(db: Session, record_id: int) -> records.QuizRecord:
    with _guard(db, "fetch quiz record"):
        row = db.get(QuizHistory, record_id)
    if row is None:
        raise RecordNotFoundError("Quiz record not found")
    return _to_quiz_record(row)


def _details(row: QuizHistory) -> Optional[records.QuizDetails]:
    raw = row.details
    if not isinstance(raw, dict):
        return None
    try:
        return records.QuizDetails.model_validate(raw)
    except ValidationError:
        # keep the topic for the history list, the review reports no answer key
        logger.warning("Quiz record %s has malformed details", row.id)
        topic = raw.get("topic")
        return records.QuizDetails(topic=topic if isinstance(topic, str) else None)


def _to_quiz_record(row: QuizHistory) -> records.QuizRecord:
    return records.QuizRecord(
        id=row.id,
        user_id=row.user_id,
        score=row.score,
        total_questions=row.total_questions,
        details=_details(row),
        timestamp=row.timestamp,
    )
