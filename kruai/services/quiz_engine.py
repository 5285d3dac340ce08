"""
Quiz progression engine.

Each question moves ``unanswered -> retrying -> completed``. A question is
completed by a correct answer or by running out of attempts; only then is the
answer committed to ``user_answers``. ``advance`` moves on once the current
question is completed and, past the last one, finishes the quiz and yields a
snapshot for persistence.

Both transitions are pure: they take a ``QuizSession`` and return a new one.
Calls that violate a precondition return the session unchanged.
"""
import logging
from typing import List, Optional, Tuple

from kruai.models.quiz import MAX_ATTEMPTS, Question, QuizSession, QuizSnapshot

logger = logging.getLogger(__name__)


def new_session(questions: List[Question], topic: str = "", max_attempts: int = MAX_ATTEMPTS) -> QuizSession:
    return QuizSession(topic=topic, questions=list(questions), max_attempts=max_attempts)


def restart(session: QuizSession) -> QuizSession:
    """Same questions, fresh progress."""
    return new_session(session.questions, topic=session.topic, max_attempts=session.max_attempts)


def submit_answer(session: QuizSession, option_index: int) -> QuizSession:
    if session.finished or session.completed:
        return session
    question = session.current_question
    if not 0 <= option_index < len(question.options):
        raise ValueError(f"option_index must be between 0 and {len(question.options) - 1}")

    if option_index == question.correct_index:
        return session.model_copy(update={
            "completed": True,
            "selected_option": option_index,
            "score": session.score + 1,
            "user_answers": _commit(session, option_index),
            "attempts": 0,
        })

    attempts = session.attempts + 1
    if attempts >= session.max_attempts:
        # out of attempts: the last wrong pick is the committed answer
        return session.model_copy(update={
            "completed": True,
            "selected_option": option_index,
            "user_answers": _commit(session, option_index),
            "attempts": attempts,
        })
    return session.model_copy(update={"attempts": attempts, "selected_option": option_index})


def advance(session: QuizSession) -> Tuple[QuizSession, Optional[QuizSnapshot]]:
    """Move past a completed question.

    Returns the new session and, when the last question was just left, the
    snapshot of the finished quiz. The snapshot is produced only once.
    """
    if session.finished or not session.completed:
        return session, None

    if session.is_last:
        finished = session.model_copy(update={"finished": True})
        snapshot = QuizSnapshot(
            topic=session.topic,
            score=session.score,
            total_questions=session.total,
            questions=list(session.questions),
            user_answers=list(session.user_answers),
        )
        logger.info("Quiz finished: %s/%s on %r", session.score, session.total, session.topic)
        return finished, snapshot

    return session.model_copy(update={
        "current_index": session.current_index + 1,
        "selected_option": None,
        "completed": False,
        "attempts": 0,
    }), None


def _commit(session: QuizSession, option_index: int) -> List[Optional[int]]:
    answers = list(session.user_answers)
    if answers[session.current_index] is None:
        answers[session.current_index] = option_index
    return answers
