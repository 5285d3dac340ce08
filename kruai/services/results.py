from typing import Literal

from pydantic import BaseModel

from kruai.models.quiz import QuizSession

Tier = Literal["excellent", "good", "needs review"]

EXCELLENT_AT = 80.0
GOOD_AT = 50.0

_FEEDBACK = {
    "excellent": ("Amazing! You really know this topic!", "excited"),
    "good": ("Well done! Just a little more practice.", "happy"),
    "needs review": ("That's okay, let's go over the lesson again together.", "thinking"),
}


class QuizResult(BaseModel):
    score: int
    total: int
    percentage: float
    tier: Tier
    message: str
    emotion: str


def tier_for(percentage: float) -> Tier:
    if percentage >= EXCELLENT_AT:
        return "excellent"
    if percentage >= GOOD_AT:
        return "good"
    return "needs review"


def compute_result(score: int, total: int) -> QuizResult:
    percentage = (score / total * 100.0) if total > 0 else 0.0
    tier = tier_for(percentage)
    message, emotion = _FEEDBACK[tier]
    return QuizResult(score=score, total=total, percentage=percentage, tier=tier, message=message, emotion=emotion)


def result_for(session: QuizSession) -> QuizResult:
    return compute_result(session.score, session.total)
