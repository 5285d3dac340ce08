from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from kruai.core.database import get_db
from kruai.models.records import QuizDetails, QuizRecord
from kruai.services import records
from kruai.services.review import QuizReview, render_review

router = APIRouter()


class QuizResultCreate(BaseModel):
    user_id: Optional[int] = None
    score: int = Field(ge=0)
    total_questions: int = Field(ge=0)
    details: Optional[QuizDetails] = None

    @model_validator(mode="after")
    def score_within_total(self):
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed total_questions")
        return self


@router.post("", response_model=QuizRecord)
def save_quiz_result(payload: QuizResultCreate, db: Session = Depends(get_db)):
    details = payload.details.model_dump(by_alias=True) if payload.details is not None else None
    return records.save_quiz_result(db, payload.user_id, payload.score, payload.total_questions, details)


@router.get("/records/{record_id}", response_model=QuizRecord)
def get_record(record_id: int, db: Session = Depends(get_db)):
    return records.get_quiz_record(db, record_id)


@router.get("/records/{record_id}/review", response_model=QuizReview)
def review_record(record_id: int, db: Session = Depends(get_db)):
    return render_review(records.get_quiz_record(db, record_id))


@router.get("/{user_id}", response_model=List[QuizRecord])
def list_history(user_id: int, db: Session = Depends(get_db)):
    return records.get_quiz_history(db, user_id)
