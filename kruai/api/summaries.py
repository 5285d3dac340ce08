from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from kruai.core.database import get_db
from kruai.models.records import SummaryRecord
from kruai.services import records

router = APIRouter()


class SummaryCreate(BaseModel):
    user_id: Optional[int] = None
    title: str = Field(min_length=1, max_length=255)
    content: Any


@router.post("", response_model=SummaryRecord)
def save_summary(payload: SummaryCreate, db: Session = Depends(get_db)):
    return records.save_summary(db, payload.user_id, payload.title, payload.content)


@router.get("/{user_id}", response_model=List[SummaryRecord])
def list_summaries(user_id: int, db: Session = Depends(get_db)):
    return records.get_summaries(db, user_id)
