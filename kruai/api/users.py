from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from kruai.core.database import get_db
from kruai.models.records import SummaryStyle, User
from kruai.services import records

router = APIRouter()


class UserCreate(BaseModel):
    nickname: str = Field(min_length=1, max_length=100)
    grade: str = Field(min_length=1, max_length=50)
    summary_style: Optional[SummaryStyle] = None


class UserUpdate(BaseModel):
    summary_style: SummaryStyle


@router.post("", response_model=User)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return records.create_user(db, payload.nickname, payload.grade, payload.summary_style)


@router.get("", response_model=List[User])
def list_users(db: Session = Depends(get_db)):
    return records.get_users(db)


@router.put("/{user_id}", response_model=User)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    return records.update_user(db, user_id, payload.summary_style)
