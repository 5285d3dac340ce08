from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from kruai.core.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    grade: Mapped[str] = mapped_column(String(50), nullable=False)
    summary_style: Mapped[str] = mapped_column(String(20), default="SHORT", server_default="SHORT")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class Summary(Base):
    __tablename__ = "summaries"
    __table_args__ = (Index("idx_summaries_user", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[Any] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class QuizHistory(Base):
    __tablename__ = "quiz_history"
    __table_args__ = (Index("idx_quiz_history_user", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=func.now())
