# cyberguard/db/models/progress/progress.py
from typing import Optional
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utcnow


class UserProgress(SQLModel, table=True):
    __tablename__ = "user_progress"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    scenarios_completed: int = Field(default=0)
    quizzes_passed: int = Field(default=0)
    total_score: int = Field(default=0)
    last_updated: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class QuizAttempt(SQLModel, table=True):
    __tablename__ = "quiz_attempts"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_key: str = Field(max_length=100, index=True)
    score: int
    total_questions: int
    passed: bool = Field(default=False)
    time_spent: Optional[int] = Field(default=None)  # seconds
    answers: Optional[str] = Field(default=None)  # JSON string
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class ScenarioCompletion(SQLModel, table=True):
    __tablename__ = "scenario_completions"
    __table_args__ = (UniqueConstraint("user_id", "scenario_key", name="uq_scenario_completion_user_scenario"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    scenario_key: str = Field(max_length=100)
    completed: bool = Field(default=True)
    score: Optional[int] = Field(default=None)
    time_spent: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
