# cyberguard/db/models/content/content.py
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utcnow


class QuizCategory(SQLModel, table=True):
    __tablename__ = "quiz_categories"
    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(max_length=100, unique=True, index=True)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class QuizQuestion(SQLModel, table=True):
    __tablename__ = "quiz_questions"
    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="quiz_categories.id", index=True)
    question: str
    explanation: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class QuizOption(SQLModel, table=True):
    __tablename__ = "quiz_options"
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: int = Field(foreign_key="quiz_questions.id", index=True)
    text: str
    is_correct: bool = Field(default=False)


class PhishingEmail(SQLModel, table=True):
    __tablename__ = "phishing_emails"
    id: Optional[int] = Field(default=None, primary_key=True)
    sender: str = Field(max_length=255)
    subject: str = Field(max_length=500)
    content: str
    is_phishing: bool = Field(default=True)
    indicators: Optional[str] = Field(default=None)  # JSON list of strings
    active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
