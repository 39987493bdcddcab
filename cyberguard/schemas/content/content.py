# cyberguard/schemas/content.py
from pydantic import Field
from typing import List, Optional

from ..common.common import RequestModel


class QuizCategoryRequest(RequestModel):
    key: str
    title: str
    description: Optional[str] = None


class QuizQuestionRequest(RequestModel):
    category_key: Optional[str] = Field(None, alias="categoryKey")
    question: str
    explanation: Optional[str] = None
    options: List[str]
    correct_index: int = Field(..., alias="correctIndex")


class PhishingEmailRequest(RequestModel):
    sender: str
    subject: str
    content: str
    is_phishing: bool = Field(True, alias="isPhishing")
    indicators: List[str] = Field(default_factory=list)
    active: bool = True


class PhishingEmailUpdateRequest(RequestModel):
    sender: Optional[str] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    is_phishing: Optional[bool] = Field(None, alias="isPhishing")
    indicators: Optional[List[str]] = None
    active: Optional[bool] = None
