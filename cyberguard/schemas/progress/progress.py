# cyberguard/schemas/progress.py
from pydantic import Field
from typing import Any, Optional

from ..common.common import RequestModel


class QuizAttemptRequest(RequestModel):
    category_key: str = Field(..., alias="categoryKey", min_length=1)
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., alias="totalQuestions", gt=0)
    time_spent: Optional[int] = Field(None, alias="timeSpent", ge=0)
    answers: Optional[Any] = None


class ScenarioCompletionRequest(RequestModel):
    scenario_key: str = Field(..., alias="scenarioKey", min_length=1)
    score: Optional[int] = Field(None, ge=0)
    time_spent: Optional[int] = Field(None, alias="timeSpent", ge=0)
