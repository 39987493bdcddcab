from typing import List, Optional, Protocol

from ...db.models import QuizAttempt, ScenarioCompletion, UserProgress


class ProgressRepository(Protocol):
    def get_or_create_progress(self, user_id: int) -> UserProgress:
        ...

    def save_progress(self, progress: UserProgress) -> UserProgress:
        ...

    def count_completed_scenarios(self, user_id: int) -> int:
        ...

    def count_passed_quizzes(self, user_id: int) -> int:
        ...

    def sum_quiz_scores(self, user_id: int) -> int:
        ...

    def add_quiz_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        ...

    def upsert_scenario_completion(self, user_id: int, scenario_key: str, score: Optional[int], time_spent: Optional[int]) -> ScenarioCompletion:
        ...

    def list_quiz_attempts(self, user_id: int, category_key: Optional[str] = None, limit: int = 50) -> List[QuizAttempt]:
        ...

    def list_scenario_completions(self, user_id: int) -> List[ScenarioCompletion]:
        ...
