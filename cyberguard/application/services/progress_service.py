import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...db.models import QuizAttempt, ScenarioCompletion
from ...exceptions import ValidationError
from ...utils import as_utc, utcnow
from ..ports.cache import Cache, progress_key
from ..ports.progress_repo import ProgressRepository
from ..ports.user_repo import UserRepository

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 0.8
PROGRESS_CACHE_TTL_SECONDS = 60
RECENT_ATTEMPTS = 5


def attempt_to_dict(attempt: QuizAttempt) -> Dict[str, Any]:
    return {
        "id": attempt.id,
        "categoryKey": attempt.category_key,
        "score": attempt.score,
        "totalQuestions": attempt.total_questions,
        "passed": attempt.passed,
        "timeSpent": attempt.time_spent,
        "answers": json.loads(attempt.answers) if attempt.answers else None,
        "createdAt": as_utc(attempt.created_at).isoformat(),
    }


def completion_to_dict(completion: ScenarioCompletion) -> Dict[str, Any]:
    return {
        "id": completion.id,
        "scenarioKey": completion.scenario_key,
        "completed": completion.completed,
        "score": completion.score,
        "timeSpent": completion.time_spent,
        "updatedAt": as_utc(completion.updated_at).isoformat(),
    }


@dataclass
class ProgressService:
    repo: ProgressRepository
    cache: Cache

    def _recompute(self, user_id: int) -> Dict[str, Any]:
        progress = self.repo.get_or_create_progress(user_id)
        progress.scenarios_completed = self.repo.count_completed_scenarios(user_id)
        progress.quizzes_passed = self.repo.count_passed_quizzes(user_id)
        progress.total_score = self.repo.sum_quiz_scores(user_id)
        progress.last_updated = utcnow()
        progress = self.repo.save_progress(progress)
        self.cache.delete(progress_key(user_id))
        return self._summary(progress)

    @staticmethod
    def _summary(progress) -> Dict[str, Any]:
        return {
            "scenariosCompleted": progress.scenarios_completed,
            "quizzesPassed": progress.quizzes_passed,
            "totalScore": progress.total_score,
            "lastUpdated": as_utc(progress.last_updated).isoformat(),
        }

    def get_progress(self, user_id: int) -> Dict[str, Any]:
        cached = self.cache.get(progress_key(user_id))
        if cached is not None:
            return cached
        progress = self.repo.get_or_create_progress(user_id)
        scenarios = self.repo.count_completed_scenarios(user_id)
        quizzes = self.repo.count_passed_quizzes(user_id)
        if progress.scenarios_completed != scenarios or progress.quizzes_passed != quizzes:
            summary = self._recompute(user_id)
        else:
            summary = self._summary(progress)
        self.cache.set(progress_key(user_id), summary, PROGRESS_CACHE_TTL_SECONDS)
        return summary

    def record_quiz_attempt(self, user_id: int, category_key: str, score: Optional[int], total_questions: Optional[int],
                            time_spent: Optional[int] = None, answers: Optional[Any] = None) -> QuizAttempt:
        if not category_key or score is None or not total_questions:
            raise ValidationError("Missing required fields")
        if score < 0 or score > total_questions:
            raise ValidationError("Score must be between 0 and totalQuestions")
        attempt = QuizAttempt(
            user_id=user_id,
            category_key=category_key,
            score=score,
            total_questions=total_questions,
            passed=(score / total_questions) >= PASS_THRESHOLD,
            time_spent=time_spent,
            answers=json.dumps(answers) if answers is not None else None,
        )
        attempt = self.repo.add_quiz_attempt(attempt)
        self._recompute(user_id)
        return attempt

    def record_scenario_completion(self, user_id: int, scenario_key: str, score: Optional[int] = None,
                                   time_spent: Optional[int] = None) -> ScenarioCompletion:
        if not scenario_key:
            raise ValidationError("Missing scenario key")
        completion = self.repo.upsert_scenario_completion(user_id, scenario_key, score, time_spent)
        self._recompute(user_id)
        return completion

    def list_quiz_attempts(self, user_id: int, category_key: Optional[str] = None) -> List[Dict[str, Any]]:
        return [attempt_to_dict(a) for a in self.repo.list_quiz_attempts(user_id, category_key)]

    def list_scenario_completions(self, user_id: int) -> List[Dict[str, Any]]:
        return [completion_to_dict(c) for c in self.repo.list_scenario_completions(user_id)]

    def all_progress(self, user_repo: UserRepository) -> List[Dict[str, Any]]:
        """Admin overview of every user's progress."""
        rows = []
        for user in user_repo.list_all():
            progress = self.repo.get_or_create_progress(user.id)
            completions = self.repo.list_scenario_completions(user.id)
            attempts = self.repo.list_quiz_attempts(user.id, limit=RECENT_ATTEMPTS)
            rows.append({
                "userId": user.id,
                "username": user.username,
                "email": user.email,
                "scenariosCompleted": progress.scenarios_completed,
                "quizzesPassed": progress.quizzes_passed,
                "totalScore": progress.total_score,
                "lastActivity": as_utc(progress.last_updated).isoformat(),
                "completedScenarios": [c.scenario_key for c in completions if c.completed],
                "recentQuizAttempts": [attempt_to_dict(a) for a in attempts],
            })
        return rows
