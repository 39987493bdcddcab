from typing import List, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from .....db.models import UserProgress, QuizAttempt, ScenarioCompletion
from .....application.ports.progress_repo import ProgressRepository
from .....utils import utcnow


class SqlProgressRepository(ProgressRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_or_create_progress(self, user_id: int) -> UserProgress:
        progress = self.session.exec(select(UserProgress).where(UserProgress.user_id == user_id)).first()
        if progress:
            return progress
        progress = UserProgress(user_id=user_id)
        return self.save_progress(progress)

    def save_progress(self, progress: UserProgress) -> UserProgress:
        self.session.add(progress)
        self.session.commit()
        self.session.refresh(progress)
        return progress

    def count_completed_scenarios(self, user_id: int) -> int:
        return self.session.exec(
            select(func.count(ScenarioCompletion.id))
            .where(ScenarioCompletion.user_id == user_id, ScenarioCompletion.completed == True)  # noqa: E712
        ).one()

    def count_passed_quizzes(self, user_id: int) -> int:
        return self.session.exec(
            select(func.count(QuizAttempt.id))
            .where(QuizAttempt.user_id == user_id, QuizAttempt.passed == True)  # noqa: E712
        ).one()

    def sum_quiz_scores(self, user_id: int) -> int:
        total = self.session.exec(
            select(func.coalesce(func.sum(QuizAttempt.score), 0)).where(QuizAttempt.user_id == user_id)
        ).one()
        return int(total or 0)

    def add_quiz_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        self.session.add(attempt)
        self.session.commit()
        self.session.refresh(attempt)
        return attempt

    def upsert_scenario_completion(self, user_id: int, scenario_key: str, score: Optional[int], time_spent: Optional[int]) -> ScenarioCompletion:
        completion = self.session.exec(
            select(ScenarioCompletion)
            .where(ScenarioCompletion.user_id == user_id, ScenarioCompletion.scenario_key == scenario_key)
        ).first()
        if completion is None:
            completion = ScenarioCompletion(user_id=user_id, scenario_key=scenario_key)
        completion.completed = True
        completion.score = score
        completion.time_spent = time_spent
        completion.updated_at = utcnow()
        self.session.add(completion)
        self.session.commit()
        self.session.refresh(completion)
        return completion

    def list_quiz_attempts(self, user_id: int, category_key: Optional[str] = None, limit: int = 50) -> List[QuizAttempt]:
        stmt = select(QuizAttempt).where(QuizAttempt.user_id == user_id)
        if category_key:
            stmt = stmt.where(QuizAttempt.category_key == category_key)
        stmt = stmt.order_by(QuizAttempt.created_at.desc(), QuizAttempt.id.desc()).limit(limit)
        return list(self.session.exec(stmt).all())

    def list_scenario_completions(self, user_id: int) -> List[ScenarioCompletion]:
        return list(self.session.exec(
            select(ScenarioCompletion)
            .where(ScenarioCompletion.user_id == user_id)
            .order_by(ScenarioCompletion.updated_at.desc())
        ).all())
