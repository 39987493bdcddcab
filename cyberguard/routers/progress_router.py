import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.services.progress_service import ProgressService, attempt_to_dict, completion_to_dict
from ..dependencies import (
    Identity,
    get_current_identity,
    get_progress_service,
    get_user_repository,
    require_admin,
)
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..schemas import QuizAttemptRequest, ScenarioCompletionRequest, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["Progress"])


@router.get("/progress")
def get_progress(identity: Identity = Depends(get_current_identity),
                 progress_service: ProgressService = Depends(get_progress_service)):
    return ok("Progress retrieved", progress_service.get_progress(identity.user_id))


@router.post("/quiz-attempt")
def record_quiz_attempt(payload: QuizAttemptRequest, identity: Identity = Depends(get_current_identity),
                        progress_service: ProgressService = Depends(get_progress_service)):
    attempt = progress_service.record_quiz_attempt(
        identity.user_id,
        category_key=payload.category_key,
        score=payload.score,
        total_questions=payload.total_questions,
        time_spent=payload.time_spent,
        answers=payload.answers,
    )
    return ok("Quiz attempt recorded", attempt_to_dict(attempt))


@router.post("/scenario-completion")
def record_scenario_completion(payload: ScenarioCompletionRequest, identity: Identity = Depends(get_current_identity),
                               progress_service: ProgressService = Depends(get_progress_service)):
    completion = progress_service.record_scenario_completion(
        identity.user_id, payload.scenario_key, score=payload.score, time_spent=payload.time_spent
    )
    return ok("Scenario completion recorded", completion_to_dict(completion))


@router.get("/quiz-attempts")
def list_quiz_attempts(category_key: Optional[str] = Query(None, alias="categoryKey"),
                       identity: Identity = Depends(get_current_identity),
                       progress_service: ProgressService = Depends(get_progress_service)):
    return ok("Quiz attempts retrieved", progress_service.list_quiz_attempts(identity.user_id, category_key))


@router.get("/scenario-completions")
def list_scenario_completions(identity: Identity = Depends(get_current_identity),
                              progress_service: ProgressService = Depends(get_progress_service)):
    return ok("Scenario completions retrieved", progress_service.list_scenario_completions(identity.user_id))


@router.get("/admin/all-progress")
def all_progress(identity: Identity = Depends(require_admin),
                 user_repo: SqlUserRepository = Depends(get_user_repository),
                 progress_service: ProgressService = Depends(get_progress_service)):
    return ok("Progress overview retrieved", progress_service.all_progress(user_repo))
