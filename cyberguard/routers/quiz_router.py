import logging

from fastapi import APIRouter, Depends, status

from ..application.services.content_service import ContentService, category_to_dict
from ..dependencies import Identity, get_content_service, require_admin
from ..schemas import QuizCategoryRequest, QuizQuestionRequest, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz", tags=["Quiz"])


@router.get("/categories")
def list_categories(content_service: ContentService = Depends(get_content_service)):
    return ok("Categories retrieved", {"categories": content_service.list_categories()})


@router.get("/category/{key}")
def get_category(key: str, content_service: ContentService = Depends(get_content_service)):
    return ok("Category retrieved", content_service.get_category(key))


# ------------------------
# Admin
# ------------------------
@router.post("/admin/category", status_code=status.HTTP_201_CREATED)
def upsert_category(payload: QuizCategoryRequest, identity: Identity = Depends(require_admin),
                    content_service: ContentService = Depends(get_content_service)):
    category = content_service.upsert_category(payload.key, payload.title, payload.description)
    logger.info(f"Admin {identity.user_id} saved quiz category {category.key}")
    return ok("Category saved", category_to_dict(category))


@router.post("/admin/question", status_code=status.HTTP_201_CREATED)
def create_question(payload: QuizQuestionRequest, identity: Identity = Depends(require_admin),
                    content_service: ContentService = Depends(get_content_service)):
    question = content_service.create_question(
        payload.category_key,
        payload.question,
        payload.options,
        payload.correct_index,
        explanation=payload.explanation,
    )
    return ok("Question created", content_service.question_to_admin_dict(question))


@router.get("/admin/questions")
def list_questions(identity: Identity = Depends(require_admin),
                   content_service: ContentService = Depends(get_content_service)):
    return ok("Questions retrieved", {"questions": content_service.list_questions_for_admin()})


@router.put("/admin/question/{question_id}")
def update_question(question_id: int, payload: QuizQuestionRequest, identity: Identity = Depends(require_admin),
                    content_service: ContentService = Depends(get_content_service)):
    question = content_service.update_question(
        question_id,
        payload.question,
        payload.options,
        payload.correct_index,
        explanation=payload.explanation,
        category_key=payload.category_key,
    )
    return ok("Question updated", content_service.question_to_admin_dict(question))


@router.delete("/admin/question/{question_id}")
def delete_question(question_id: int, identity: Identity = Depends(require_admin),
                    content_service: ContentService = Depends(get_content_service)):
    content_service.delete_question(question_id)
    return ok("Question deleted successfully")
