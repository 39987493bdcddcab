import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...db.models import PhishingEmail, QuizCategory, QuizQuestion
from ...exceptions import NotFound, ValidationError
from ...utils import as_utc, utcnow
from ..ports.cache import PHISHING_EMAILS_KEY, QUIZ_CATEGORIES_KEY, Cache, quiz_category_key
from ..ports.content_repo import ContentRepository

logger = logging.getLogger(__name__)

CONTENT_CACHE_TTL_SECONDS = 300
MIN_OPTIONS = 2


def category_to_dict(category: QuizCategory) -> Dict[str, Any]:
    return {
        "id": category.id,
        "key": category.key,
        "title": category.title,
        "description": category.description or "",
    }


def phishing_email_to_dict(email: PhishingEmail) -> Dict[str, Any]:
    return {
        "id": email.id,
        "sender": email.sender,
        "subject": email.subject,
        "content": email.content,
        "isPhishing": email.is_phishing,
        "indicators": json.loads(email.indicators) if email.indicators else [],
        "active": email.active,
        "createdAt": as_utc(email.created_at).isoformat(),
        "updatedAt": as_utc(email.updated_at).isoformat(),
    }


def _validate_question(question: Optional[str], options: Optional[List[str]], correct_index: Optional[int]) -> None:
    if not question or not options or len(options) < MIN_OPTIONS:
        raise ValidationError("question and at least 2 options required")
    if correct_index is None or correct_index < 0 or correct_index >= len(options):
        raise ValidationError("valid correctIndex required")


@dataclass
class ContentService:
    """Quiz categories and questions plus the phishing-email game deck.

    Public reads are cached; every admin write drops the affected keys.
    """

    repo: ContentRepository
    cache: Cache

    # ------------------------
    # Quiz: public reads
    # ------------------------
    def list_categories(self) -> List[Dict[str, Any]]:
        cached = self.cache.get(QUIZ_CATEGORIES_KEY)
        if cached is not None:
            return cached
        categories = [category_to_dict(c) for c in self.repo.list_categories()]
        self.cache.set(QUIZ_CATEGORIES_KEY, categories, CONTENT_CACHE_TTL_SECONDS)
        return categories

    def get_category(self, key: str) -> Dict[str, Any]:
        """Category with its questions, options flattened to text plus a correct index."""
        cached = self.cache.get(quiz_category_key(key))
        if cached is not None:
            return cached
        category = self.repo.get_category_by_key(key)
        if category is None:
            raise NotFound("Category not found")
        questions = []
        for question in self.repo.list_questions(category.id):
            options = self.repo.list_options(question.id)
            correct = next((i for i, o in enumerate(options) if o.is_correct), 0)
            questions.append({
                "id": question.id,
                "question": question.question,
                "explanation": question.explanation or "",
                "options": [o.text for o in options],
                "correctIndex": correct,
            })
        payload = {
            "key": category.key,
            "title": category.title,
            "description": category.description or "",
            "questions": questions,
        }
        self.cache.set(quiz_category_key(key), payload, CONTENT_CACHE_TTL_SECONDS)
        return payload

    # ------------------------
    # Quiz: admin
    # ------------------------
    def _invalidate_quiz(self, *category_keys: str) -> None:
        self.cache.delete(QUIZ_CATEGORIES_KEY, *[quiz_category_key(k) for k in category_keys if k])

    def upsert_category(self, key: str, title: str, description: Optional[str] = None) -> QuizCategory:
        if not key or not title:
            raise ValidationError("key and title are required")
        category = self.repo.upsert_category(key.strip(), title.strip(), description)
        self._invalidate_quiz(category.key)
        return category

    def question_to_admin_dict(self, question: QuizQuestion) -> Dict[str, Any]:
        category = self.repo.get_category(question.category_id)
        options = self.repo.list_options(question.id)
        return {
            "id": question.id,
            "question": question.question,
            "explanation": question.explanation or "",
            "category": {"key": category.key, "title": category.title} if category else None,
            "options": [{"id": o.id, "text": o.text, "isCorrect": o.is_correct} for o in options],
            "correctIndex": next((i for i, o in enumerate(options) if o.is_correct), 0),
        }

    def list_questions_for_admin(self) -> List[Dict[str, Any]]:
        rows = [self.question_to_admin_dict(q) for q in self.repo.list_questions()]
        rows.sort(key=lambda r: ((r["category"] or {}).get("key", ""), r["id"]))
        return rows

    def create_question(self, category_key: str, question: str, options: List[str], correct_index: int,
                        explanation: Optional[str] = None) -> QuizQuestion:
        if not category_key:
            raise ValidationError("categoryKey, question and at least 2 options required")
        _validate_question(question, options, correct_index)
        category = self.repo.get_category_by_key(category_key)
        if category is None:
            raise NotFound("Category not found")

        created = self.repo.save_question(
            QuizQuestion(category_id=category.id, question=question, explanation=explanation or None),
            [(text, idx == correct_index) for idx, text in enumerate(options)],
        )
        self._invalidate_quiz(category.key)
        return created

    def update_question(self, question_id: int, question: str, options: List[str], correct_index: int,
                        explanation: Optional[str] = None, category_key: Optional[str] = None) -> QuizQuestion:
        _validate_question(question, options, correct_index)
        existing = self.repo.get_question(question_id)
        if existing is None:
            raise NotFound("Question not found")

        old_category = self.repo.get_category(existing.category_id)
        new_category = old_category
        if category_key:
            new_category = self.repo.get_category_by_key(category_key)
            if new_category is None:
                raise NotFound("Category not found")
            existing.category_id = new_category.id

        existing.question = question
        existing.explanation = explanation or None
        existing.updated_at = utcnow()
        # Options are replaced wholesale
        updated = self.repo.save_question(existing, [(text, idx == correct_index) for idx, text in enumerate(options)])
        self._invalidate_quiz(old_category.key if old_category else "", new_category.key if new_category else "")
        return updated

    def delete_question(self, question_id: int) -> None:
        existing = self.repo.get_question(question_id)
        if existing is None:
            raise NotFound("Question not found")
        category = self.repo.get_category(existing.category_id)
        self.repo.delete_question(question_id)
        self._invalidate_quiz(category.key if category else "")
        logger.info(f"Deleted quiz question {question_id}")

    # ------------------------
    # Phishing-email game
    # ------------------------
    def list_active_phishing_emails(self) -> List[Dict[str, Any]]:
        cached = self.cache.get(PHISHING_EMAILS_KEY)
        if cached is not None:
            return cached
        emails = [phishing_email_to_dict(e) for e in self.repo.list_phishing_emails(active_only=True)]
        self.cache.set(PHISHING_EMAILS_KEY, emails, CONTENT_CACHE_TTL_SECONDS)
        return emails

    def list_all_phishing_emails(self) -> List[Dict[str, Any]]:
        return [phishing_email_to_dict(e) for e in self.repo.list_phishing_emails()]

    def create_phishing_email(self, sender: str, subject: str, content: str, is_phishing: bool = True,
                              indicators: Optional[List[str]] = None, active: bool = True) -> PhishingEmail:
        if not sender or not subject or not content:
            raise ValidationError("sender, subject, content required")
        email = self.repo.save_phishing_email(PhishingEmail(
            sender=sender,
            subject=subject,
            content=content,
            is_phishing=is_phishing,
            indicators=json.dumps(list(indicators or [])),
            active=active,
        ))
        self.cache.delete(PHISHING_EMAILS_KEY)
        return email

    def update_phishing_email(self, email_id: int, **changes: Any) -> PhishingEmail:
        """Partial update; fields passed as None are left alone."""
        email = self.repo.get_phishing_email(email_id)
        if email is None:
            raise NotFound("Phishing email not found")

        for field_name in ("sender", "subject", "content"):
            value = changes.get(field_name)
            if value is not None:
                if not value:
                    raise ValidationError(f"{field_name} cannot be empty")
                setattr(email, field_name, value)
        if changes.get("is_phishing") is not None:
            email.is_phishing = changes["is_phishing"]
        if changes.get("indicators") is not None:
            email.indicators = json.dumps(list(changes["indicators"]))
        if changes.get("active") is not None:
            email.active = changes["active"]
        email.updated_at = utcnow()

        email = self.repo.save_phishing_email(email)
        self.cache.delete(PHISHING_EMAILS_KEY)
        return email

    def delete_phishing_email(self, email_id: int) -> None:
        if not self.repo.delete_phishing_email(email_id):
            raise NotFound("Phishing email not found")
        self.cache.delete(PHISHING_EMAILS_KEY)
