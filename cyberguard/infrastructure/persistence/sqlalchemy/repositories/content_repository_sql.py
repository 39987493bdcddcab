import logging
from typing import List, Optional, Tuple
from sqlalchemy import delete
from sqlmodel import Session, select

from .....db.models import PhishingEmail, QuizCategory, QuizOption, QuizQuestion
from .....application.ports.content_repo import ContentRepository
from .....utils import utcnow

logger = logging.getLogger(__name__)


class SqlContentRepository(ContentRepository):
    def __init__(self, session: Session):
        self.session = session

    # ------------------------
    # Quiz categories
    # ------------------------
    def list_categories(self) -> List[QuizCategory]:
        return list(self.session.exec(select(QuizCategory).order_by(QuizCategory.id)).all())

    def get_category_by_key(self, key: str) -> Optional[QuizCategory]:
        return self.session.exec(select(QuizCategory).where(QuizCategory.key == key)).first()

    def get_category(self, category_id: int) -> Optional[QuizCategory]:
        return self.session.get(QuizCategory, category_id)

    def upsert_category(self, key: str, title: str, description: Optional[str]) -> QuizCategory:
        category = self.get_category_by_key(key)
        if category is None:
            category = QuizCategory(key=key, title=title, description=description)
        else:
            category.title = title
            category.description = description
            category.updated_at = utcnow()
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    # ------------------------
    # Quiz questions
    # ------------------------
    def get_question(self, question_id: int) -> Optional[QuizQuestion]:
        return self.session.get(QuizQuestion, question_id)

    def list_questions(self, category_id: Optional[int] = None) -> List[QuizQuestion]:
        stmt = select(QuizQuestion)
        if category_id is not None:
            stmt = stmt.where(QuizQuestion.category_id == category_id)
        return list(self.session.exec(stmt.order_by(QuizQuestion.id)).all())

    def list_options(self, question_id: int) -> List[QuizOption]:
        return list(self.session.exec(
            select(QuizOption).where(QuizOption.question_id == question_id).order_by(QuizOption.id)
        ).all())

    def save_question(self, question: QuizQuestion, options: List[Tuple[str, bool]]) -> QuizQuestion:
        """Persist the question and replace its options in one transaction."""
        try:
            self.session.add(question)
            self.session.flush()
            self.session.execute(delete(QuizOption).where(QuizOption.question_id == question.id))
            for text, is_correct in options:
                self.session.add(QuizOption(question_id=question.id, text=text, is_correct=is_correct))
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.error(f"Saving quiz question {question.id} rolled back", exc_info=True)
            raise
        self.session.refresh(question)
        return question

    def delete_question(self, question_id: int) -> bool:
        question = self.get_question(question_id)
        if question is None:
            return False
        try:
            # Options first to satisfy the foreign key
            self.session.execute(delete(QuizOption).where(QuizOption.question_id == question_id))
            self.session.delete(question)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.error(f"Deleting quiz question {question_id} rolled back", exc_info=True)
            raise
        return True

    # ------------------------
    # Phishing emails
    # ------------------------
    def list_phishing_emails(self, active_only: bool = False) -> List[PhishingEmail]:
        stmt = select(PhishingEmail)
        if active_only:
            stmt = stmt.where(PhishingEmail.active == True)  # noqa: E712
        return list(self.session.exec(stmt.order_by(PhishingEmail.id)).all())

    def get_phishing_email(self, email_id: int) -> Optional[PhishingEmail]:
        return self.session.get(PhishingEmail, email_id)

    def save_phishing_email(self, email: PhishingEmail) -> PhishingEmail:
        self.session.add(email)
        self.session.commit()
        self.session.refresh(email)
        return email

    def delete_phishing_email(self, email_id: int) -> bool:
        email = self.get_phishing_email(email_id)
        if email is None:
            return False
        self.session.delete(email)
        self.session.commit()
        return True
