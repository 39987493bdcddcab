from typing import List, Optional, Protocol, Tuple

from ...db.models import PhishingEmail, QuizCategory, QuizOption, QuizQuestion


class ContentRepository(Protocol):
    # Quiz
    def list_categories(self) -> List[QuizCategory]:
        ...

    def get_category_by_key(self, key: str) -> Optional[QuizCategory]:
        ...

    def get_category(self, category_id: int) -> Optional[QuizCategory]:
        ...

    def upsert_category(self, key: str, title: str, description: Optional[str]) -> QuizCategory:
        ...

    def get_question(self, question_id: int) -> Optional[QuizQuestion]:
        ...

    def list_questions(self, category_id: Optional[int] = None) -> List[QuizQuestion]:
        ...

    def list_options(self, question_id: int) -> List[QuizOption]:
        ...

    def save_question(self, question: QuizQuestion, options: List[Tuple[str, bool]]) -> QuizQuestion:
        ...

    def delete_question(self, question_id: int) -> bool:
        ...

    # Game
    def list_phishing_emails(self, active_only: bool = False) -> List[PhishingEmail]:
        ...

    def get_phishing_email(self, email_id: int) -> Optional[PhishingEmail]:
        ...

    def save_phishing_email(self, email: PhishingEmail) -> PhishingEmail:
        ...

    def delete_phishing_email(self, email_id: int) -> bool:
        ...
