# Models package (re-export feature modules for stable imports)
from .users.user import User, UserRole
from .auth.refresh_token import RefreshToken
from .auth.password_reset import PasswordReset
from .progress.progress import UserProgress, QuizAttempt, ScenarioCompletion
from .content.content import QuizCategory, QuizQuestion, QuizOption, PhishingEmail

__all__ = [
    "User",
    "UserRole",
    "RefreshToken",
    "PasswordReset",
    "UserProgress",
    "QuizAttempt",
    "ScenarioCompletion",
    "QuizCategory",
    "QuizQuestion",
    "QuizOption",
    "PhishingEmail",
]
