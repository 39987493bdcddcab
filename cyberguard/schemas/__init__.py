from .common.common import RequestModel, ok
from .auth.auth import (
    AdminVerifyUserRequest,
    ChangePasswordRequest,
    LoginRequest,
    PhoneRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyPhoneRequest,
)
from .progress.progress import QuizAttemptRequest, ScenarioCompletionRequest
from .content.content import (
    PhishingEmailRequest,
    PhishingEmailUpdateRequest,
    QuizCategoryRequest,
    QuizQuestionRequest,
)

__all__ = [
    "RequestModel",
    "ok",
    "AdminVerifyUserRequest",
    "ChangePasswordRequest",
    "LoginRequest",
    "PhoneRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "VerifyPhoneRequest",
    "QuizAttemptRequest",
    "ScenarioCompletionRequest",
    "PhishingEmailRequest",
    "PhishingEmailUpdateRequest",
    "QuizCategoryRequest",
    "QuizQuestionRequest",
]
