import logging
import secrets
from dataclasses import dataclass, field
from typing import Optional

from ...config import settings
from ...db.models import User, UserRole
from ...exceptions import (
    DuplicateIdentity,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    PhoneNotVerified,
    ProviderFailure,
    ValidationError,
)
from ...utils import as_utc, normalize_email, normalize_phone, utcnow
from ..ports.audit_logger import AuditLogger
from ..ports.cache import Cache, invalidate_user_listings
from ..ports.otp_provider import OTPProvider
from ..ports.password_hasher import PasswordHasher
from ..ports.password_reset_repo import PasswordResetRepository
from ..ports.user_repo import UserRepository
from .token_service import IssuedRefreshToken, TokenService, access_claims_for

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the phone number exists, a code has been sent"
INVALID_CODE_MESSAGE = "Invalid or expired code"


@dataclass
class RegistrationResult:
    user: User
    verification_id: Optional[str] = None


@dataclass
class LoginResult:
    access_token: str
    refresh_token: IssuedRefreshToken
    user: User


@dataclass
class MessageResult:
    message: str
    verification_id: Optional[str] = None


class _NullAudit:
    def log(self, *args, **kwargs) -> None:
        return None


def decoy_verification_id() -> str:
    """Handle shaped like the provider's numeric ids, returned when no real code went out."""
    return str(1_000_000 + secrets.randbelow(9_000_000))


@dataclass
class AuthService:
    """Identity lifecycle: registration, phone verification, login, password reset, refresh, logout.

    Phone verification moves a user from unverified to verified exactly once;
    nothing here moves a user back. Login is only reachable for verified users.
    """

    user_repo: UserRepository
    token_service: TokenService
    otp_provider: OTPProvider
    password_hasher: PasswordHasher
    reset_repo: PasswordResetRepository
    cache: Cache
    audit: AuditLogger = field(default_factory=_NullAudit)
    password_min_length: int = field(default_factory=lambda: settings.PASSWORD_MIN_LENGTH)

    # ------------------------
    # Registration & verification
    # ------------------------
    async def register(self, username: str, email: str, password: str, phone_number: str,
                       name: Optional[str] = None) -> RegistrationResult:
        if not username or not email or not password or not phone_number:
            raise ValidationError("Username, email, password, and phoneNumber are required")

        username = username.strip()
        normalized_email = normalize_email(email)
        normalized_phone = normalize_phone(phone_number)

        if self.user_repo.get_by_username(username):
            raise DuplicateIdentity("Username already exists")
        if self.user_repo.get_by_email(normalized_email):
            raise DuplicateIdentity("Email already in use")
        if self.user_repo.get_by_phone(normalized_phone):
            raise DuplicateIdentity("Phone number already in use")

        user = self.user_repo.create(
            username=username,
            email=normalized_email,
            phone_number=normalized_phone,
            password_hash=self.password_hasher.hash(password),
            name=name,
        )
        invalidate_user_listings(self.cache)

        # The user row stays even if the code cannot be sent; resend recovers it
        sms = await self.otp_provider.send_code(normalized_phone)
        if not sms.success:
            logger.error(f"Failed to send verification SMS for user {user.id}: {sms.error}")
        self.audit.log("register", normalized_phone, user.id, success=True,
                       details={"sms_sent": sms.success})
        return RegistrationResult(user=user, verification_id=sms.verification_id if sms.success else None)

    async def verify_phone(self, phone_number: str, code: str, verification_id: str) -> MessageResult:
        if not phone_number or not code or not verification_id:
            raise ValidationError("phoneNumber, code and verificationId are required")

        normalized_phone = normalize_phone(phone_number)
        user = self.user_repo.get_by_phone(normalized_phone)
        if not user:
            raise NotFound("User not found")

        result = await self.otp_provider.validate_code(verification_id, code)
        if not result.success:
            self.audit.log("verify_phone", normalized_phone, user.id, success=False,
                           details={"reason": result.error})
            raise ProviderFailure(result.error or INVALID_CODE_MESSAGE)

        self.user_repo.mark_phone_verified(user.id)
        invalidate_user_listings(self.cache, user.id)
        self.audit.log("verify_phone", normalized_phone, user.id, success=True)
        return MessageResult("Phone verified successfully")

    async def resend_verification(self, phone_number: str) -> MessageResult:
        if not phone_number:
            raise ValidationError("phoneNumber is required")

        normalized_phone = normalize_phone(phone_number)
        user = self.user_repo.get_by_phone(normalized_phone)
        if not user:
            raise NotFound("User not found")
        if user.is_phone_verified:
            return MessageResult("Phone already verified")

        sms = await self.otp_provider.send_code(normalized_phone)
        if not sms.success:
            logger.error(f"Failed to resend verification SMS for user {user.id}: {sms.error}")
            return MessageResult("SMS service temporarily unavailable. Please try again later.")
        return MessageResult("Verification code sent", sms.verification_id)

    # ------------------------
    # Login / tokens
    # ------------------------
    def _issue_session(self, user: User) -> LoginResult:
        access_token = self.token_service.issue_access(access_claims_for(user))
        refresh = self.token_service.issue_refresh(user.id)
        return LoginResult(access_token=access_token, refresh_token=refresh, user=user)

    async def login(self, username_or_email: str, password: str) -> LoginResult:
        if not username_or_email or not password:
            raise ValidationError("Username and password are required")

        user = self.user_repo.get_by_username_or_email(username_or_email.strip())
        # Same error for unknown user and wrong password
        if not user or not self.password_hasher.verify(password, user.password_hash):
            self.audit.log("login", success=False, details={"reason": "invalid_credentials"})
            raise InvalidCredentials("Invalid username or password")
        if not user.is_phone_verified:
            self.audit.log("login", user.phone_number, user.id, success=False,
                           details={"reason": "phone_not_verified"})
            raise PhoneNotVerified(user.phone_number)

        self.audit.log("login", user.phone_number, user.id, success=True)
        return self._issue_session(user)

    async def admin_login(self, username_or_email: str, password: str) -> LoginResult:
        if not username_or_email or not password:
            raise ValidationError("Username and password are required")

        user = self.user_repo.get_by_username_or_email(username_or_email.strip(), role=UserRole.ADMIN)
        if not user or not self.password_hasher.verify(password, user.password_hash):
            self.audit.log("admin_login", success=False)
            raise InvalidCredentials("Invalid admin credentials")

        self.audit.log("admin_login", user.phone_number, user.id, success=True)
        return self._issue_session(user)

    async def refresh(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise InvalidToken("No refresh token")
        record = self.token_service.find_usable_refresh(refresh_token)
        if record is None:
            raise InvalidToken("Invalid refresh token")
        user = self.user_repo.get_by_id(record.user_id)
        if not user:
            raise InvalidToken("User not found")
        return self.token_service.issue_access(access_claims_for(user))

    async def logout(self, refresh_token: Optional[str]) -> MessageResult:
        try:
            self.token_service.revoke_refresh(refresh_token)
        except Exception as e:
            # Revocation is best-effort; the cookie is cleared regardless
            logger.error(f"Failed to revoke refresh token on logout: {e}", exc_info=True)
        return MessageResult("Logged out")

    # ------------------------
    # Password reset
    # ------------------------
    async def forgot_password(self, phone_number: str) -> MessageResult:
        if not phone_number:
            raise ValidationError("Phone number is required")

        normalized_phone = normalize_phone(phone_number)
        user = self.user_repo.get_by_phone(normalized_phone)
        if not user:
            self.audit.log("forgot_password", normalized_phone, success=False, details={"reason": "unknown_phone"})
            return MessageResult(FORGOT_PASSWORD_MESSAGE, decoy_verification_id())

        sms = await self.otp_provider.send_code(normalized_phone)
        if not sms.success:
            logger.error(f"Failed to send password reset SMS for user {user.id}: {sms.error}")
        self.audit.log("forgot_password", normalized_phone, user.id, success=sms.success)
        # Known and unknown phones both get a handle
        return MessageResult(FORGOT_PASSWORD_MESSAGE, sms.verification_id if sms.success else decoy_verification_id())

    async def reset_password(self, phone_number: str, code: str, new_password: str,
                             verification_id: Optional[str] = None) -> MessageResult:
        if not phone_number or not code or not new_password:
            raise ValidationError("Phone number, code and new password are required")
        if len(new_password) < self.password_min_length:
            raise ValidationError(f"New password must be at least {self.password_min_length} characters")

        normalized_phone = normalize_phone(phone_number)
        user = self.user_repo.get_by_phone(normalized_phone)
        if not user:
            raise ValidationError(INVALID_CODE_MESSAGE)

        # A supplied handle selects the provider path exclusively
        if verification_id:
            result = await self.otp_provider.validate_code(verification_id, code)
            if not result.success:
                self.audit.log("reset_password", normalized_phone, user.id, success=False,
                               details={"reason": result.error})
                raise ProviderFailure(result.error or INVALID_CODE_MESSAGE)
        else:
            record = self.reset_repo.latest_for_code(user.id, code)
            if not record:
                raise ValidationError("Invalid code")
            if as_utc(record.expires_at) < utcnow():
                raise ValidationError("Code expired")

        self.user_repo.set_password_hash(user.id, self.password_hasher.hash(new_password))
        self.reset_repo.delete_for_user(user.id)
        invalidate_user_listings(self.cache, user.id)
        self.audit.log("reset_password", normalized_phone, user.id, success=True)
        return MessageResult("Password updated successfully")

    # ------------------------
    # Profile
    # ------------------------
    def get_profile(self, user_id: int) -> User:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> MessageResult:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        if len(new_password) < self.password_min_length:
            raise ValidationError(f"New password must be at least {self.password_min_length} characters long")

        user = self.get_profile(user_id)
        if not self.password_hasher.verify(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        self.user_repo.set_password_hash(user.id, self.password_hasher.hash(new_password))
        invalidate_user_listings(self.cache, user.id)
        self.audit.log("change_password", user.phone_number, user.id, success=True)
        return MessageResult("Password changed successfully")
